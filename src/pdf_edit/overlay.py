"""
Overlay engine: turns stamping parameters into draw primitives and applies
them through the document engine.

Coordinates are PDF points with the origin at the lower-left page corner.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from PIL import Image, UnidentifiedImageError

from .contracts import Redaction, SignatureParams, StandardFont, TextStampParams, WatermarkParams
from .engines.base import RGB, DocumentEngine, ImagePrimitive, PageSize, RectPrimitive, TextPrimitive
from .errors import ValidationError

logger = logging.getLogger(__name__)

WATERMARK_MAX_CHARS = 30
WATERMARK_FONT = StandardFont.HELVETICA_BOLD
WATERMARK_FONT_SIZE = 60.0

DEFAULT_FONT = StandardFont.HELVETICA
DEFAULT_COLOR: RGB = (0, 0, 0)
REDACTION_COLOR: RGB = (0, 0, 0)

# Names outside the standard set that map onto it; anything else => DEFAULT_FONT.
FONT_FALLBACKS: dict[str, StandardFont] = {
    "ARIAL": StandardFont.HELVETICA,
    "ARIAL_BOLD": StandardFont.HELVETICA_BOLD,
    "SANS": StandardFont.HELVETICA,
    "SANS_SERIF": StandardFont.HELVETICA,
    "TIMES": StandardFont.TIMES_ROMAN,
    "TIMES_NEW_ROMAN": StandardFont.TIMES_ROMAN,
    "SERIF": StandardFont.TIMES_ROMAN,
    "COURIER_NEW": StandardFont.COURIER,
    "MONO": StandardFont.COURIER,
    "MONOSPACE": StandardFont.COURIER,
}

_HEX_COLOR_RE = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclass(frozen=True, slots=True)
class BatchRedactionOutcome:
    applied: list[Redaction] = field(default_factory=list)
    skipped: list[Redaction] = field(default_factory=list)


def gray_level(opacity: float) -> int:
    """
    Flat gray approximation of opacity: 1.0 => 0 (black), 0.0 => 255 (white).
    No alpha blending is involved.
    """

    o = min(max(opacity, 0.0), 1.0)
    return int(round(255 * (1.0 - o)))


def resolve_font(name: str | None) -> StandardFont:
    if not name:
        return DEFAULT_FONT
    key = re.sub(r"[\s\-]+", "_", name.strip()).upper()
    if key in StandardFont.__members__:
        return StandardFont[key]
    for font in StandardFont:
        if font.value.upper() == name.strip().upper():
            return font
    fallback = FONT_FALLBACKS.get(key, DEFAULT_FONT)
    logger.debug("Unknown font %r, using %s", name, fallback.value)
    return fallback


def parse_hex_color(value: str | None, default: RGB = DEFAULT_COLOR) -> RGB:
    """'#RRGGBB' / 'RRGGBB' / '#RGB'; anything else yields `default`."""

    if not value or not _HEX_COLOR_RE.fullmatch(value.strip()):
        return default
    digits = value.strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def image_pixel_size(image_data: bytes) -> tuple[int, int]:
    try:
        with Image.open(io.BytesIO(image_data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(
            f"Signature image could not be decoded: {e}", code="INVALID_IMAGE"
        ) from e


def watermark_primitives(params: WatermarkParams, page_size: PageSize) -> list[TextPrimitive]:
    g = gray_level(params.opacity)
    return [
        TextPrimitive(
            text=params.text[:WATERMARK_MAX_CHARS],
            x=page_size.width / 2.0 if params.x is None else params.x,
            y=page_size.height / 2.0 if params.y is None else params.y,
            font=WATERMARK_FONT,
            font_size=WATERMARK_FONT_SIZE,
            color=(g, g, g),
            rotation_deg=params.rotation_deg,
        )
    ]


def text_stamp_primitives(params: TextStampParams) -> list[TextPrimitive]:
    return [
        TextPrimitive(
            text=params.text,
            x=params.x,
            y=params.y,
            font=resolve_font(params.font_name),
            font_size=params.font_size,
            color=parse_hex_color(params.color_hex),
        )
    ]


def signature_primitives(params: SignatureParams, pixel_size: tuple[int, int]) -> list[ImagePrimitive]:
    width_px, height_px = pixel_size
    return [
        ImagePrimitive(
            image_data=params.image_data,
            x=params.x,
            y=params.y,
            width=width_px * params.scale,
            height=height_px * params.scale,
        )
    ]


def redaction_primitives(redaction: Redaction) -> list[RectPrimitive]:
    return [
        RectPrimitive(
            x=redaction.x,
            y=redaction.y,
            width=redaction.width,
            height=redaction.height,
            color=REDACTION_COLOR,
        )
    ]


def require_page(page: int, page_count: int) -> int:
    """1-indexed page -> 0-indexed position, or ValidationError."""

    if page < 1 or page > page_count:
        raise ValidationError(
            f"Invalid page number: {page} (document has {page_count} pages)",
            code="PAGE_OUT_OF_RANGE",
            detail={"page": page, "page_count": page_count},
        )
    return page - 1


def apply_watermark(engine: DocumentEngine, doc: Any, params: WatermarkParams) -> int:
    """Stamp every page; returns the number of pages stamped."""

    count = engine.page_count(doc)
    for index in range(count):
        engine.draw_on_page(doc, index, watermark_primitives(params, engine.page_size(doc, index)))
    return count


def apply_text_stamp(engine: DocumentEngine, doc: Any, params: TextStampParams) -> None:
    index = require_page(params.page, engine.page_count(doc))
    engine.draw_on_page(doc, index, text_stamp_primitives(params))


def apply_signature(engine: DocumentEngine, doc: Any, params: SignatureParams) -> None:
    index = require_page(params.page, engine.page_count(doc))
    pixel_size = image_pixel_size(params.image_data)
    engine.draw_on_page(doc, index, signature_primitives(params, pixel_size))


def apply_redaction(engine: DocumentEngine, doc: Any, redaction: Redaction) -> None:
    index = require_page(redaction.page, engine.page_count(doc))
    engine.draw_on_page(doc, index, redaction_primitives(redaction))


def apply_redactions(
    engine: DocumentEngine, doc: Any, redactions: Sequence[Redaction]
) -> BatchRedactionOutcome:
    """
    Batch variant of `apply_redaction`: records on pages outside the document
    are skipped and reported instead of failing the batch.
    """

    outcome = BatchRedactionOutcome()
    page_count = engine.page_count(doc)
    for redaction in redactions:
        if redaction.page < 1 or redaction.page > page_count:
            logger.warning("Skipping redaction on invalid page %d (1..%d)", redaction.page, page_count)
            outcome.skipped.append(redaction)
            continue
        engine.draw_on_page(doc, redaction.page - 1, redaction_primitives(redaction))
        outcome.applied.append(redaction)
    return outcome
