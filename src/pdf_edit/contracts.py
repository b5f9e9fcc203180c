from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from .errors import ErrorKind, ValidationError


class EngineName(str, Enum):
    """
    Document backend identifiers.
    """

    PYPDFIUM2 = "pypdfium2"


class OperationName(str, Enum):
    MERGE = "merge"
    SPLIT = "split"
    EXTRACT = "extract"
    REMOVE = "remove"
    WATERMARK = "watermark"
    ADD_TEXT = "add_text"
    ADD_SIGNATURE = "add_signature"
    REDACT = "redact"
    REDACT_MULTIPLE = "redact_multiple"
    CONVERT_MARKDOWN = "convert_markdown"
    CONVERT_DOCX = "convert_docx"
    INFO = "info"
    RETRIEVE = "retrieve"


class ArtifactExtension(str, Enum):
    PDF = "pdf"
    MD = "md"
    DOCX = "docx"


class StandardFont(str, Enum):
    """
    The fourteen standard PDF fonts; values are the PDF base font names.
    """

    HELVETICA = "Helvetica"
    HELVETICA_BOLD = "Helvetica-Bold"
    HELVETICA_OBLIQUE = "Helvetica-Oblique"
    HELVETICA_BOLD_OBLIQUE = "Helvetica-BoldOblique"
    TIMES_ROMAN = "Times-Roman"
    TIMES_BOLD = "Times-Bold"
    TIMES_ITALIC = "Times-Italic"
    TIMES_BOLD_ITALIC = "Times-BoldItalic"
    COURIER = "Courier"
    COURIER_BOLD = "Courier-Bold"
    COURIER_OBLIQUE = "Courier-Oblique"
    COURIER_BOLD_OBLIQUE = "Courier-BoldOblique"
    SYMBOL = "Symbol"
    ZAPF_DINGBATS = "ZapfDingbats"


@dataclass(frozen=True, slots=True)
class OperationError:
    kind: ErrorKind
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class OperationResult:
    """
    Outcome of one public operation.

    `output_reference` is a comma-joined list of artifact names, or None for
    read-only queries and failures.
    """

    success: bool
    message: str
    output_reference: str | None = None
    error: OperationError | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def output_names(self) -> list[str]:
        if not self.output_reference:
            return []
        return self.output_reference.split(",")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class RetrieveResult:
    ok: bool
    filename: str | None
    data: bytes | None = None
    error: OperationError | None = None


@dataclass(frozen=True, slots=True)
class Artifact:
    stored_name: str
    data: bytes
    extension: ArtifactExtension
    path: Path


@dataclass(frozen=True, slots=True)
class Redaction:
    page: int  # 1-indexed
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if isinstance(self.page, bool) or not isinstance(self.page, int):
            raise ValidationError("redaction page must be an integer", code="INVALID_REDACTIONS")
        if self.width < 0 or self.height < 0:
            raise ValidationError(
                "redaction width and height must be >= 0",
                code="INVALID_REDACTIONS",
                detail={"width": self.width, "height": self.height},
            )

    @classmethod
    def from_dict(cls, record: Any) -> Redaction:
        if not isinstance(record, dict):
            raise ValidationError(
                f"redaction record must be an object, got {type(record).__name__}",
                code="INVALID_REDACTIONS",
            )
        missing = [k for k in ("page", "x", "y", "width", "height") if k not in record]
        if missing:
            raise ValidationError(
                f"redaction record is missing fields: {', '.join(missing)}",
                code="INVALID_REDACTIONS",
                detail={"missing": missing},
            )
        for key in ("x", "y", "width", "height"):
            value = record[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(
                    f"redaction field {key!r} must be a number",
                    code="INVALID_REDACTIONS",
                    detail={"field": key, "value": repr(value)},
                )
        return cls(
            page=record["page"],
            x=float(record["x"]),
            y=float(record["y"]),
            width=float(record["width"]),
            height=float(record["height"]),
        )


def parse_redactions(payload: str | bytes | Sequence[Any]) -> list[Redaction]:
    """
    Validate a batch-redaction payload (JSON text or decoded list) once, at
    the boundary. The first malformed record fails the whole payload.
    """

    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Redactions payload is not valid JSON: {e.msg}", code="INVALID_REDACTIONS"
            ) from e

    if not isinstance(payload, (list, tuple)):
        raise ValidationError("Redactions payload must be a list of records", code="INVALID_REDACTIONS")

    redactions: list[Redaction] = []
    for i, record in enumerate(payload):
        if isinstance(record, Redaction):
            redactions.append(record)
            continue
        try:
            redactions.append(Redaction.from_dict(record))
        except ValidationError as e:
            raise ValidationError(
                f"Redaction #{i + 1}: {e.message}", code=e.code, detail={"index": i, **(e.detail or {})}
            ) from e
    return redactions


@dataclass(frozen=True, slots=True)
class WatermarkParams:
    text: str
    x: float | None = None  # None => horizontal page center
    y: float | None = None  # None => vertical page center
    rotation_deg: float = 45.0
    opacity: float = 0.3

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValidationError("watermark text must not be empty", code="INVALID_PARAMETER")
        if not (0.0 <= self.opacity <= 1.0):
            raise ValidationError(
                "opacity must be within [0.0, 1.0]",
                code="INVALID_PARAMETER",
                detail={"opacity": self.opacity},
            )


@dataclass(frozen=True, slots=True)
class TextStampParams:
    text: str
    x: float = 50.0
    y: float = 750.0
    page: int = 1  # 1-indexed
    font_size: float = 12.0
    font_name: str = "HELVETICA"
    color_hex: str = "#000000"

    def __post_init__(self) -> None:
        if self.font_size <= 0:
            raise ValidationError(
                "font_size must be > 0", code="INVALID_PARAMETER", detail={"font_size": self.font_size}
            )


@dataclass(frozen=True, slots=True)
class SignatureParams:
    image_data: bytes
    x: float = 400.0
    y: float = 100.0
    page: int = 1  # 1-indexed
    scale: float = 0.3

    def __post_init__(self) -> None:
        if not self.image_data:
            raise ValidationError("signature image is empty", code="INVALID_IMAGE")
        if self.scale <= 0:
            raise ValidationError("scale must be > 0", code="INVALID_PARAMETER", detail={"scale": self.scale})


@dataclass(frozen=True, slots=True)
class PdfEditConfig:
    """
    Operation configuration.

    `out_root` is the flat artifact directory and must be passed explicitly;
    no module reads environment variables or keeps a global output location.
    """

    out_root: Path
    engine: EngineName = EngineName.PYPDFIUM2

    def __post_init__(self) -> None:
        if not isinstance(self.out_root, Path):
            raise TypeError("out_root must be pathlib.Path")
