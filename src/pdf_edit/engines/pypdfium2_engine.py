from __future__ import annotations

import ctypes
import io
import math
from dataclasses import dataclass
from typing import Any, Sequence

from PIL import Image

from .base import (
    DocumentEngine,
    DrawPrimitive,
    ImagePrimitive,
    PageSize,
    RectPrimitive,
    TextPrimitive,
)

# A vertical gap larger than this many line heights starts a new paragraph.
PARAGRAPH_GAP_K = 1.0
# Segments whose vertical centers differ by less than this share of the line
# height belong to the same line.
SAME_LINE_K = 0.5


@dataclass(frozen=True, slots=True)
class TextSegment:
    left: float
    bottom: float
    right: float
    top: float
    text: str

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2.0


def order_text_segments(segments: Sequence[TextSegment]) -> str:
    """
    Lay text segments (PDF coordinates, y grows upward) out in reading order:
    lines top to bottom, segments left to right, a blank line between lines
    separated by a paragraph-sized gap.
    """

    lines: list[list[TextSegment]] = []
    for seg in sorted(segments, key=lambda s: (-s.top, s.left)):
        if lines:
            ref = lines[-1][0]
            tolerance = max(min(ref.height, seg.height), 1.0) * SAME_LINE_K
            if abs(ref.center_y - seg.center_y) <= tolerance:
                lines[-1].append(seg)
                continue
        lines.append([seg])

    out: list[str] = []
    prev_bottom: float | None = None
    prev_height = 0.0
    for line in lines:
        line.sort(key=lambda s: s.left)
        top = max(s.top for s in line)
        bottom = min(s.bottom for s in line)
        height = top - bottom
        if prev_bottom is not None and prev_bottom - top > max(prev_height, height) * PARAGRAPH_GAP_K:
            out.append("")
        out.append(" ".join(s.text for s in line))
        prev_bottom, prev_height = bottom, height
    return "\n".join(out)


class Pypdfium2Engine(DocumentEngine):
    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except Exception:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore

            return pdfium
        except ImportError as e:
            raise RuntimeError("Missing dependency: pypdfium2 is required for PDF editing.") from e

    def load(self, data: bytes) -> Any:
        pdfium = self._require_pdfium()
        return pdfium.PdfDocument(data)

    def new_document(self) -> Any:
        pdfium = self._require_pdfium()
        return pdfium.PdfDocument.new()

    def page_count(self, doc: Any) -> int:
        return len(doc)

    def page_size(self, doc: Any, index: int) -> PageSize:
        width, height = doc.get_page_size(index)
        return PageSize(width=float(width), height=float(height))

    def import_pages(self, dest: Any, src: Any, indices: Sequence[int]) -> None:
        if not indices:
            return
        dest.import_pages(src, pages=list(indices))

    def remove_page(self, doc: Any, index: int) -> None:
        doc.del_page(index)

    def draw_on_page(self, doc: Any, index: int, primitives: Sequence[DrawPrimitive]) -> None:
        pdfium = self._require_pdfium()
        page = doc[index]
        try:
            for prim in primitives:
                if isinstance(prim, RectPrimitive):
                    self._insert_rect(pdfium, page, prim)
                elif isinstance(prim, TextPrimitive):
                    self._insert_text(pdfium, doc, page, prim)
                elif isinstance(prim, ImagePrimitive):
                    self._insert_image(pdfium, doc, page, prim)
                else:
                    raise TypeError(f"Unsupported draw primitive: {type(prim).__name__}")
            page.gen_content()
        finally:
            page.close()

    def _insert_rect(self, pdfium, page: Any, prim: RectPrimitive) -> None:
        pdfium_c = pdfium.raw
        rect = pdfium_c.FPDFPageObj_CreateNewRect(
            ctypes.c_float(prim.x),
            ctypes.c_float(prim.y),
            ctypes.c_float(prim.width),
            ctypes.c_float(prim.height),
        )
        if not rect:
            raise RuntimeError("FPDFPageObj_CreateNewRect failed")
        r, g, b = prim.color
        pdfium_c.FPDFPageObj_SetFillColor(rect, r, g, b, 255)
        pdfium_c.FPDFPath_SetDrawMode(rect, pdfium_c.FPDF_FILLMODE_WINDING, ctypes.c_int(0))
        pdfium_c.FPDFPage_InsertObject(page.raw, rect)

    def _insert_text(self, pdfium, doc: Any, page: Any, prim: TextPrimitive) -> None:
        pdfium_c = pdfium.raw
        font = pdfium_c.FPDFText_LoadStandardFont(doc.raw, prim.font.value.encode("ascii"))
        if not font:
            raise RuntimeError(f"Could not load standard font {prim.font.value!r}")
        try:
            text_obj = pdfium_c.FPDFPageObj_CreateTextObj(doc.raw, font, ctypes.c_float(prim.font_size))
            if not text_obj:
                raise RuntimeError("FPDFPageObj_CreateTextObj failed")

            encoded = (prim.text + "\x00").encode("utf-16-le")
            if not pdfium_c.FPDFText_SetText(text_obj, ctypes.cast(encoded, pdfium_c.FPDF_WIDESTRING)):
                pdfium_c.FPDFPageObj_Destroy(text_obj)
                raise RuntimeError("FPDFText_SetText failed")

            r, g, b = prim.color
            pdfium_c.FPDFPageObj_SetFillColor(text_obj, r, g, b, 255)

            theta = math.radians(prim.rotation_deg)
            cos_t, sin_t = math.cos(theta), math.sin(theta)
            pdfium_c.FPDFPageObj_Transform(
                text_obj,
                ctypes.c_double(cos_t),
                ctypes.c_double(sin_t),
                ctypes.c_double(-sin_t),
                ctypes.c_double(cos_t),
                ctypes.c_double(prim.x),
                ctypes.c_double(prim.y),
            )
            pdfium_c.FPDFPage_InsertObject(page.raw, text_obj)
        finally:
            pdfium_c.FPDFFont_Close(font)

    def _insert_image(self, pdfium, doc: Any, page: Any, prim: ImagePrimitive) -> None:
        with Image.open(io.BytesIO(prim.image_data)) as src:
            has_alpha = src.mode in ("RGBA", "LA") or "transparency" in src.info
            pil_image = src.convert("RGBA" if has_alpha else "RGB")

        try:
            bitmap = pdfium.PdfBitmap.from_pil(pil_image)
            try:
                image = pdfium.PdfImage.new(doc)
                # set_bitmap copies the pixels into the image object.
                image.set_bitmap(bitmap)
            finally:
                bitmap.close()
        finally:
            pil_image.close()

        image.set_matrix(pdfium.PdfMatrix().scale(prim.width, prim.height).translate(prim.x, prim.y))
        page.insert_obj(image)

    def extract_text(self, doc: Any) -> str:
        pages_text: list[str] = []
        for index in range(len(doc)):
            page = doc[index]
            textpage = page.get_textpage()
            try:
                segments: list[TextSegment] = []
                for i in range(textpage.count_rects()):
                    left, bottom, right, top = textpage.get_rect(i)
                    text = textpage.get_text_bounded(left=left, bottom=bottom, right=right, top=top)
                    if text.strip():
                        segments.append(
                            TextSegment(left=left, bottom=bottom, right=right, top=top, text=text.strip())
                        )
                pages_text.append(order_text_segments(segments))
            finally:
                textpage.close()
                page.close()
        return "\n\n".join(t for t in pages_text if t)

    def save(self, doc: Any) -> bytes:
        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

    def close(self, doc: Any) -> None:
        doc.close()
