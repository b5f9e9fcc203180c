from __future__ import annotations

import io
from typing import Sequence

from docx import Document as DocxDocument

from .base import ParagraphWriter


class DocxParagraphWriter(ParagraphWriter):
    """One DOCX paragraph (single run) per text block."""

    def backend_id(self) -> str:
        return "python-docx"

    def write(self, blocks: Sequence[str]) -> bytes:
        d = DocxDocument()
        for block in blocks:
            p = d.add_paragraph()
            p.add_run(block)
        buffer = io.BytesIO()
        d.save(buffer)
        return buffer.getvalue()
