"""
Collaborator backends: the document library and the paragraph writer.

Higher layers depend only on `DocumentEngine` / `ParagraphWriter`.
"""

from .base import (
    DocumentEngine,
    DrawPrimitive,
    ImagePrimitive,
    PageSize,
    ParagraphWriter,
    RectPrimitive,
    TextPrimitive,
)
from .docx_writer import DocxParagraphWriter
from .pypdfium2_engine import Pypdfium2Engine

__all__ = [
    "DocumentEngine",
    "DrawPrimitive",
    "ImagePrimitive",
    "PageSize",
    "ParagraphWriter",
    "RectPrimitive",
    "TextPrimitive",
    "DocxParagraphWriter",
    "Pypdfium2Engine",
]
