"""
Lossy text-derived conversions (Markdown, DOCX).

No structure recovery: paragraphs are approximated from blank lines only.
"""

from __future__ import annotations

from contextlib import ExitStack

from .engines.base import DocumentEngine, ParagraphWriter

MARKDOWN_HEADING = "# PDF Content"
NO_TEXT_PLACEHOLDER = "No extractable text was found in this document."


def extract_document_text(engine: DocumentEngine, data: bytes) -> str:
    """Reading-order text, or the placeholder sentence when nothing usable is found."""

    with ExitStack() as stack:
        doc = engine.load(data)
        stack.callback(engine.close, doc)
        text = engine.extract_text(doc)

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if not text.strip():
        return NO_TEXT_PLACEHOLDER
    return text


def to_markdown(text: str) -> str:
    """
    Heading, then every non-blank line followed by a blank line; blank input
    lines pass through as blank lines.
    """

    parts = [MARKDOWN_HEADING, "\n\n"]
    for line in text.splitlines():
        if not line.strip():
            parts.append("\n")
        else:
            parts.append(line)
            parts.append("\n\n")
    return "".join(parts)


def to_paragraph_blocks(text: str) -> list[str]:
    blocks = [p.strip() for p in text.split("\n\n")]
    blocks = [b for b in blocks if b]
    return blocks or [NO_TEXT_PLACEHOLDER]


def convert_to_markdown(engine: DocumentEngine, data: bytes) -> bytes:
    return to_markdown(extract_document_text(engine, data)).encode("utf-8")


def convert_to_docx(engine: DocumentEngine, writer: ParagraphWriter, data: bytes) -> bytes:
    return writer.write(to_paragraph_blocks(extract_document_text(engine, data)))
