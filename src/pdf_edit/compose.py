"""
Document composer: merge, split, extract and remove.

Each function is a pure transformation of input document bytes into output
document bytes; persistence is left to the caller.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Sequence

from .engines.base import DocumentEngine
from .errors import ValidationError
from .page_ranges import parse_page_groups, parse_page_list, single_page_ranges

logger = logging.getLogger(__name__)


def _open(stack: ExitStack, engine: DocumentEngine, data: bytes | None = None) -> Any:
    doc = engine.new_document() if data is None else engine.load(data)
    stack.callback(engine.close, doc)
    return doc


def _filter_in_bounds(page_numbers: Sequence[int], page_count: int) -> list[int]:
    return [p for p in page_numbers if 1 <= p <= page_count]


def merge_documents(engine: DocumentEngine, sources: Sequence[bytes]) -> bytes:
    """
    Concatenate every page of every source, in source order.

    Sources stay open until the merged output has been saved; all handles
    opened so far are released on every exit path.
    """

    if not sources:
        raise ValidationError("At least one document is required to merge", code="NO_DOCUMENTS")

    with ExitStack() as stack:
        opened = [_open(stack, engine, data) for data in sources]
        merged = _open(stack, engine)
        for src in opened:
            engine.import_pages(merged, src, list(range(engine.page_count(src))))
        logger.debug("Merged %d sources into %d pages", len(opened), engine.page_count(merged))
        return engine.save(merged)


def split_document(engine: DocumentEngine, data: bytes, groups: str | None = None) -> list[bytes]:
    """
    One output per page without `groups`, else one output per non-empty
    page-range group (pages in group order). Empty groups produce nothing.
    """

    with ExitStack() as stack:
        src = _open(stack, engine, data)
        page_count = engine.page_count(src)

        if groups is None or not groups.strip():
            ranges = single_page_ranges(page_count)
        else:
            ranges = parse_page_groups(groups, page_count=page_count)

        outputs: list[bytes] = []
        for page_range in ranges:
            if page_range.is_empty:
                continue
            outputs.append(_compose_pages(engine, src, page_range.indices()))
        return outputs


def _compose_pages(engine: DocumentEngine, src: Any, indices: Sequence[int]) -> bytes:
    with ExitStack() as stack:
        out = _open(stack, engine)
        engine.import_pages(out, src, indices)
        return engine.save(out)


def _selected_pages(page_numbers: Sequence[int] | str, page_count: int) -> list[int]:
    if isinstance(page_numbers, str):
        return parse_page_list(page_numbers, page_count=page_count)
    return _filter_in_bounds(page_numbers, page_count)


def extract_pages(engine: DocumentEngine, data: bytes, page_numbers: Sequence[int] | str) -> bytes:
    """
    One output with the requested pages in the requested order; numbers
    outside the document are skipped. `page_numbers` may also be a page-list
    expression such as "3,1,5-7". Nothing in range yields a zero-page output.
    """

    with ExitStack() as stack:
        src = _open(stack, engine, data)
        selected = _selected_pages(page_numbers, engine.page_count(src))
        if not selected:
            logger.warning("No requested page lies within the document; output has no pages")
        return _compose_pages(engine, src, [p - 1 for p in selected])


def remove_pages(engine: DocumentEngine, data: bytes, page_numbers: Sequence[int] | str) -> bytes:
    """
    Delete the given pages from the document. Deletion runs from the highest
    index down so earlier removals never shift later ones. Removing every
    page yields a zero-page output.
    """

    with ExitStack() as stack:
        doc = _open(stack, engine, data)
        doomed = sorted(set(_selected_pages(page_numbers, engine.page_count(doc))), reverse=True)
        for p in doomed:
            engine.remove_page(doc, p - 1)
        return engine.save(doc)


def page_count_of(engine: DocumentEngine, data: bytes) -> int:
    with ExitStack() as stack:
        doc = _open(stack, engine, data)
        return engine.page_count(doc)
