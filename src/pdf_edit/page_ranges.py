"""
Page-range grammar.

    expression := group (";" group)*
    group      := item ("," item)*
    item       := N | A "-" B

Page numbers are 1-indexed. Ranges are clipped to the document before they are
expanded; out-of-range numbers are dropped silently, malformed tokens raise
`ParseError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .errors import ParseError


@dataclass(frozen=True, slots=True)
class PageRange:
    """Distinct 1-indexed page numbers in first-seen order."""

    pages: tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self) -> Iterator[int]:
        return iter(self.pages)

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def indices(self) -> list[int]:
        """0-indexed positions, for the document engine."""
        return [p - 1 for p in self.pages]


def _parse_int(token: str) -> int:
    s = token.strip()
    # ASCII digits only: no sign, no "_" separators.
    if not (s.isascii() and s.isdigit()):
        raise ParseError(f"Invalid page number: {token!r}", token=token)
    return int(s)


def _parse_item(item: str) -> tuple[int, int]:
    """Inclusive (start, end); a single number N is (N, N)."""

    if "-" in item:
        a_str, b_str = item.split("-", 1)
        return _parse_int(a_str), _parse_int(b_str)
    n = _parse_int(item)
    return n, n


def _expand_group(group: str, page_count: int) -> list[int]:
    """Pages of one group in written order, each range clipped to [1, page_count]."""

    out: list[int] = []
    for part in group.split(","):
        part = part.strip()
        if not part:
            continue
        start, end = _parse_item(part)
        # end < start yields nothing
        out.extend(range(max(start, 1), min(end, page_count) + 1))
    return out


def parse_page_groups(expression: str, *, page_count: int) -> list[PageRange]:
    """
    Parse "1-3,5;7" into one PageRange per ";"-separated group.

    A group whose pages all fall outside [1, page_count] is returned as an
    empty PageRange; callers decide whether to skip it.
    """

    ranges: list[PageRange] = []
    for group in expression.split(";"):
        seen: set[int] = set()
        ordered: list[int] = []
        for p in _expand_group(group, page_count):
            if p in seen:
                continue
            seen.add(p)
            ordered.append(p)
        ranges.append(PageRange(pages=tuple(ordered)))
    return ranges


def parse_page_list(expression: str, *, page_count: int) -> list[int]:
    """
    Parse "3,1,5-6" into [3, 1, 5, 6]: order and duplicates preserved,
    numbers outside [1, page_count] dropped. Used for caller-supplied page
    lists (extract/remove).
    """

    if ";" in expression:
        raise ParseError("Page lists do not accept groups (';')", token=expression)
    return _expand_group(expression, page_count)


def single_page_ranges(page_count: int) -> list[PageRange]:
    """One PageRange per page; the split layout when no expression is given."""
    return [PageRange(pages=(p,)) for p in range(1, page_count + 1)]
