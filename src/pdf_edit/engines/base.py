from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence, Union

from ..contracts import StandardFont

RGB = tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class PageSize:
    width: float  # PDF points
    height: float


@dataclass(frozen=True, slots=True)
class TextPrimitive:
    """Text whose baseline origin sits at (x, y), rotated counter-clockwise around it."""

    text: str
    x: float
    y: float
    font: StandardFont
    font_size: float
    color: RGB
    rotation_deg: float = 0.0


@dataclass(frozen=True, slots=True)
class RectPrimitive:
    """Opaque filled rectangle; (x, y) is the lower-left corner."""

    x: float
    y: float
    width: float
    height: float
    color: RGB = (0, 0, 0)


@dataclass(frozen=True, slots=True)
class ImagePrimitive:
    """Encoded image drawn into the box with lower-left corner (x, y)."""

    image_data: bytes
    x: float
    y: float
    width: float
    height: float


DrawPrimitive = Union[TextPrimitive, RectPrimitive, ImagePrimitive]


class DocumentEngine(ABC):
    """
    Page-level document library used by the composer, overlay and conversion
    layers.

    Document handles are opaque to callers. Page indices are 0-indexed here;
    the 1-indexed public numbering is translated before reaching the engine.
    Every handle returned by `load` or `new_document` must be passed to
    `close` exactly once.
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def load(self, data: bytes) -> Any:
        raise NotImplementedError

    @abstractmethod
    def new_document(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def page_count(self, doc: Any) -> int:
        raise NotImplementedError

    @abstractmethod
    def page_size(self, doc: Any, index: int) -> PageSize:
        raise NotImplementedError

    @abstractmethod
    def import_pages(self, dest: Any, src: Any, indices: Sequence[int]) -> None:
        """
        Append deep copies of `src` pages to `dest`, in the order given.
        The copies stay valid after `src` is closed.
        """

        raise NotImplementedError

    @abstractmethod
    def remove_page(self, doc: Any, index: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def draw_on_page(self, doc: Any, index: int, primitives: Sequence[DrawPrimitive]) -> None:
        raise NotImplementedError

    @abstractmethod
    def extract_text(self, doc: Any) -> str:
        """Whole-document text in reading (position-sorted) order."""

        raise NotImplementedError

    @abstractmethod
    def save(self, doc: Any) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def close(self, doc: Any) -> None:
        raise NotImplementedError


class ParagraphWriter(ABC):
    """Turns ordered text blocks into a structured document file."""

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def write(self, blocks: Sequence[str]) -> bytes:
        raise NotImplementedError
