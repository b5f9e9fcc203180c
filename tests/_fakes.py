from __future__ import annotations

from typing import Any, Sequence

from pdf_edit.engines.base import DocumentEngine, PageSize, ParagraphWriter


def fake_pdf(*labels: str) -> bytes:
    """Bytes understood by `FakeEngine`: one page per label."""
    return ("FAKE:" + ",".join(labels)).encode("ascii")


class _FakeDoc:
    def __init__(self, labels: list[str]) -> None:
        self.labels = labels
        self.closed = False


class FakeEngine(DocumentEngine):
    """
    In-memory engine: a document is a list of page labels. Records every
    handle it opens and closes plus every primitive drawn.
    """

    PAGE_SIZE = PageSize(width=612.0, height=792.0)

    def __init__(self, *, text: str | None = None, fail_on_load: int | None = None) -> None:
        self.text = text
        self.fail_on_load = fail_on_load
        self.loads = 0
        self.opened: list[_FakeDoc] = []
        self.drawn: list[tuple[str, Any]] = []

    def backend_id(self) -> str:
        return "fake_backend"

    def load(self, data: bytes) -> Any:
        self.loads += 1
        if self.fail_on_load is not None and self.loads == self.fail_on_load:
            raise RuntimeError("corrupt document")
        if not data.startswith(b"FAKE:"):
            raise RuntimeError("not a fake document")
        body = data[len(b"FAKE:") :].decode("ascii")
        doc = _FakeDoc([s for s in body.split(",") if s])
        self.opened.append(doc)
        return doc

    def new_document(self) -> Any:
        doc = _FakeDoc([])
        self.opened.append(doc)
        return doc

    def page_count(self, doc: Any) -> int:
        return len(doc.labels)

    def page_size(self, doc: Any, index: int) -> PageSize:
        return self.PAGE_SIZE

    def import_pages(self, dest: Any, src: Any, indices: Sequence[int]) -> None:
        assert not src.closed
        dest.labels.extend(src.labels[i] for i in indices)

    def remove_page(self, doc: Any, index: int) -> None:
        del doc.labels[index]

    def draw_on_page(self, doc: Any, index: int, primitives: Sequence[Any]) -> None:
        for prim in primitives:
            self.drawn.append((doc.labels[index], prim))

    def extract_text(self, doc: Any) -> str:
        if self.text is not None:
            return self.text
        return "\n\n".join(doc.labels)

    def save(self, doc: Any) -> bytes:
        return fake_pdf(*doc.labels)

    def close(self, doc: Any) -> None:
        assert not doc.closed, "handle closed twice"
        doc.closed = True

    @property
    def all_closed(self) -> bool:
        return all(d.closed for d in self.opened)


def labels_of(data: bytes) -> list[str]:
    body = data[len(b"FAKE:") :].decode("ascii")
    return [s for s in body.split(",") if s]


class FakeParagraphWriter(ParagraphWriter):
    def __init__(self) -> None:
        self.blocks: list[str] = []

    def backend_id(self) -> str:
        return "fake_writer"

    def write(self, blocks: Sequence[str]) -> bytes:
        self.blocks = list(blocks)
        return "\n".join(blocks).encode("utf-8")
