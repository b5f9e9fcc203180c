from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Callable, Sequence, TypeVar

from .artifacts import ArtifactStore
from .compose import extract_pages, merge_documents, page_count_of, remove_pages, split_document
from .contracts import (
    ArtifactExtension,
    EngineName,
    OperationError,
    OperationName,
    OperationResult,
    PdfEditConfig,
    Redaction,
    RetrieveResult,
    SignatureParams,
    TextStampParams,
    WatermarkParams,
    parse_redactions,
)
from .convert import convert_to_docx, convert_to_markdown
from .engines import DocumentEngine, DocxParagraphWriter, ParagraphWriter, Pypdfium2Engine
from .errors import ErrorKind, PdfEditError, ProcessingError
from .overlay import apply_redaction, apply_redactions, apply_signature, apply_text_stamp, apply_watermark

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Completes "Failed to ..." in wrapped processing errors.
_DESCRIPTIONS: dict[OperationName, str] = {
    OperationName.MERGE: "merge PDFs",
    OperationName.SPLIT: "split PDF",
    OperationName.EXTRACT: "extract pages",
    OperationName.REMOVE: "remove pages",
    OperationName.WATERMARK: "add watermark",
    OperationName.ADD_TEXT: "add text",
    OperationName.ADD_SIGNATURE: "add signature",
    OperationName.REDACT: "redact content",
    OperationName.REDACT_MULTIPLE: "redact content",
    OperationName.CONVERT_MARKDOWN: "convert to Markdown",
    OperationName.CONVERT_DOCX: "convert to DOCX",
    OperationName.INFO: "get PDF info",
    OperationName.RETRIEVE: "download file",
}


def _get_engine(engine: EngineName) -> DocumentEngine:
    if engine == EngineName.PYPDFIUM2:
        return Pypdfium2Engine()
    raise ValueError(f"Unsupported document engine: {engine}")


def _get_paragraph_writer() -> ParagraphWriter:
    return DocxParagraphWriter()


def _operation_error(error: PdfEditError) -> OperationError:
    return OperationError(kind=error.kind, code=error.code, message=error.message, detail=error.detail)


def _as_processing_error(operation: OperationName, exc: Exception) -> ProcessingError:
    err = ProcessingError(
        f"Failed to {_DESCRIPTIONS[operation]}: {exc}",
        operation=operation.value,
        detail={"error": repr(exc)},
    )
    err.__cause__ = exc
    return err


def _execute(operation: OperationName, action: Callable[[], OperationResult]) -> OperationResult:
    """
    Run one operation and fold every failure into a failed OperationResult.
    """

    try:
        result = action()
    except PdfEditError as e:
        error = e
        if e.kind == ErrorKind.PROCESSING:
            logger.error("%s failed: %s", operation.value, e.message, exc_info=True)
        else:
            logger.warning("%s rejected: %s", operation.value, e.message)
    except Exception as e:
        error = _as_processing_error(operation, e)
        logger.exception("%s failed: %s", operation.value, error.message)
    else:
        logger.info("%s succeeded: %s", operation.value, result.output_reference or result.message)
        return result

    return OperationResult(
        success=False,
        message=error.message,
        output_reference=None,
        error=_operation_error(error),
        meta={"operation": operation.value},
    )


def _store(config: PdfEditConfig) -> ArtifactStore:
    return ArtifactStore(config.out_root)


def _persist(
    store: ArtifactStore,
    data: bytes,
    *,
    original_filename: str | None,
    tag: str,
    extension: ArtifactExtension = ArtifactExtension.PDF,
) -> str:
    name = store.name_for(original_filename, tag, extension)
    return store.persist(data, name).stored_name


def _edit_in_place(engine: DocumentEngine, data: bytes, edit: Callable[[Any], T]) -> tuple[bytes, T]:
    """Load, apply `edit` to the open document, save; the handle is always closed."""

    with ExitStack() as stack:
        doc = engine.load(data)
        stack.callback(engine.close, doc)
        outcome = edit(doc)
        return engine.save(doc), outcome


def run_merge(
    *, config: PdfEditConfig, sources: Sequence[bytes], original_filename: str | None = None
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        merged = merge_documents(engine, sources)
        name = _persist(_store(config), merged, original_filename=original_filename, tag="merged")
        return OperationResult(
            success=True,
            message="PDFs merged successfully",
            output_reference=name,
            meta={"source_count": len(sources)},
        )

    return _execute(OperationName.MERGE, action)


def run_split(
    *,
    config: PdfEditConfig,
    data: bytes,
    groups: str | None = None,
    original_filename: str | None = None,
) -> OperationResult:
    """
    Split into single pages, or into one document per ";"-separated group of
    `groups` (e.g. "1-3;4,6").
    """

    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        outputs = split_document(engine, data, groups)
        legacy = groups is None or not groups.strip()
        store = _store(config)

        names: list[str] = []
        for n, output in enumerate(outputs, start=1):
            tag = f"page_{n}" if legacy else f"part_{n}"
            names.append(_persist(store, output, original_filename=original_filename, tag=tag))

        unit = "pages" if legacy else "documents"
        return OperationResult(
            success=True,
            message=f"PDF split into {len(names)} {unit}",
            output_reference=",".join(names) if names else None,
            meta={"output_count": len(names)},
        )

    return _execute(OperationName.SPLIT, action)


def run_extract(
    *,
    config: PdfEditConfig,
    data: bytes,
    pages: Sequence[int] | str,
    original_filename: str | None = None,
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output = extract_pages(engine, data, pages)
        name = _persist(_store(config), output, original_filename=original_filename, tag="extracted")
        return OperationResult(success=True, message="Pages extracted successfully", output_reference=name)

    return _execute(OperationName.EXTRACT, action)


def run_remove(
    *,
    config: PdfEditConfig,
    data: bytes,
    pages: Sequence[int] | str,
    original_filename: str | None = None,
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output = remove_pages(engine, data, pages)
        name = _persist(_store(config), output, original_filename=original_filename, tag="removed_pages")
        return OperationResult(success=True, message="Pages removed successfully", output_reference=name)

    return _execute(OperationName.REMOVE, action)


def run_watermark(
    *,
    config: PdfEditConfig,
    data: bytes,
    params: WatermarkParams,
    original_filename: str | None = None,
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output, stamped = _edit_in_place(engine, data, lambda doc: apply_watermark(engine, doc, params))
        name = _persist(_store(config), output, original_filename=original_filename, tag="watermarked")
        return OperationResult(
            success=True,
            message="Watermark added successfully",
            output_reference=name,
            meta={"pages_stamped": stamped},
        )

    return _execute(OperationName.WATERMARK, action)


def run_add_text(
    *,
    config: PdfEditConfig,
    data: bytes,
    params: TextStampParams,
    original_filename: str | None = None,
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output, _ = _edit_in_place(engine, data, lambda doc: apply_text_stamp(engine, doc, params))
        name = _persist(_store(config), output, original_filename=original_filename, tag="text_added")
        return OperationResult(success=True, message="Text added successfully", output_reference=name)

    return _execute(OperationName.ADD_TEXT, action)


def run_add_signature(
    *,
    config: PdfEditConfig,
    data: bytes,
    params: SignatureParams,
    original_filename: str | None = None,
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output, _ = _edit_in_place(engine, data, lambda doc: apply_signature(engine, doc, params))
        name = _persist(_store(config), output, original_filename=original_filename, tag="signed")
        return OperationResult(success=True, message="Signature added successfully", output_reference=name)

    return _execute(OperationName.ADD_SIGNATURE, action)


def run_redact(
    *,
    config: PdfEditConfig,
    data: bytes,
    redaction: Redaction,
    original_filename: str | None = None,
) -> OperationResult:
    """Single-area redaction; a page outside the document fails the call."""

    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output, _ = _edit_in_place(engine, data, lambda doc: apply_redaction(engine, doc, redaction))
        name = _persist(_store(config), output, original_filename=original_filename, tag="redacted")
        return OperationResult(success=True, message="Content redacted successfully", output_reference=name)

    return _execute(OperationName.REDACT, action)


def run_redact_multiple(
    *,
    config: PdfEditConfig,
    data: bytes,
    redactions: str | bytes | Sequence[Any],
    original_filename: str | None = None,
) -> OperationResult:
    """
    Batch redaction. The payload is schema-checked up front; records on pages
    outside the document are skipped and listed in `meta["skipped"]`.
    """

    def action() -> OperationResult:
        records = parse_redactions(redactions)
        engine = _get_engine(config.engine)
        output, outcome = _edit_in_place(engine, data, lambda doc: apply_redactions(engine, doc, records))
        name = _persist(_store(config), output, original_filename=original_filename, tag="redacted")
        return OperationResult(
            success=True,
            message="Content redacted successfully",
            output_reference=name,
            meta={
                "applied": len(outcome.applied),
                "skipped": [r.page for r in outcome.skipped],
            },
        )

    return _execute(OperationName.REDACT_MULTIPLE, action)


def run_convert_markdown(
    *, config: PdfEditConfig, data: bytes, original_filename: str | None = None
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output = convert_to_markdown(engine, data)
        name = _persist(
            _store(config),
            output,
            original_filename=original_filename,
            tag="converted",
            extension=ArtifactExtension.MD,
        )
        return OperationResult(success=True, message="PDF converted to Markdown", output_reference=name)

    return _execute(OperationName.CONVERT_MARKDOWN, action)


def run_convert_docx(
    *, config: PdfEditConfig, data: bytes, original_filename: str | None = None
) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        output = convert_to_docx(engine, _get_paragraph_writer(), data)
        name = _persist(
            _store(config),
            output,
            original_filename=original_filename,
            tag="converted",
            extension=ArtifactExtension.DOCX,
        )
        return OperationResult(success=True, message="PDF converted to DOCX", output_reference=name)

    return _execute(OperationName.CONVERT_DOCX, action)


def run_info(*, config: PdfEditConfig, data: bytes) -> OperationResult:
    def action() -> OperationResult:
        engine = _get_engine(config.engine)
        count = page_count_of(engine, data)
        return OperationResult(
            success=True,
            message=f"Pages: {count}",
            output_reference=None,
            meta={"page_count": count},
        )

    return _execute(OperationName.INFO, action)


def run_retrieve(*, config: PdfEditConfig, filename: str | None) -> RetrieveResult:
    """
    Read back a stored artifact. Failures carry kind `validation`,
    `access_denied` or `not_found`.
    """

    try:
        data = _store(config).retrieve(filename)
    except PdfEditError as e:
        logger.warning("retrieve rejected %r: %s", filename, e.message)
        return RetrieveResult(ok=False, filename=filename, error=_operation_error(e))
    except OSError as e:
        error = _as_processing_error(OperationName.RETRIEVE, e)
        logger.exception("retrieve failed for %r", filename)
        return RetrieveResult(ok=False, filename=filename, error=_operation_error(error))

    return RetrieveResult(ok=True, filename=filename, data=data)
