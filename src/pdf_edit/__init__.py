"""
PDF editing operations over byte-level documents with a flat artifact store.

Every `run_*` entrypoint takes an explicit `PdfEditConfig`, writes its outputs
under `config.out_root` and returns an `OperationResult`; operational failures
are reported in the result, never raised.

Parameter objects (`WatermarkParams`, `TextStampParams`, `SignatureParams`,
`Redaction`) validate themselves on construction and raise
`pdf_edit.errors.ValidationError` before any `run_*` call is made; callers
building them from untrusted input catch it at that point (see `cli.main`).
Batch redaction payloads can instead be passed raw to `run_redact_multiple`,
which reports schema problems in its result.
"""

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
    StandardFont,
    TextStampParams,
    WatermarkParams,
    parse_redactions,
)
from .errors import ErrorKind
from .module import (
    run_add_signature,
    run_add_text,
    run_convert_docx,
    run_convert_markdown,
    run_extract,
    run_info,
    run_merge,
    run_redact,
    run_redact_multiple,
    run_remove,
    run_retrieve,
    run_split,
    run_watermark,
)
from .page_ranges import PageRange, parse_page_groups, parse_page_list

__all__ = [
    "ArtifactExtension",
    "EngineName",
    "ErrorKind",
    "OperationError",
    "OperationName",
    "OperationResult",
    "PageRange",
    "PdfEditConfig",
    "Redaction",
    "RetrieveResult",
    "SignatureParams",
    "StandardFont",
    "TextStampParams",
    "WatermarkParams",
    "parse_page_groups",
    "parse_page_list",
    "parse_redactions",
    "run_add_signature",
    "run_add_text",
    "run_convert_docx",
    "run_convert_markdown",
    "run_extract",
    "run_info",
    "run_merge",
    "run_redact",
    "run_redact_multiple",
    "run_remove",
    "run_retrieve",
    "run_split",
    "run_watermark",
]
