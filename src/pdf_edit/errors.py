from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    PROCESSING = "processing"


class PdfEditError(Exception):
    """
    Base class for failures raised inside the package.

    Public `run_*` entrypoints convert these into `OperationResult` failures;
    they are never the caller-facing signal.
    """

    kind: ErrorKind = ErrorKind.PROCESSING
    default_code: str = "PROCESSING_FAILED"

    def __init__(self, message: str, *, code: str | None = None, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail = detail


class ValidationError(PdfEditError, ValueError):
    kind = ErrorKind.VALIDATION
    default_code = "INVALID_PARAMETER"


class ParseError(ValidationError):
    """Malformed page-range expression; `token` is the offending item."""

    default_code = "RANGE_SYNTAX"

    def __init__(self, message: str, *, token: str) -> None:
        super().__init__(message, detail={"token": token})
        self.token = token


class NotFoundError(PdfEditError):
    kind = ErrorKind.NOT_FOUND
    default_code = "ARTIFACT_NOT_FOUND"


class AccessDeniedError(PdfEditError):
    kind = ErrorKind.ACCESS_DENIED
    default_code = "PATH_ESCAPE"


class ProcessingError(PdfEditError):
    kind = ErrorKind.PROCESSING
    default_code = "PROCESSING_FAILED"

    def __init__(self, message: str, *, operation: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message, detail={"operation": operation, **(detail or {})})
        self.operation = operation
