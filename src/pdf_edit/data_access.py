from __future__ import annotations

import re
from pathlib import Path

from .errors import AccessDeniedError, ValidationError

# Starts with an alphanumeric, interior limited to [A-Za-z0-9._-], ends with a
# known artifact extension (which also guarantees an alphanumeric last char).
ARTIFACT_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*\.(?:pdf|md|docx)$")

# Upper bound on the original-name part of generated artifact names.
STEM_MAX_CHARS = 100


def validate_artifact_name(filename: str | None) -> str:
    """
    Syntactic checks on a caller-supplied artifact name, in order:
    empty/whitespace, embedded NUL, allowed character pattern.
    """

    if filename is None or not filename.strip():
        raise ValidationError("Filename must not be empty", code="INVALID_FILENAME")
    if "\x00" in filename:
        raise ValidationError("Filename contains a null byte", code="INVALID_FILENAME")
    if not ARTIFACT_NAME_RE.fullmatch(filename):
        raise ValidationError(
            f"Invalid filename: {filename!r}",
            code="INVALID_FILENAME",
            detail={"filename": filename},
        )
    return filename


def resolve_under_root(*, root: Path, filename: str) -> Path:
    """
    Resolve `filename` under an explicit artifact root.

    Both sides are canonicalized (symlinks resolved) before the containment
    check, so a link inside the root pointing elsewhere is rejected.
    """

    canonical_root = root.expanduser().resolve()
    candidate = (canonical_root / filename).resolve()

    if candidate == canonical_root or not candidate.is_relative_to(canonical_root):
        raise AccessDeniedError(
            f"Access denied: {filename!r} resolves outside the artifact directory",
            detail={"filename": filename},
        )

    return candidate


def sanitize_stem(original_filename: str) -> str:
    """
    Filesystem-safe stem of an uploaded filename, without a trailing ".pdf".

    Truncated to STEM_MAX_CHARS; returns "" when nothing usable remains.
    """

    s = original_filename.replace("\\", "/").split("/")[-1]
    if s.lower().endswith(".pdf"):
        s = s[: -len(".pdf")]
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("._-")
    return s[:STEM_MAX_CHARS].strip("._-")
