from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Callable

from .contracts import Artifact, ArtifactExtension, OperationResult
from .data_access import resolve_under_root, sanitize_stem, validate_artifact_name
from .errors import NotFoundError

logger = logging.getLogger(__name__)

SUFFIX_LENGTH = 8


def _random_suffix() -> str:
    return uuid.uuid4().hex[:SUFFIX_LENGTH]


class ArtifactStore:
    """
    Flat directory of operation outputs.

    Names carry a random suffix, so concurrent writers never collide and no
    locking or index file is needed; existing artifacts are never rewritten.
    """

    def __init__(self, root: Path, *, suffix_factory: Callable[[], str] = _random_suffix) -> None:
        self.root = root
        self._suffix_factory = suffix_factory

    def name_for(
        self,
        original_filename: str | None,
        operation_tag: str,
        extension: ArtifactExtension,
    ) -> str:
        """
        "<stem>_<tag>_<suffix>.<ext>", or "<tag>_<suffix>.<ext>" without a
        usable original name.
        """

        stem = sanitize_stem(original_filename) if original_filename else ""
        base = f"{stem}_{operation_tag}" if stem else operation_tag
        return f"{base}_{self._suffix_factory()}.{ArtifactExtension(extension).value}"

    def persist(self, data: bytes, name: str) -> Artifact:
        validate_artifact_name(name)
        self.root.mkdir(parents=True, exist_ok=True)
        path = resolve_under_root(root=self.root, filename=name)

        with path.open("xb") as f:
            f.write(data)

        logger.debug("Persisted artifact %s (%d bytes)", name, len(data))
        return Artifact(
            stored_name=name,
            data=data,
            extension=ArtifactExtension(path.suffix.lstrip(".")),
            path=path,
        )

    def retrieve(self, filename: str | None) -> bytes:
        filename = validate_artifact_name(filename)
        path = resolve_under_root(root=self.root, filename=filename)

        if not path.is_file():
            raise NotFoundError(f"File not found: {filename}", detail={"filename": filename})

        return path.read_bytes()


def serialize_operation_result(result: OperationResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_operation_result_json(*, result: OperationResult, out_file: Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_operation_result(result), encoding="utf-8")
