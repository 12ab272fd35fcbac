"""
Artifact discovery.

Walks an artifacts directory and yields one `ContractArtifact` per compiler
output file that can carry an ABI. Build-info dumps and `*.metadata.json`
files are skipped. Order is whatever the filesystem walk produces.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterator, Union

from .errors import IoError
from .model import ContractArtifact

log = logging.getLogger(__name__)

BUILD_INFO_DIR = "build-info"
METADATA_SUFFIX = ".metadata"
ARTIFACT_EXT = ".json"

_NAME_STRIP_RE = re.compile(r"[\s\-]+")


def derive_binding_name(path: Union[str, Path]) -> str:
    """Base name up to the first '.', with whitespace and hyphens removed."""
    base = Path(path).name
    return _NAME_STRIP_RE.sub("", base.split(".", 1)[0])


def _is_candidate(path: Path) -> bool:
    if BUILD_INFO_DIR in path.parts:
        return False
    stem = path.name[: -len(ARTIFACT_EXT)]
    return not stem.endswith(METADATA_SUFFIX)


def _walk_error(err: OSError) -> None:
    raise IoError(f"cannot read artifacts directory: {err.strerror or err}", Path(err.filename or "."))


def iter_artifacts(root: Union[str, Path]) -> Iterator[ContractArtifact]:
    """
    Lazily yield artifacts found under `root`.

    Raises:
        IoError: if `root` (or any directory below it) cannot be listed.
    """
    root = Path(root)
    if not root.is_dir():
        raise IoError("artifacts root is not a readable directory", root)

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_walk_error):
        base = Path(dirpath)
        for fname in filenames:
            if not fname.endswith(ARTIFACT_EXT):
                continue
            path = base / fname
            if not _is_candidate(path.relative_to(root)):
                log.debug("skipping non-contract artifact %s", path)
                continue
            yield ContractArtifact(path=path, name=derive_binding_name(path))


__all__ = ["iter_artifacts", "derive_binding_name", "BUILD_INFO_DIR", "METADATA_SUFFIX"]
