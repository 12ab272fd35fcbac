"""
ABI extraction from compiler artifacts.

An artifact is a JSON object with at least an `abi` array and, optionally, a
`bytecode` field (either a hex string or `{"object": "0x..."}` as emitted by
forge). The `abi` array is validated against a small JSON schema before it is
converted into the typed `JsonAbi` model.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from .errors import IoError, MalformedDocument, MissingInterface
from .model import MUTABILITIES, AbiEntry, ContractArtifact, JsonAbi, Param

log = logging.getLogger(__name__)

_PARAM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "name": {"type": "string"},
        "type": {"type": "string", "minLength": 1},
        "internalType": {"type": ["string", "null"]},
        "indexed": {"type": "boolean"},
        "components": {"type": "array", "items": {"$ref": "#/definitions/param"}},
    },
}

ABI_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "definitions": {"param": _PARAM_SCHEMA},
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "type": {"enum": ["function", "event", "error", "constructor", "fallback", "receive"]},
            "name": {"type": "string"},
            "inputs": {"type": "array", "items": {"$ref": "#/definitions/param"}},
            "outputs": {"type": "array", "items": {"$ref": "#/definitions/param"}},
            "stateMutability": {"enum": list(MUTABILITIES)},
            "anonymous": {"type": "boolean"},
        },
    },
}

_VALIDATOR = jsonschema.Draft7Validator(ABI_SCHEMA)

# Solidity accepts these shorthands; signatures must use the full names.
_TYPE_ALIASES = {"uint": "uint256", "int": "int256", "byte": "bytes1"}


@dataclass
class ExtractedAbi:
    abi: JsonAbi
    bytecode: Optional[str] = None


def _canonical_type(t: str) -> str:
    t = t.strip()
    idx = t.find("[")
    base, suffix = (t, "") if idx < 0 else (t[:idx], t[idx:])
    return _TYPE_ALIASES.get(base, base) + suffix


def _parse_param(raw: Dict[str, Any]) -> Param:
    return Param(
        name=str(raw.get("name") or ""),
        type=_canonical_type(raw["type"]),
        internal_type=raw.get("internalType"),
        components=[_parse_param(c) for c in raw.get("components") or []],
        indexed=bool(raw.get("indexed", False)),
    )


def _parse_entry(raw: Dict[str, Any]) -> AbiEntry:
    # Pre-0.5 artifacts omit "type" for functions and use "constant"/"payable".
    kind = raw.get("type", "function")
    mut = raw.get("stateMutability")
    if mut is None:
        if raw.get("constant"):
            mut = "view"
        elif raw.get("payable"):
            mut = "payable"
        else:
            mut = "nonpayable"
    return AbiEntry(
        kind=kind,
        name=str(raw.get("name") or ""),
        inputs=[_parse_param(p) for p in raw.get("inputs") or []],
        outputs=[_parse_param(p) for p in raw.get("outputs") or []],
        state_mutability=mut,
        anonymous=bool(raw.get("anonymous", False)),
    )


def parse_abi(entries: Any, *, path: Optional[Path] = None) -> JsonAbi:
    """
    Validate and convert a raw `abi` array into a `JsonAbi`.

    Raises:
        MalformedDocument: if the value does not match the ABI entry schema.
    """
    errors = sorted(_VALIDATOR.iter_errors(entries), key=lambda e: [str(p) for p in e.path])
    if errors:
        first = errors[0]
        where = "/".join(str(p) for p in first.path) or "<root>"
        raise MalformedDocument(f"invalid abi at {where}: {first.message}", path)

    abi = JsonAbi(entries=[_parse_entry(e) for e in entries])
    for entry in abi:
        if entry.kind in ("function", "event", "error") and not entry.name:
            raise MalformedDocument(f"{entry.kind} entry without a name", path)
    return abi


def _bytecode_of(doc: Dict[str, Any]) -> Optional[str]:
    bc = doc.get("bytecode")
    if isinstance(bc, dict):
        bc = bc.get("object")
    return bc if isinstance(bc, str) else None


def read_artifact(artifact: ContractArtifact) -> ExtractedAbi:
    """
    Read one artifact file and extract its ABI (and bytecode, if any).

    Raises:
        IoError: file cannot be read.
        MalformedDocument: content is not a JSON object / `abi` is malformed.
        MissingInterface: the document has no `abi` field.
    """
    log.info("reading artifact %s", artifact.path)
    try:
        raw = artifact.path.read_bytes()
    except OSError as e:
        raise IoError(f"cannot read artifact: {e.strerror or e}", artifact.path) from e

    try:
        doc = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDocument(f"not valid JSON: {e}", artifact.path) from e
    if not isinstance(doc, dict):
        raise MalformedDocument("top-level value must be an object", artifact.path)

    if "abi" not in doc:
        raise MissingInterface(artifact.path)

    abi = parse_abi(doc["abi"], path=artifact.path)
    return ExtractedAbi(abi=abi, bytecode=_bytecode_of(doc))


__all__ = ["ABI_SCHEMA", "ExtractedAbi", "parse_abi", "read_artifact"]
