from __future__ import annotations

"""
Data model for the bindings pipeline
====================================

Two layers live here:

- The JSON ABI model (`Param`, `AbiEntry`, `JsonAbi`) produced by
  `solbind.extract.parse_abi` and consumed by `solbind.idl.render_idl`.
- The pipeline bookkeeping types (`ContractArtifact`, `BindingInstance`)
  that the locator creates and the assembler owns through a `BindingSet`.

Structural identity of ABI entries is (kind, name, canonical input types);
`JsonAbi.dedup` keeps the first entry of every identity and preserves order.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .sol.expand import rs_ident

ENTRY_KINDS = ("function", "event", "error", "constructor", "fallback", "receive")
MUTABILITIES = ("pure", "view", "nonpayable", "payable")


# -----------------
# JSON ABI model
# -----------------

@dataclass
class Param:
    """
    One ABI parameter.

    `type` is the ABI type string as written in the artifact ("uint256",
    "tuple[]", "bytes32[4]"). Tuples keep their members in `components` and
    may carry a Solidity `internal_type` such as "struct Pool.Key[]".
    """
    name: str
    type: str
    internal_type: Optional[str] = None
    components: List["Param"] = field(default_factory=list)
    indexed: bool = False

    @property
    def is_tuple(self) -> bool:
        return self.type.startswith("tuple")

    @property
    def array_suffix(self) -> str:
        """Trailing array dimensions, e.g. "[][2]" for "tuple[][2]"."""
        idx = self.type.find("[")
        return self.type[idx:] if idx >= 0 else ""

    def canonical_type(self) -> str:
        """Signature fragment with tuples expanded: "(uint256,address)[]"."""
        if self.is_tuple:
            inner = ",".join(c.canonical_type() for c in self.components)
            return f"({inner}){self.array_suffix}"
        return self.type

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "type": self.type}
        if self.internal_type is not None:
            out["internalType"] = self.internal_type
        if self.components:
            out["components"] = [c.to_dict() for c in self.components]
        if self.indexed:
            out["indexed"] = True
        return out


@dataclass
class AbiEntry:
    kind: str                                   # one of ENTRY_KINDS
    name: str = ""
    inputs: List[Param] = field(default_factory=list)
    outputs: List[Param] = field(default_factory=list)
    state_mutability: str = "nonpayable"        # "pure" | "view" | "nonpayable" | "payable"
    anonymous: bool = False

    def signature(self) -> str:
        return f"{self.name}({','.join(p.canonical_type() for p in self.inputs)})"

    def structural_key(self) -> Tuple[str, str, Tuple[str, ...]]:
        return (self.kind, self.name, tuple(p.canonical_type() for p in self.inputs))


@dataclass
class JsonAbi:
    entries: List[AbiEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[AbiEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def of_kind(self, kind: str) -> List[AbiEntry]:
        return [e for e in self.entries if e.kind == kind]

    def kinds(self) -> List[str]:
        seen: List[str] = []
        for e in self.entries:
            if e.kind not in seen:
                seen.append(e.kind)
        return seen

    def dedup(self) -> "JsonAbi":
        """Drop structurally identical entries in place; first occurrence wins."""
        seen = set()
        kept: List[AbiEntry] = []
        for e in self.entries:
            key = e.structural_key()
            if key in seen:
                continue
            seen.add(key)
            kept.append(e)
        self.entries = kept
        return self


# ------------------------
# Pipeline bookkeeping
# ------------------------

@dataclass(frozen=True)
class ContractArtifact:
    """A discovered artifact file plus the binding name derived from it."""
    path: Path
    name: str = field(compare=False)

    @property
    def module_name(self) -> str:
        """Name used for the output file and the index declaration; keywords get a trailing `_`."""
        return rs_ident(self.name.lower())


class BindingInstance:
    """
    One contract's artifact and, once synthesized, its Rust expansion.

    The expansion is attached exactly once; a failed synthesis leaves the
    instance empty.
    """

    __slots__ = ("artifact", "_expansion")

    def __init__(self, artifact: ContractArtifact) -> None:
        self.artifact = artifact
        self._expansion: Optional[str] = None

    @property
    def name(self) -> str:
        return self.artifact.name

    @property
    def path(self) -> Path:
        return self.artifact.path

    @property
    def expansion(self) -> Optional[str]:
        return self._expansion

    @property
    def is_expanded(self) -> bool:
        return self._expansion is not None

    def attach_expansion(self, expansion: str) -> None:
        if self._expansion is not None:
            raise RuntimeError(f"binding {self.name!r} was already expanded")
        self._expansion = expansion

    def __repr__(self) -> str:  # pragma: no cover - trivial
        state = "expanded" if self.is_expanded else "empty"
        return f"BindingInstance({self.name!r}, {str(self.path)!r}, {state})"


__all__ = [
    "ENTRY_KINDS",
    "MUTABILITIES",
    "Param",
    "AbiEntry",
    "JsonAbi",
    "ContractArtifact",
    "BindingInstance",
]
