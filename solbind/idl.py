"""
Render a `JsonAbi` as Solidity interface text.

The output is the intermediate form that `solbind.sol` re-tokenizes and
parses. Tuple parameters become struct declarations: the struct name comes
from the `internalType` ("struct Pool.Key[]" -> "Key") when present, else an
anonymous `Tuple<n>` name is assigned per distinct member layout. Two
layouts behind one short name ("LibA.Params", "LibB.Params") are told apart
by the qualified name of the later one ("LibB_Params").

Parameter names that the parser would read as modifiers (`indexed`,
`memory`, `payable`, ...) get a trailing underscore.

Layout of the rendered interface:

    interface <Name> {
        struct ...;      // dependencies first
        event ...;
        error ...;
        constructor(...);
        fallback() external ...;
        receive() external payable;
        function ...;
    }
"""

from __future__ import annotations

import re
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import SynthesisError
from .model import AbiEntry, JsonAbi, Param

INDENT = "    "

_NON_ID_CHAR = re.compile(r"[^A-Za-z0-9_]")
_DYNAMIC_BASES = ("string", "bytes")

# Words the interface parser reads as modifiers when they follow a type.
_CONTEXT_WORDS = frozenset(
    ("indexed", "memory", "storage", "calldata", "payable", "anonymous", "returns")
)


def _ident(name: str) -> str:
    name = _NON_ID_CHAR.sub("_", name.strip())
    if name and name[0].isdigit():
        name = "_" + name
    if name in _CONTEXT_WORDS:
        name += "_"
    return name


def _struct_names_from_internal(internal: Optional[str]) -> Optional[Tuple[str, str]]:
    """("Params", "LibA_Params") for "struct LibA.Params[]"; None for non-struct types."""
    if not internal or not internal.startswith("struct "):
        return None
    base = internal[len("struct "):].split("[", 1)[0].strip()
    short = _ident(base.rsplit(".", 1)[-1])
    if not short:
        return None
    return short, _ident(base.replace(".", "_"))


class _StructTable:
    """
    Collects struct declarations in dependency order.

    A struct keeps its short name unless another layout already took it; the
    later one falls back to its qualified name ("LibB_Params") and then to a
    numeric suffix.
    """

    def __init__(self, binding: str) -> None:
        self.binding = binding
        self.layouts: Dict[str, str] = {}      # struct name -> member signature
        self.anonymous: Dict[str, str] = {}    # member signature -> assigned name
        self.decls: List[str] = []

    def type_of(self, p: Param) -> str:
        if not p.is_tuple:
            return p.type
        return self._declare(p) + p.array_suffix

    def _candidates(self, p: Param, layout: str) -> Iterator[str]:
        names = _struct_names_from_internal(p.internal_type)
        if names is None:
            base = self.anonymous.get(layout)
            if base is None:
                base = f"Tuple{len(self.anonymous)}"
                self.anonymous[layout] = base
            yield base
        else:
            yield names[0]
            base = names[1]
            if base != names[0]:
                yield base
        for n in count(1):
            yield f"{base}_{n}"

    def _declare(self, p: Param) -> str:
        fields = [self.type_of(c) for c in p.components]
        layout = ",".join(c.canonical_type() for c in p.components)
        for name in self._candidates(p, layout):
            known = self.layouts.get(name)
            if known == layout:
                return name
            if known is None:
                break
        self.layouts[name] = layout
        members = "".join(
            f" {ty} {_ident(c.name) or f'_{i}'};" for i, (ty, c) in enumerate(zip(fields, p.components))
        )
        self.decls.append(f"struct {name} {{{members} }}")
        return name


def _is_dynamic(p: Param, sol_type: str) -> bool:
    return p.is_tuple or "[" in sol_type or sol_type in _DYNAMIC_BASES


def _params(
    params: List[Param],
    structs: _StructTable,
    *,
    located: bool = False,
    indexed: bool = False,
) -> str:
    out = []
    for p in params:
        ty = structs.type_of(p)
        parts = [ty]
        if indexed and p.indexed:
            parts.append("indexed")
        if located and _is_dynamic(p, ty):
            parts.append("memory")
        if p.name:
            parts.append(_ident(p.name))
        out.append(" ".join(parts))
    return ", ".join(out)


def _mutability(entry: AbiEntry) -> str:
    return "" if entry.state_mutability == "nonpayable" else f" {entry.state_mutability}"


def _render_entry(entry: AbiEntry, structs: _StructTable) -> str:
    if entry.kind == "function":
        line = f"function {entry.name}({_params(entry.inputs, structs, located=True)}) external{_mutability(entry)}"
        if entry.outputs:
            line += f" returns ({_params(entry.outputs, structs, located=True)})"
        return line + ";"
    if entry.kind == "event":
        suffix = " anonymous" if entry.anonymous else ""
        return f"event {entry.name}({_params(entry.inputs, structs, indexed=True)}){suffix};"
    if entry.kind == "error":
        return f"error {entry.name}({_params(entry.inputs, structs)});"
    if entry.kind == "constructor":
        return f"constructor({_params(entry.inputs, structs, located=True)}){_mutability(entry)};"
    if entry.kind == "fallback":
        return f"fallback() external{_mutability(entry)};"
    if entry.kind == "receive":
        return "receive() external payable;"
    raise SynthesisError(structs.binding, f"unsupported abi entry kind `{entry.kind}`")


_SECTION_ORDER: Tuple[str, ...] = ("event", "error", "constructor", "fallback", "receive", "function")


def render_idl(abi: JsonAbi, name: str) -> str:
    """Render `abi` as `interface <name> { ... }`."""
    structs = _StructTable(name)
    body: List[str] = []
    for kind in _SECTION_ORDER:
        for entry in abi.of_kind(kind):
            body.append(_render_entry(entry, structs))

    lines = [f"interface {name} {{"]
    lines.extend(INDENT + d for d in structs.decls)
    lines.extend(INDENT + b for b in body)
    lines.append("}")
    return "\n".join(lines) + "\n"


__all__ = ["render_idl"]
