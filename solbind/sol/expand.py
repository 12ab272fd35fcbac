"""
Rust expansion of a parsed Solidity interface.

`expand(contract)` returns the source text of one Rust module named after
the interface. The module holds:

- one struct per Solidity struct,
- `<fn>Call` / `<fn>Return` structs per function, with `SIGNATURE` and the
  4-byte `SELECTOR`,
- one struct per event (`SIGNATURE_HASH`) and per custom error (`SELECTOR`),
- `constructorCall` when the interface declares a constructor,
- `<Name>Calls` / `<Name>Errors` / `<Name>Events` enums with selector tables,
- `<Name>Instance<P>` plus a `new` helper when `#[sol(rpc)]` is present.

Overloaded names get `_0`, `_1`, ... suffixes in declaration order. Types map
onto `alloy_sol_types::private` re-exports; widths with a native Rust integer
use it directly.

Recognised attributes on the interface:

    #[sol(rpc)]            emit the instance type
    #[sol(all_derives)]    add Default and Hash to every derive list
    #[derive(A, B)]        extra derives on every generated type
    #[doc = "..."]         extra module documentation
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from Crypto.Hash import keccak

from .parser import (
    Attribute,
    ItemContract,
    ItemError,
    ItemEvent,
    ItemFunction,
    ItemStruct,
    TypeSpec,
    VarDecl,
)

PRIVATE = "alloy_sol_types::private"
ADDRESS_TY = f"{PRIVATE}::Address"

BASE_DERIVES = ("Clone", "Debug", "PartialEq", "Eq")
ALL_DERIVES = ("Default", "Hash")
SOL_FLAGS = ("rpc", "all_derives")

MODULE_ALLOWS = (
    "non_camel_case_types",
    "non_snake_case",
    "clippy::pub_underscore_fields",
    "clippy::style",
    "clippy::empty_structs_with_brackets",
)

_RS_KEYWORDS = {
    "as", "break", "const", "continue", "crate", "else", "enum", "extern", "false", "fn", "for", "if", "impl",
    "in", "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return", "self", "Self", "static", "struct",
    "super", "trait", "true", "type", "unsafe", "use", "where", "while", "async", "await", "dyn", "abstract", "become",
    "box", "do", "final", "macro", "override", "priv", "typeof", "unsized", "virtual", "yield", "try",
}

_INT_RE = re.compile(r"^(u?)int(\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")
_NATIVE_WIDTHS = (8, 16, 32, 64, 128)


class ExpandError(ValueError):
    """The interface cannot be expanded (bad type, unknown struct, bad attribute)."""


def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def rs_ident(name: str) -> str:
    s = "".join(ch if (ch.isalnum() or ch == "_") else "_" for ch in name.strip())
    if not s:
        s = "x"
    if s in _RS_KEYWORDS:
        s += "_"
    if s[0].isdigit():
        s = "_" + s
    return s


def _byte_array(digest: bytes) -> str:
    return "[" + ", ".join(f"0x{b:02x}" for b in digest) + "]"


# --- Types --------------------------------------------------------------------

@dataclass
class _TypeInfo:
    abi: str            # canonical ABI fragment, structs expanded to tuples
    rust: str


class _Types:
    def __init__(self, structs: Sequence[ItemStruct]) -> None:
        self.structs: Dict[str, ItemStruct] = {}
        for st in structs:
            if st.name in self.structs:
                raise ExpandError(f"duplicate struct `{st.name}`")
            self.structs[st.name] = st
        self._resolving: List[str] = []

    def _elementary(self, base: str) -> Optional[_TypeInfo]:
        if base in ("address", "bool", "string", "bytes"):
            rust = {
                "address": ADDRESS_TY,
                "bool": "bool",
                "string": f"{PRIVATE}::String",
                "bytes": f"{PRIVATE}::Bytes",
            }[base]
            return _TypeInfo(base, rust)
        if base == "function":
            # external function pointer: address + selector
            return _TypeInfo(base, f"{PRIVATE}::FixedBytes<24>")
        m = _INT_RE.match(base)
        if m:
            signed = m.group(1) == ""
            bits = int(m.group(2)) if m.group(2) else 256
            if bits % 8 or not 8 <= bits <= 256:
                raise ExpandError(f"invalid integer width in `{base}`")
            prefix = "i" if signed else "u"
            abi = f"{'int' if signed else 'uint'}{bits}"
            if bits in _NATIVE_WIDTHS:
                return _TypeInfo(abi, f"{prefix}{bits}")
            return _TypeInfo(abi, f"{PRIVATE}::primitives::aliases::{prefix.upper()}{bits}")
        m = _FIXED_BYTES_RE.match(base)
        if m:
            n = int(m.group(1))
            if not 1 <= n <= 32:
                raise ExpandError(f"invalid fixed bytes width in `{base}`")
            return _TypeInfo(base, f"{PRIVATE}::FixedBytes<{n}>")
        return None

    def _struct(self, base: str) -> _TypeInfo:
        name = base.rsplit(".", 1)[-1]
        st = self.structs.get(name)
        if st is None:
            raise ExpandError(f"unknown type `{base}`")
        if name in self._resolving:
            raise ExpandError(f"recursive struct `{name}`")
        self._resolving.append(name)
        try:
            inner = ",".join(self.resolve(f.ty).abi for f in st.fields)
        finally:
            self._resolving.pop()
        return _TypeInfo(f"({inner})", name)

    def resolve(self, ty: TypeSpec) -> _TypeInfo:
        info = self._elementary(ty.base) or self._struct(ty.base)
        abi, rust = info.abi, info.rust
        for dim in ty.dims:
            if dim is None:
                abi, rust = f"{abi}[]", f"{PRIVATE}::Vec<{rust}>"
            else:
                abi, rust = f"{abi}[{dim}]", f"[{rust}; {dim}]"
        return _TypeInfo(abi, rust)


# --- Output helpers -----------------------------------------------------------

class _Out:
    def __init__(self) -> None:
        self.lines: List[str] = []
        self.depth = 0

    def line(self, text: str = "") -> None:
        self.lines.append(("    " * self.depth + text) if text else "")

    def open(self, text: str) -> None:
        self.line(text + " {")
        self.depth += 1

    def close(self, suffix: str = "") -> None:
        self.depth -= 1
        self.line("}" + suffix)

    def doc(self, *lines: str) -> None:
        for text in lines:
            self.line(f"///{' ' + text if text else ''}")

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


def _sol_params(params: Sequence[VarDecl]) -> str:
    out = []
    for p in params:
        bits = [str(p.ty)]
        if p.indexed:
            bits.append("indexed")
        if p.name:
            bits.append(p.name)
        out.append(" ".join(bits))
    return ", ".join(out)


def _sol_decl(item: object) -> str:
    if isinstance(item, ItemFunction):
        head = f"function {item.name}" if item.kind == "function" else item.kind
        s = f"{head}({_sol_params(item.params)})"
        if item.visibility:
            s += f" {item.visibility}"
        if item.mutability != "nonpayable":
            s += f" {item.mutability}"
        if item.returns:
            s += f" returns ({_sol_params(item.returns)})"
        return s + ";"
    if isinstance(item, ItemEvent):
        return f"event {item.name}({_sol_params(item.params)}){' anonymous' if item.anonymous else ''};"
    if isinstance(item, ItemError):
        return f"error {item.name}({_sol_params(item.params)});"
    if isinstance(item, ItemStruct):
        return f"struct {item.name} {{ {' '.join(f'{f.ty} {f.name};' for f in item.fields)} }}"
    raise TypeError(f"not a declaration: {item!r}")


def _overload_names(names: Sequence[str]) -> List[str]:
    counts: Dict[str, int] = {}
    for n in names:
        counts[n] = counts.get(n, 0) + 1
    seen: Dict[str, int] = {}
    out = []
    for n in names:
        if counts[n] == 1:
            out.append(n)
            continue
        idx = seen.get(n, 0)
        seen[n] = idx + 1
        out.append(f"{n}_{idx}")
    return out


# --- Expander -----------------------------------------------------------------

@dataclass
class _Options:
    rpc: bool = False
    derives: List[str] = field(default_factory=lambda: list(BASE_DERIVES))
    docs: List[str] = field(default_factory=list)

    @property
    def derive_attr(self) -> str:
        return f"#[derive({', '.join(self.derives)})]"


def _options(attrs: Sequence[Attribute]) -> _Options:
    opts = _Options()
    for attr in attrs:
        if attr.path == "sol":
            for flag in attr.args:
                if flag not in SOL_FLAGS:
                    raise ExpandError(f"unknown `sol` attribute `{flag}`")
                if flag == "rpc":
                    opts.rpc = True
                else:
                    opts.derives.extend(d for d in ALL_DERIVES if d not in opts.derives)
        elif attr.path == "derive":
            if not attr.args:
                raise ExpandError("`derive` requires at least one argument")
            opts.derives.extend(d for d in attr.args if d not in opts.derives)
        elif attr.path == "doc" and attr.value is not None:
            opts.docs.append(attr.value.strip("\"'").strip())
        else:
            raise ExpandError(f"unsupported attribute `{attr}`")
    return opts


class _Expander:
    def __init__(self, contract: ItemContract, opts: _Options) -> None:
        self.c = contract
        self.opts = opts
        self.types = _Types(contract.of_type(ItemStruct))
        self.out = _Out()

    # fields ------------------------------------------------------------------

    def _fields(self, params: Sequence[VarDecl]) -> List[Tuple[str, _TypeInfo]]:
        fields = []
        used = set()
        for i, p in enumerate(params):
            name = rs_ident(p.name) if p.name else f"_{i}"
            if name in used:
                raise ExpandError(f"duplicate parameter name `{p.name}`")
            used.add(name)
            fields.append((name, self.types.resolve(p.ty)))
        return fields

    def _signature(self, name: str, params: Sequence[VarDecl]) -> str:
        return f"{name}({','.join(self.types.resolve(p.ty).abi for p in params)})"

    def _struct(self, name: str, fields: Sequence[Tuple[str, _TypeInfo]]) -> None:
        self.out.line(self.opts.derive_attr)
        if not fields:
            self.out.line(f"pub struct {name} {{}}")
            return
        self.out.open(f"pub struct {name}")
        for fname, info in fields:
            self.out.line(f"pub {fname}: {info.rust},")
        self.out.close()

    def _consts(self, name: str, consts: Sequence[Tuple[str, str, str]]) -> None:
        self.out.open(f"impl {name}")
        for cname, cty, value in consts:
            self.out.line(f"pub const {cname}: {cty} = {value};")
        self.out.close()

    def _sol_doc(self, item: object) -> None:
        self.out.doc("```solidity", _sol_decl(item), "```")

    # items -------------------------------------------------------------------

    def structs(self) -> None:
        for st in self.c.of_type(ItemStruct):
            self.out.doc(f"Solidity struct `{st.name}`.")
            self._sol_doc(st)
            self._struct(rs_ident(st.name), [(rs_ident(f.name or ""), self.types.resolve(f.ty)) for f in st.fields])
            self.out.line()

    def events(self) -> List[Tuple[str, str]]:
        events = self.c.of_type(ItemEvent)
        variants = []
        for ev, rname in zip(events, _overload_names([e.name for e in events])):
            sig = self._signature(ev.name, ev.params)
            topic = keccak256(sig.encode("utf-8"))
            self.out.doc(f"Event with signature `{sig}` and selector `0x{topic.hex()}`.")
            self._sol_doc(ev)
            ident = rs_ident(rname)
            self._struct(ident, self._fields(ev.params))
            self._consts(ident, [
                ("SIGNATURE", "&'static str", f'"{sig}"'),
                ("SIGNATURE_HASH", "[u8; 32]", _byte_array(topic)),
                ("ANONYMOUS", "bool", "true" if ev.anonymous else "false"),
            ])
            self.out.line()
            variants.append((ident, ident))
        return variants

    def errors(self) -> List[Tuple[str, str]]:
        errors = self.c.of_type(ItemError)
        variants = []
        for er, rname in zip(errors, _overload_names([e.name for e in errors])):
            sig = self._signature(er.name, er.params)
            selector = keccak256(sig.encode("utf-8"))[:4]
            self.out.doc(f"Custom error with signature `{sig}` and selector `0x{selector.hex()}`.")
            self._sol_doc(er)
            ident = rs_ident(rname)
            self._struct(ident, self._fields(er.params))
            self._consts(ident, [
                ("SIGNATURE", "&'static str", f'"{sig}"'),
                ("SELECTOR", "[u8; 4]", _byte_array(selector)),
            ])
            self.out.line()
            variants.append((ident, ident))
        return variants

    def special_functions(self) -> None:
        for fn in self.c.of_type(ItemFunction):
            if fn.kind == "constructor":
                self.out.doc("Constructor arguments.")
                self._sol_doc(fn)
                self._struct("constructorCall", self._fields(fn.params))
                self.out.line()

    def functions(self) -> List[Tuple[str, str, ItemFunction]]:
        fns = [f for f in self.c.of_type(ItemFunction) if f.kind == "function"]
        variants = []
        for fn, rname in zip(fns, _overload_names([f.name or "" for f in fns])):
            sig = self._signature(fn.name or "", fn.params)
            selector = keccak256(sig.encode("utf-8"))[:4]
            call, ret = rs_ident(f"{rname}Call"), rs_ident(f"{rname}Return")
            self.out.doc(f"Function with signature `{sig}` and selector `0x{selector.hex()}`.")
            self._sol_doc(fn)
            self._struct(call, self._fields(fn.params))
            self.out.doc(f"Container type for the return parameters of [`{sig}`]({call}).")
            self._struct(ret, self._fields(fn.returns))
            self._consts(call, [
                ("SIGNATURE", "&'static str", f'"{sig}"'),
                ("SELECTOR", "[u8; 4]", _byte_array(selector)),
            ])
            self.out.line()
            variants.append((rs_ident(rname), call, fn))
        return variants

    def aggregate(self, suffix: str, what: str, variants: Sequence[Tuple[str, str]], const: str, width: int) -> None:
        if not variants:
            return
        name = f"{self.c.name}{suffix}"
        self.out.doc(f"Container for all the [`{self.c.name}`](self) {what}.")
        self.out.line(self.opts.derive_attr)
        self.out.open(f"pub enum {name}")
        for variant, ty in variants:
            self.out.line(f"{variant}({ty}),")
        self.out.close()
        self.out.open(f"impl {name}")
        self.out.line(f"pub const SELECTORS: &'static [[u8; {width}]] = &[")
        for _, ty in variants:
            self.out.line(f"    {ty}::{const},")
        self.out.line("];")
        self.out.line()
        self.out.open(f"pub const fn selector(&self) -> [u8; {width}]")
        self.out.open("match self")
        for variant, ty in variants:
            self.out.line(f"Self::{variant}(_) => {ty}::{const},")
        self.out.close()
        self.out.close()
        self.out.close()
        self.out.line()

    def instance(self, calls: Sequence[Tuple[str, str, ItemFunction]]) -> None:
        name = f"{self.c.name}Instance"
        self.out.doc(f"Creates a new [`{name}`] bound to `address`.")
        self.out.open(f"pub const fn new<P>(address: {ADDRESS_TY}, provider: P) -> {name}<P>")
        self.out.line(f"{name}::new(address, provider)")
        self.out.close()
        self.out.line()
        self.out.doc(f"A [`{self.c.name}`](self) instance: a deployed address plus the provider used to reach it.")
        self.out.line("#[derive(Clone, Debug)]")
        self.out.open(f"pub struct {name}<P>")
        self.out.line(f"address: {ADDRESS_TY},")
        self.out.line("provider: P,")
        self.out.close()
        self.out.line()
        self.out.open(f"impl<P> {name}<P>")
        self.out.open(f"pub const fn new(address: {ADDRESS_TY}, provider: P) -> Self")
        self.out.line("Self { address, provider }")
        self.out.close()
        self.out.open(f"pub const fn address(&self) -> &{ADDRESS_TY}")
        self.out.line("&self.address")
        self.out.close()
        self.out.open(f"pub fn set_address(&mut self, address: {ADDRESS_TY})")
        self.out.line("self.address = address;")
        self.out.close()
        self.out.open("pub const fn provider(&self) -> &P")
        self.out.line("&self.provider")
        self.out.close()
        for method, call, fn in calls:
            fields = self._fields(fn.params)
            args = ", ".join(f"{n}: {info.rust}" for n, info in fields)
            self.out.doc(f"Builds the [`{call}`] for `{fn.name}`.")
            self.out.open(f"pub fn {method}(&self{', ' + args if args else ''}) -> {call}")
            self.out.line(f"{call} {{ {', '.join(n for n, _ in fields)} }}" if fields else f"{call} {{}}")
            self.out.close()
        self.out.close()
        self.out.line()

    def run(self) -> str:
        out = self.out
        out.line("/**")
        out.line()
        out.line(f"Generated by solbind from the `{self.c.name}` interface.")
        for d in self.opts.docs:
            out.line()
            out.line(d)
        out.line()
        out.line("```solidity")
        out.line(f"interface {self.c.name} {{")
        for item in self.c.items:
            out.line(f"    {_sol_decl(item)}")
        out.line("}")
        out.line("```*/")
        out.line(f"#[allow({', '.join(MODULE_ALLOWS)})]")
        out.open(f"pub mod {self.c.name}")
        out.line("#[allow(unused_imports)]")
        out.line("use super::*;")
        out.line()
        self.structs()
        events = self.events()
        errors = self.errors()
        self.special_functions()
        calls = self.functions()
        self.aggregate("Calls", "function calls", [(v, c) for v, c, _ in calls], "SELECTOR", 4)
        self.aggregate("Errors", "custom errors", errors, "SELECTOR", 4)
        self.aggregate("Events", "events", events, "SIGNATURE_HASH", 32)
        if self.opts.rpc:
            self.instance(calls)
        while out.lines and out.lines[-1] == "":
            out.lines.pop()
        out.close()
        return out.text()


def expand(contract: ItemContract, attrs: Sequence[Attribute] = ()) -> str:
    """
    Expand a parsed interface into Rust source text.

    `attrs` are applied on top of the attributes already attached to the
    contract.

    Raises:
        ExpandError: on invalid or unknown types, duplicate declarations or
            unsupported attributes.
    """
    opts = _options([*contract.attrs, *attrs])
    return _Expander(contract, opts).run()


__all__ = ["ExpandError", "expand", "keccak256", "rs_ident"]
