"""
Parser for Solidity interface token trees.

Turns the output of `solbind.sol.tokens` into a small AST: a `SolInput`
holding items, where an `ItemContract` (interface/contract/library) contains
functions, events, errors and structs. Only declarations are understood;
function bodies, modifiers definitions, state variables and the like are
rejected with a `ParseError`, since generated interfaces never contain them.

Outer attributes (`#[sol(rpc)]`, `#[derive(Debug)]`) written before the
contract keyword are attached to the `ItemContract`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .tokens import Group, Ident, LexError, Literal, Punct, Span, TokenTree, tokenize

CONTRACT_KINDS = ("interface", "contract", "library", "abstract")
VISIBILITIES = ("external", "public", "internal", "private")
MUTABILITIES = ("pure", "view", "payable", "nonpayable")
LOCATIONS = ("memory", "calldata", "storage")
_IGNORED_MODIFIERS = ("virtual", "override")


class ParseError(ValueError):
    def __init__(self, message: str, span: Optional[Span] = None) -> None:
        where = f" at {span}" if span is not None else ""
        super().__init__(f"{message}{where}")
        self.message = message
        self.span = span


# ------------
# AST
# ------------

@dataclass
class TypeSpec:
    base: str                                   # "uint256", "address", "Pool.Key"
    dims: List[Optional[int]] = field(default_factory=list)
    span: Optional[Span] = None

    def __str__(self) -> str:
        return self.base + "".join(f"[{d}]" if d is not None else "[]" for d in self.dims)


@dataclass
class VarDecl:
    ty: TypeSpec
    name: Optional[str] = None
    indexed: bool = False


@dataclass
class Attribute:
    path: str                                   # "sol", "derive", "doc"
    args: List[str] = field(default_factory=list)
    value: Optional[str] = None                 # literal of the `path = "..."` form
    span: Optional[Span] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"#[{self.path} = {self.value}]"
        if self.args:
            return f"#[{self.path}({', '.join(self.args)})]"
        return f"#[{self.path}]"


@dataclass
class ItemFunction:
    kind: str                                   # function | constructor | fallback | receive
    name: Optional[str]
    params: List[VarDecl] = field(default_factory=list)
    returns: List[VarDecl] = field(default_factory=list)
    mutability: str = "nonpayable"
    visibility: Optional[str] = None
    span: Optional[Span] = None


@dataclass
class ItemEvent:
    name: str
    params: List[VarDecl] = field(default_factory=list)
    anonymous: bool = False
    span: Optional[Span] = None


@dataclass
class ItemError:
    name: str
    params: List[VarDecl] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class ItemStruct:
    name: str
    fields: List[VarDecl] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class ItemContract:
    kind: str
    name: str
    items: List[object] = field(default_factory=list)
    attrs: List[Attribute] = field(default_factory=list)
    span: Optional[Span] = None

    def of_type(self, cls) -> list:
        return [it for it in self.items if isinstance(it, cls)]


@dataclass
class SolInput:
    items: List[object] = field(default_factory=list)

    def single_interface(self) -> ItemContract:
        """
        Return the only item, which must be an interface.

        Any other shape cannot come out of the synthesizer, so it is an
        internal error rather than a user-facing one.
        """
        if len(self.items) != 1 or not isinstance(self.items[0], ItemContract):
            raise RuntimeError(
                f"internal error: expected exactly one interface declaration, got {len(self.items)} item(s)"
            )
        item = self.items[0]
        if item.kind != "interface":
            raise RuntimeError(f"internal error: expected an interface, got `{item.kind} {item.name}`")
        return item


# ------------
# Cursor
# ------------

class _Stream:
    def __init__(self, tokens: Sequence[TokenTree], end_span: Optional[Span] = None) -> None:
        self.tokens = list(tokens)
        self.i = 0
        self.end_span = end_span

    def at_end(self) -> bool:
        return self.i >= len(self.tokens)

    def peek(self, offset: int = 0) -> Optional[TokenTree]:
        j = self.i + offset
        return self.tokens[j] if j < len(self.tokens) else None

    def next(self) -> TokenTree:
        tok = self.peek()
        if tok is None:
            raise ParseError("unexpected end of input", self.end_span)
        self.i += 1
        return tok

    def peek_ident(self, *values: str) -> bool:
        tok = self.peek()
        return isinstance(tok, Ident) and (not values or tok.value in values)

    def peek_punct(self, char: str) -> bool:
        tok = self.peek()
        return isinstance(tok, Punct) and tok.char == char

    def expect_ident(self, what: str = "identifier") -> Ident:
        tok = self.next()
        if not isinstance(tok, Ident):
            raise ParseError(f"expected {what}, found `{tok}`", tok.span)
        return tok

    def expect_punct(self, char: str) -> Punct:
        tok = self.next()
        if not isinstance(tok, Punct) or tok.char != char:
            raise ParseError(f"expected `{char}`, found `{tok}`", tok.span)
        return tok

    def expect_group(self, delimiter: str) -> Group:
        tok = self.next()
        if not isinstance(tok, Group) or tok.delimiter != delimiter:
            raise ParseError(f"expected `{delimiter}`, found `{tok}`", tok.span)
        return tok


def _split_commas(tokens: Sequence[TokenTree]) -> List[List[TokenTree]]:
    parts: List[List[TokenTree]] = [[]]
    for tok in tokens:
        if isinstance(tok, Punct) and tok.char == ",":
            parts.append([])
        else:
            parts[-1].append(tok)
    if parts == [[]]:
        return []
    return parts


# ------------
# Attributes
# ------------

def _parse_attribute(group: Group) -> Attribute:
    s = _Stream(group.tokens, group.span)
    path = [s.expect_ident("attribute name").value]
    while s.peek_punct(":"):
        s.expect_punct(":")
        s.expect_punct(":")
        path.append(s.expect_ident().value)
    args: List[str] = []
    value: Optional[str] = None
    if not s.at_end():
        if s.peek_punct("="):
            s.next()
            lit = s.next()
            if not isinstance(lit, Literal):
                raise ParseError("expected literal after `=` in attribute", lit.span)
            value = lit.value
        else:
            inner = s.expect_group("(")
            args = ["".join(str(t) for t in part) for part in _split_commas(inner.tokens)]
            if any(not a for a in args):
                raise ParseError("empty attribute argument", inner.span)
        if not s.at_end():
            tok = s.next()
            raise ParseError(f"unexpected `{tok}` in attribute", tok.span)
    return Attribute("::".join(path), args, value, group.span)


def _parse_outer_attrs(s: _Stream) -> List[Attribute]:
    attrs: List[Attribute] = []
    while s.peek_punct("#"):
        s.next()
        attrs.append(_parse_attribute(s.expect_group("[")))
    return attrs


def parse_attributes(texts: Iterable[str]) -> List[TokenTree]:
    """
    Turn decoration strings into `#[...]` tokens.

    Accepts both bare ("sol(rpc)") and wrapped ("#[sol(rpc)]") forms.

    Raises:
        ValueError: a string is not a well-formed attribute.
    """
    out: List[TokenTree] = []
    for text in texts:
        raw = text.strip()
        if raw.startswith("#[") and raw.endswith("]"):
            raw = raw[2:-1]
        try:
            tokens = tokenize(raw)
        except LexError as e:
            raise ValueError(f"invalid attribute {text!r}: {e}") from e
        group = Group("[", tokens, Span(1, 1))
        try:
            _parse_attribute(group)
        except ParseError as e:
            raise ValueError(f"invalid attribute {text!r}: {e}") from e
        out.extend([Punct("#", Span(1, 1)), group])
    return out


# ------------
# Types & params
# ------------

def _parse_type(s: _Stream) -> TypeSpec:
    first = s.expect_ident("type")
    base = first.value
    while s.peek_punct(".") and isinstance(s.peek(1), Ident):
        s.next()
        base += "." + s.expect_ident().value
    if base == "address" and s.peek_ident("payable"):
        s.next()
    dims: List[Optional[int]] = []
    while isinstance(s.peek(), Group) and s.peek().delimiter == "[":
        g = s.next()
        if not g.tokens:
            dims.append(None)
        elif len(g.tokens) == 1 and isinstance(g.tokens[0], Literal) and g.tokens[0].value.isdigit():
            dims.append(int(g.tokens[0].value))
        else:
            raise ParseError("array length must be an integer literal", g.span)
    return TypeSpec(base, dims, first.span)


def _parse_var(tokens: List[TokenTree], *, allow_indexed: bool, end_span: Optional[Span]) -> VarDecl:
    s = _Stream(tokens, end_span)
    ty = _parse_type(s)
    indexed = False
    name: Optional[str] = None
    while not s.at_end():
        tok = s.expect_ident("parameter name")
        if tok.value == "indexed":
            if not allow_indexed:
                raise ParseError("`indexed` is only allowed on event parameters", tok.span)
            indexed = True
        elif tok.value in LOCATIONS:
            continue
        elif name is None:
            name = tok.value
        else:
            raise ParseError(f"unexpected `{tok.value}` after parameter name", tok.span)
    return VarDecl(ty, name, indexed)


def _parse_params(group: Group, *, allow_indexed: bool = False) -> List[VarDecl]:
    return [
        _parse_var(part, allow_indexed=allow_indexed, end_span=group.span)
        for part in _split_commas(group.tokens)
    ]


# ------------
# Items
# ------------

def _parse_function(s: _Stream, kind: Ident) -> ItemFunction:
    name: Optional[str] = None
    if kind.value == "function":
        name = s.expect_ident("function name").value
    params = _parse_params(s.expect_group("("))
    fn = ItemFunction(kind=kind.value, name=name, params=params, span=kind.span)
    while not s.peek_punct(";"):
        tok = s.next()
        if isinstance(tok, Group) and tok.delimiter == "{":
            raise ParseError("function bodies are not supported in interfaces", tok.span)
        if not isinstance(tok, Ident):
            raise ParseError(f"unexpected `{tok}` in function declaration", tok.span)
        if tok.value in VISIBILITIES:
            fn.visibility = tok.value
        elif tok.value in MUTABILITIES:
            fn.mutability = tok.value
        elif tok.value in _IGNORED_MODIFIERS:
            continue
        elif tok.value == "returns":
            fn.returns = _parse_params(s.expect_group("("))
        else:
            raise ParseError(f"unknown function attribute `{tok.value}`", tok.span)
    s.expect_punct(";")
    if kind.value == "receive" and (params or fn.mutability != "payable"):
        raise ParseError("`receive` takes no parameters and must be payable", kind.span)
    return fn


def _parse_event(s: _Stream, kw: Ident) -> ItemEvent:
    name = s.expect_ident("event name")
    params = _parse_params(s.expect_group("("), allow_indexed=True)
    anonymous = False
    if s.peek_ident("anonymous"):
        s.next()
        anonymous = True
    s.expect_punct(";")
    return ItemEvent(name.value, params, anonymous, kw.span)


def _parse_error(s: _Stream, kw: Ident) -> ItemError:
    name = s.expect_ident("error name")
    params = _parse_params(s.expect_group("("))
    s.expect_punct(";")
    return ItemError(name.value, params, kw.span)


def _parse_struct(s: _Stream, kw: Ident) -> ItemStruct:
    name = s.expect_ident("struct name")
    body = s.expect_group("{")
    inner = _Stream(body.tokens, body.span)
    fields: List[VarDecl] = []
    while not inner.at_end():
        decl: List[TokenTree] = []
        while not inner.peek_punct(";"):
            decl.append(inner.next())
        inner.expect_punct(";")
        var = _parse_var(decl, allow_indexed=False, end_span=body.span)
        if var.name is None:
            raise ParseError(f"struct `{name.value}` has an unnamed field", var.ty.span)
        fields.append(var)
    if not fields:
        raise ParseError(f"struct `{name.value}` has no fields", name.span)
    return ItemStruct(name.value, fields, kw.span)


_ITEM_PARSERS = {
    "function": _parse_function,
    "constructor": _parse_function,
    "fallback": _parse_function,
    "receive": _parse_function,
    "event": _parse_event,
    "error": _parse_error,
    "struct": _parse_struct,
}


def _parse_contract(s: _Stream, attrs: List[Attribute]) -> ItemContract:
    kw = s.expect_ident("contract keyword")
    kind = kw.value
    if kind == "abstract":
        s.expect_ident("contract keyword")
        kind = "contract"
    name = s.expect_ident("contract name")
    if s.peek_ident("is"):
        raise ParseError("inheritance is not supported", s.peek().span)
    body = s.expect_group("{")
    contract = ItemContract(kind=kind, name=name.value, attrs=attrs, span=kw.span)

    inner = _Stream(body.tokens, body.span)
    while not inner.at_end():
        tok = inner.expect_ident("item")
        parser = _ITEM_PARSERS.get(tok.value)
        if parser is None:
            raise ParseError(f"unsupported item `{tok.value}` in {kind} `{name.value}`", tok.span)
        contract.items.append(parser(inner, tok))
    return contract


def parse_sol_input(tokens: Sequence[TokenTree]) -> SolInput:
    """Parse token trees into a `SolInput`; raises `ParseError`."""
    s = _Stream(tokens)
    out = SolInput()
    while not s.at_end():
        attrs = _parse_outer_attrs(s)
        if not s.peek_ident(*CONTRACT_KINDS):
            tok = s.next()
            raise ParseError(f"expected a contract, interface or library, found `{tok}`", tok.span)
        out.items.append(_parse_contract(s, attrs))
    return out


__all__ = [
    "ParseError",
    "TypeSpec",
    "VarDecl",
    "Attribute",
    "ItemFunction",
    "ItemEvent",
    "ItemError",
    "ItemStruct",
    "ItemContract",
    "SolInput",
    "parse_attributes",
    "parse_sol_input",
]
