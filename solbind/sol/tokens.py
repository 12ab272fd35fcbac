"""
Token trees for Solidity interface text.

`tokenize` turns source text into a list of token trees: identifiers,
literals and punctuation at the leaves, and `Group`s for every balanced
`{}`, `()` or `[]` pair. Each token remembers the line/column where it
started in the full text so that diagnostics point at the right place
even when only a slice of the text is tokenized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Union

from ..errors import SynthesisError

_OPEN = {"{": "}", "(": ")", "[": "]"}
_CLOSE = {v: k for k, v in _OPEN.items()}
_PUNCT = set(";,.:#=<>!+-*/%&|^~?@")

_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_NUMBER_RE = re.compile(r"[0-9][0-9A-Za-z_.]*")
_VALID_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Span:
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Ident:
    value: str
    span: Span

    def __str__(self) -> str:
        return self.value


@dataclass
class Literal:
    value: str          # raw source text, quotes included for strings
    kind: str           # "number" | "string"
    span: Span

    def __str__(self) -> str:
        return self.value


@dataclass
class Punct:
    char: str
    span: Span

    def __str__(self) -> str:
        return self.char


@dataclass
class Group:
    delimiter: str      # "{", "(" or "["
    tokens: List["TokenTree"] = field(default_factory=list)
    span: Span = Span(1, 1)

    def __str__(self) -> str:
        inner = " ".join(str(t) for t in self.tokens)
        return f"{self.delimiter}{inner}{_OPEN[self.delimiter]}"


TokenTree = Union[Ident, Literal, Punct, Group]


class LexError(ValueError):
    def __init__(self, message: str, span: Span) -> None:
        super().__init__(f"{message} at {span}")
        self.message = message
        self.span = span


class _Cursor:
    def __init__(self, text: str, pos: int) -> None:
        self.text = text
        self.pos = pos
        self.line = text.count("\n", 0, pos) + 1
        self.col = pos - (text.rfind("\n", 0, pos) + 1) + 1

    def span(self) -> Span:
        return Span(self.line, self.col)

    def advance(self, n: int) -> None:
        chunk = self.text[self.pos:self.pos + n]
        nl = chunk.count("\n")
        if nl:
            self.line += nl
            self.col = len(chunk) - chunk.rfind("\n")
        else:
            self.col += n
        self.pos += n


def _skip_trivia(cur: _Cursor) -> None:
    text = cur.text
    while cur.pos < len(text):
        ch = text[cur.pos]
        if ch.isspace():
            cur.advance(1)
        elif text.startswith("//", cur.pos):
            end = text.find("\n", cur.pos)
            cur.advance((len(text) if end < 0 else end) - cur.pos)
        elif text.startswith("/*", cur.pos):
            end = text.find("*/", cur.pos + 2)
            if end < 0:
                raise LexError("unterminated block comment", cur.span())
            cur.advance(end + 2 - cur.pos)
        else:
            return


def _string(cur: _Cursor) -> Literal:
    start = cur.span()
    quote = cur.text[cur.pos]
    i = cur.pos + 1
    while i < len(cur.text):
        ch = cur.text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            raw = cur.text[cur.pos:i + 1]
            cur.advance(len(raw))
            return Literal(raw, "string", start)
        if ch == "\n":
            break
        i += 1
    raise LexError("unterminated string literal", start)


def tokenize(text: str, start: int = 0) -> List[TokenTree]:
    """Tokenize `text[start:]` into token trees; raises `LexError`."""
    cur = _Cursor(text, start)
    stack: List[Group] = []
    top: List[TokenTree] = []

    def push(tok: TokenTree) -> None:
        (stack[-1].tokens if stack else top).append(tok)

    while True:
        _skip_trivia(cur)
        if cur.pos >= len(text):
            break
        ch = text[cur.pos]
        span = cur.span()
        if ch in _OPEN:
            stack.append(Group(ch, [], span))
            cur.advance(1)
        elif ch in _CLOSE:
            if not stack or stack[-1].delimiter != _CLOSE[ch]:
                raise LexError(f"unexpected closing delimiter `{ch}`", span)
            group = stack.pop()
            cur.advance(1)
            push(group)
        elif ch in "\"'":
            push(_string(cur))
        elif m := _IDENT_RE.match(text, cur.pos):
            cur.advance(m.end() - m.start())
            push(Ident(m.group(0), span))
        elif m := _NUMBER_RE.match(text, cur.pos):
            cur.advance(m.end() - m.start())
            push(Literal(m.group(0), "number", span))
        else:
            if ch in _PUNCT:
                cur.advance(1)
                push(Punct(ch, span))
            else:
                raise LexError(f"unexpected character {ch!r}", span)

    if stack:
        g = stack[-1]
        raise LexError(f"unclosed delimiter `{g.delimiter}`", g.span)
    return top


def is_identifier(name: str) -> bool:
    return bool(_VALID_IDENT_RE.match(name))


def tokens_for_interface(name: str, text: str) -> List[TokenTree]:
    """
    Re-tokenize generated interface text under an explicit `interface <name>` header.

    Only the text from the first `{` onwards is tokenized; the header tokens
    are synthesized so that diagnostics always carry the binding's own name.

    Raises:
        SynthesisError: invalid binding name, missing `{`, or untokenizable text.
    """
    if not is_identifier(name):
        raise SynthesisError(name, f"`{name}` is not a valid identifier for a binding")

    brace_idx = text.find("{")
    if brace_idx < 0:
        raise SynthesisError(name, "generated interface text is missing `{`")

    try:
        body = tokenize(text, start=brace_idx)
    except LexError as e:
        raise SynthesisError(
            name,
            f"generated interface text is not valid tokens: {e.message}",
            line=e.span.line,
            column=e.span.column,
        ) from e

    head = _Cursor(text, brace_idx).span()
    return [Ident("interface", head), Ident(name, head), *body]


__all__ = [
    "Span",
    "Ident",
    "Literal",
    "Punct",
    "Group",
    "TokenTree",
    "LexError",
    "tokenize",
    "is_identifier",
    "tokens_for_interface",
]
