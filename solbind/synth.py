"""
Binding synthesis: JSON ABI -> Solidity interface text -> tokens -> Rust.

The round trip through interface text is deliberate: the text form is the
stable contract between the ABI model and the parser/expander, and every
binding goes through exactly the same path.

Steps (per binding):

1. canonicalize the ABI (drop structurally identical entries),
2. render it as `interface <Name> { ... }`,
3. re-tokenize from the first `{` under a synthesized `interface <Name>` header,
4. prepend caller-supplied decoration attributes,
5. parse into a `SolInput` holding exactly one interface,
6. expand that interface into Rust source text.

Failures in 1-3 raise `SynthesisError`; failures in 5-6 raise
`ExpansionError` with the parser/expander message unchanged.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .errors import ExpansionError
from .idl import render_idl
from .model import JsonAbi
from .sol.expand import ExpandError, expand
from .sol.parser import ParseError, parse_attributes, parse_sol_input
from .sol.tokens import TokenTree, tokens_for_interface

log = logging.getLogger(__name__)


def decorate(tokens: Sequence[TokenTree], attributes: Sequence[str]) -> list:
    """Prefix `tokens` with `#[...]` attribute tokens built from `attributes`."""
    if not attributes:
        return list(tokens)
    return [*parse_attributes(attributes), *tokens]


def synthesize(abi: JsonAbi, name: str, attributes: Sequence[str] = ()) -> str:
    """
    Produce the Rust expansion for one contract.

    Args:
        abi: ABI model; deduplicated in place.
        name: binding name (must be an identifier).
        attributes: decoration strings such as "sol(rpc)" or "derive(Hash)".

    Raises:
        SynthesisError: the interface text round trip failed.
        ExpansionError: the parser or expander rejected the interface.
    """
    before = len(abi)
    abi.dedup()
    if len(abi) != before:
        log.debug("%s: dropped %d duplicate abi entries", name, before - len(abi))

    sol_text = render_idl(abi, name)
    tokens = decorate(tokens_for_interface(name, sol_text), attributes)

    try:
        contract = parse_sol_input(tokens).single_interface()
        expansion = expand(contract)
    except (ParseError, ExpandError) as e:
        raise ExpansionError(name, str(e)) from e

    log.info("generated Rust bindings for %s", name)
    return expansion


__all__ = ["decorate", "synthesize"]
