"""
Solidity interface front end: tokens, parser and Rust expander.

    tokens_for_interface(name, text) -> token trees
    parse_sol_input(tokens)          -> SolInput
    expand(contract)                 -> Rust source text
"""

from .tokens import LexError, tokenize, tokens_for_interface  # noqa: F401
from .parser import ParseError, SolInput, parse_attributes, parse_sol_input  # noqa: F401
from .expand import ExpandError, expand  # noqa: F401

__all__ = [
    "LexError", "tokenize", "tokens_for_interface",
    "ParseError", "SolInput", "parse_attributes", "parse_sol_input",
    "ExpandError", "expand",
]
