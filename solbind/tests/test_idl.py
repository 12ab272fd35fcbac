from __future__ import annotations

import pytest

from solbind.extract import parse_abi
from solbind.idl import render_idl

from .conftest import ERC20_ABI


def test_render_erc20() -> None:
    text = render_idl(parse_abi(ERC20_ABI), "Token")
    assert text == (
        "interface Token {\n"
        "    event Transfer(address indexed from, address indexed to, uint256 value);\n"
        "    error InsufficientBalance(uint256 available, uint256 required);\n"
        "    function balanceOf(address owner) external view returns (uint256);\n"
        "    function transfer(address to, uint256 amount) external returns (bool);\n"
        "}\n"
    )


def test_special_functions_and_anonymous_event() -> None:
    abi = parse_abi([
        {"type": "receive", "stateMutability": "payable"},
        {"type": "fallback", "stateMutability": "payable"},
        {"type": "constructor", "inputs": [{"name": "name_", "type": "string"}]},
        {"type": "event", "name": "Ping", "inputs": [], "anonymous": True},
    ])
    lines = render_idl(abi, "Wallet").splitlines()
    assert lines[1:-1] == [
        "    event Ping() anonymous;",
        "    constructor(string memory name_);",
        "    fallback() external payable;",
        "    receive() external payable;",
    ]


def test_named_struct_declared_before_use() -> None:
    key = {
        "name": "key",
        "type": "tuple",
        "internalType": "struct Pool.Key",
        "components": [
            {"name": "token", "type": "address"},
            {"name": "fee", "type": "uint24"},
        ],
    }
    abi = parse_abi([
        {"type": "function", "name": "swap", "inputs": [key], "outputs": []},
        {"type": "function", "name": "keys", "inputs": [], "outputs": [dict(key, type="tuple[]", internalType="struct Pool.Key[]")], "stateMutability": "view"},
    ])
    lines = render_idl(abi, "Pool").splitlines()
    assert lines[1] == "    struct Key { address token; uint24 fee; }"
    assert "    function swap(Key memory key) external;" in lines
    assert "    function keys() external view returns (Key[] memory key);" in lines
    assert sum(1 for ln in lines if ln.strip().startswith("struct")) == 1


def test_anonymous_tuples_share_names_per_layout() -> None:
    pair = {"name": "p", "type": "tuple", "components": [{"name": "a", "type": "uint8"}, {"name": "b", "type": "bool"}]}
    inner = {"name": "i", "type": "tuple", "components": [{"name": "", "type": "bytes32"}]}
    outer = {"name": "o", "type": "tuple", "components": [inner, {"name": "n", "type": "uint256"}]}
    abi = parse_abi([
        {"type": "function", "name": "f", "inputs": [pair, outer]},
        {"type": "function", "name": "g", "inputs": [pair]},
    ])
    text = render_idl(abi, "C")
    assert "struct Tuple0 { uint8 a; bool b; }" in text
    assert "struct Tuple1 { bytes32 _0; }" in text
    assert "struct Tuple2 { Tuple1 i; uint256 n; }" in text
    assert text.index("struct Tuple1") < text.index("struct Tuple2")
    assert "function f(Tuple0 memory p, Tuple2 memory o) external;" in text
    assert "function g(Tuple0 memory p) external;" in text


def _struct_param(internal: str, *types: str, name: str = "p") -> dict:
    return {
        "name": name,
        "type": "tuple",
        "internalType": internal,
        "components": [{"name": f"m{i}", "type": t} for i, t in enumerate(types)],
    }


def test_same_short_name_with_different_layouts() -> None:
    abi = parse_abi([
        {"type": "function", "name": "f", "inputs": [_struct_param("struct LibA.Params", "address")]},
        {"type": "function", "name": "g", "inputs": [_struct_param("struct LibB.Params", "uint256")]},
        {"type": "function", "name": "h", "inputs": [_struct_param("struct LibB.Params[]", "uint256")]},
    ])
    text = render_idl(abi, "Router")
    assert "struct Params { address m0; }" in text
    assert "struct LibB_Params { uint256 m0; }" in text
    assert "function f(Params memory p) external;" in text
    assert "function g(LibB_Params memory p) external;" in text
    assert "function h(LibB_Params[] memory p) external;" in text


def test_unqualified_struct_clash_gets_numeric_suffix() -> None:
    abi = parse_abi([
        {"type": "function", "name": "f", "inputs": [_struct_param("struct Key", "address")]},
        {"type": "function", "name": "g", "inputs": [_struct_param("struct Key", "uint256")]},
        {"type": "function", "name": "h", "inputs": [_struct_param("struct Key", "bool")]},
    ])
    text = render_idl(abi, "C")
    assert "struct Key { address m0; }" in text
    assert "struct Key_1 { uint256 m0; }" in text
    assert "struct Key_2 { bool m0; }" in text


@pytest.mark.parametrize("word", ["indexed", "memory", "storage", "calldata", "payable", "anonymous", "returns"])
def test_modifier_words_as_parameter_names(word: str) -> None:
    abi = parse_abi([
        {"type": "function", "name": "f", "inputs": [{"name": word, "type": "address"}, {"name": "x", "type": "uint256"}]},
        {"type": "event", "name": "E", "inputs": [{"name": word, "type": "address", "indexed": True}]},
        {"type": "function", "name": "g", "inputs": [_struct_param("struct S", "uint8", name=word)]},
    ])
    text = render_idl(abi, "C")
    assert f"function f(address {word}_, uint256 x) external;" in text
    assert f"event E(address indexed {word}_);" in text
    assert f"function g(S memory {word}_) external;" in text


def test_dedup_keeps_first_occurrence() -> None:
    abi = parse_abi(ERC20_ABI + ERC20_ABI[:2])
    assert len(abi) == 6
    abi.dedup()
    assert len(abi) == 4
    assert [e.name for e in abi] == ["balanceOf", "transfer", "Transfer", "InsufficientBalance"]
    assert render_idl(abi, "Token").count("function balanceOf") == 1


def test_overloads_are_not_duplicates() -> None:
    abi = parse_abi([
        {"type": "function", "name": "mint", "inputs": [{"name": "to", "type": "address"}]},
        {"type": "function", "name": "mint", "inputs": [{"name": "to", "type": "address"}, {"name": "n", "type": "uint256"}]},
    ]).dedup()
    assert len(abi) == 2
