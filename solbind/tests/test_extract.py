from __future__ import annotations

from pathlib import Path

import pytest

from solbind.errors import IoError, MalformedDocument, MissingInterface
from solbind.extract import parse_abi, read_artifact
from solbind.model import ContractArtifact

from .conftest import ERC20_ABI, write_artifact


def _artifact(path: Path) -> ContractArtifact:
    return ContractArtifact(path=path, name="Token")


def test_read_artifact_with_object_bytecode(artifacts: Path) -> None:
    out = read_artifact(_artifact(artifacts / "Token.sol" / "Token.json"))
    assert len(out.abi) == len(ERC20_ABI)
    assert out.abi.kinds() == ["function", "event", "error"]
    assert out.bytecode == "0x6080"


def test_read_artifact_with_string_bytecode(tmp_path: Path) -> None:
    p = write_artifact(tmp_path, "T.json", ERC20_ABI, bytecode="0xdeadbeef")
    assert read_artifact(_artifact(p)).bytecode == "0xdeadbeef"


def test_read_artifact_without_bytecode(tmp_path: Path) -> None:
    p = write_artifact(tmp_path, "T.json", [])
    out = read_artifact(_artifact(p))
    assert out.bytecode is None
    assert len(out.abi) == 0


def test_missing_abi_field(tmp_path: Path) -> None:
    p = write_artifact(tmp_path, "T.json", None, bytecode="0x00")
    with pytest.raises(MissingInterface) as ei:
        read_artifact(_artifact(p))
    assert ei.value.path == p
    assert "no `abi` field" in str(ei.value)


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '"abi"', ""])
def test_malformed_documents(tmp_path: Path, raw: str) -> None:
    p = write_artifact(tmp_path, "T.json", raw=raw)
    with pytest.raises(MalformedDocument):
        read_artifact(_artifact(p))


def test_non_utf8_content_is_malformed(tmp_path: Path) -> None:
    p = tmp_path / "T.json"
    p.write_bytes(b"\xff\xfe{")
    with pytest.raises(MalformedDocument):
        read_artifact(_artifact(p))


def test_unreadable_file_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(IoError):
        read_artifact(_artifact(tmp_path / "missing.json"))


def test_abi_must_be_array() -> None:
    with pytest.raises(MalformedDocument) as ei:
        parse_abi({"type": "function"})
    assert "invalid abi" in str(ei.value)


def test_abi_param_requires_type() -> None:
    with pytest.raises(MalformedDocument) as ei:
        parse_abi([{"type": "function", "name": "f", "inputs": [{"name": "x"}]}])
    assert "0/inputs/0" in str(ei.value)


def test_unknown_entry_kind_is_rejected() -> None:
    with pytest.raises(MalformedDocument):
        parse_abi([{"type": "modifier", "name": "onlyOwner"}])


def test_named_entries_require_a_name() -> None:
    with pytest.raises(MalformedDocument):
        parse_abi([{"type": "event", "inputs": []}])


def test_type_aliases_and_legacy_fields() -> None:
    abi = parse_abi([
        {
            "name": "get",
            "constant": True,
            "inputs": [{"name": "i", "type": "uint[]"}],
            "outputs": [{"name": "", "type": "int"}],
        },
        {"type": "function", "name": "deposit", "payable": True, "inputs": []},
        {"type": "fallback"},
    ])
    get, deposit, fallback = abi.entries
    assert get.kind == "function"
    assert get.state_mutability == "view"
    assert get.inputs[0].type == "uint256[]"
    assert get.outputs[0].type == "int256"
    assert deposit.state_mutability == "payable"
    assert fallback.kind == "fallback"
    assert fallback.state_mutability == "nonpayable"


def test_tuple_components_are_parsed() -> None:
    abi = parse_abi([
        {
            "type": "function",
            "name": "swap",
            "inputs": [
                {
                    "name": "key",
                    "type": "tuple",
                    "internalType": "struct Pool.Key",
                    "components": [
                        {"name": "token", "type": "address"},
                        {"name": "fee", "type": "uint24"},
                    ],
                }
            ],
        }
    ])
    (entry,) = abi.entries
    assert entry.signature() == "swap((address,uint24))"
    assert entry.inputs[0].to_dict()["internalType"] == "struct Pool.Key"
