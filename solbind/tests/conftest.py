from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address", "internalType": "address"}],
        "outputs": [{"name": "", "type": "uint256", "internalType": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "event",
        "name": "Transfer",
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
        "anonymous": False,
    },
    {
        "type": "error",
        "name": "InsufficientBalance",
        "inputs": [
            {"name": "available", "type": "uint256"},
            {"name": "required", "type": "uint256"},
        ],
    },
]


def write_artifact(
    root: Path,
    rel: str,
    abi: Optional[List[Dict[str, Any]]] = None,
    *,
    bytecode: Any = None,
    raw: Optional[str] = None,
) -> Path:
    """Write a forge-style artifact under `root`; `raw` bypasses JSON encoding."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if raw is not None:
        path.write_text(raw)
        return path
    doc: Dict[str, Any] = {}
    if abi is not None:
        doc["abi"] = abi
    if bytecode is not None:
        doc["bytecode"] = bytecode
    path.write_text(json.dumps(doc))
    return path


@pytest.fixture
def erc20_abi() -> List[Dict[str, Any]]:
    return json.loads(json.dumps(ERC20_ABI))


@pytest.fixture
def artifacts(tmp_path: Path) -> Path:
    """An artifacts root holding one Token contract plus files the locator must skip."""
    root = tmp_path / "out"
    write_artifact(root, "Token.sol/Token.json", ERC20_ABI, bytecode={"object": "0x6080"})
    write_artifact(root, "Token.sol/Token.metadata.json", [])
    write_artifact(root, "build-info/abc123.json", [])
    (root / "Token.sol" / "notes.txt").write_text("not an artifact")
    return root


def snapshot(root: Path) -> Dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
