from __future__ import annotations

import types
from pathlib import Path

import pytest

from solbind.errors import IoError
from solbind.locator import derive_binding_name, iter_artifacts

from .conftest import write_artifact


@pytest.mark.parametrize(
    "path, expected",
    [
        ("out/Token.sol/Token.json", "Token"),
        ("out/Pool.sol/Pool.0.8.20.json", "Pool"),
        ("out/x/My-Token.json", "MyToken"),
        ("out/x/My Fancy-Token.json", "MyFancyToken"),
        ("Ownable.json", "Ownable"),
    ],
)
def test_derive_binding_name(path: str, expected: str) -> None:
    assert derive_binding_name(path) == expected


def test_iter_artifacts_skips_build_info_and_metadata(artifacts: Path) -> None:
    found = list(iter_artifacts(artifacts))
    assert [a.name for a in found] == ["Token"]
    assert found[0].path == artifacts / "Token.sol" / "Token.json"
    assert found[0].module_name == "token"


def test_iter_artifacts_finds_nested_contracts(tmp_path: Path) -> None:
    root = tmp_path / "out"
    write_artifact(root, "A.sol/Alpha.json", [])
    write_artifact(root, "lib/deep/B.sol/Beta.json", [])
    write_artifact(root, "lib/build-info/Gamma.json", [])
    names = sorted(a.name for a in iter_artifacts(root))
    assert names == ["Alpha", "Beta"]


def test_build_info_check_is_relative_to_root(tmp_path: Path) -> None:
    # An artifacts root that itself lives under a build-info directory still yields artifacts.
    root = tmp_path / "build-info" / "out"
    write_artifact(root, "A.sol/Alpha.json", [])
    assert [a.name for a in iter_artifacts(root)] == ["Alpha"]


def test_iter_artifacts_is_lazy(tmp_path: Path) -> None:
    # nothing is touched until the first item is requested
    it = iter_artifacts(tmp_path / "later")
    assert isinstance(it, types.GeneratorType)
    write_artifact(tmp_path / "later", "A.sol/Alpha.json", [])
    assert next(it).name == "Alpha"


def test_missing_root_fails_on_first_item(tmp_path: Path) -> None:
    it = iter_artifacts(tmp_path / "nope")
    with pytest.raises(IoError):
        next(it)


def test_missing_root_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(IoError) as ei:
        list(iter_artifacts(tmp_path / "nope"))
    assert ei.value.path == tmp_path / "nope"


def test_root_that_is_a_file_raises_io_error(tmp_path: Path) -> None:
    f = tmp_path / "file.json"
    f.write_text("{}")
    with pytest.raises(IoError):
        list(iter_artifacts(f))
