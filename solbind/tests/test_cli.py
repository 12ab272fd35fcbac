from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from solbind import __version__, version
from solbind.cli import app, main
from solbind.errors import MissingInterface

from .conftest import write_artifact

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def run_cli(args: list[str]) -> str:
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    return result.output


def test_version(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(version, "_git_describe", lambda: None)
    assert run_cli(["version"]).strip() == f"solbind {__version__}"


def test_version_includes_git_describe(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(version, "_git_describe", lambda: "v0.1.0-3-gabc1234")
    assert version.version_info().git == "v0.1.0-3-gabc1234"
    assert run_cli(["version"]).strip() == f"solbind {__version__} (v0.1.0-3-gabc1234)"


def test_bind_then_check(artifacts: Path, tmp_path: Path) -> None:
    out = tmp_path / "bindings"
    output = run_cli(["bind", "-a", str(artifacts), "-o", str(out), "--name", "cli-bindings", "--rpc", "--derive", "Hash"])
    assert "Generated bindings for 1 contract(s)" in output
    assert 'name = "cli-bindings"' in (out / "Cargo.toml").read_text()
    token = (out / "src" / "token.rs").read_text()
    assert "TokenInstance" in token
    assert "Hash" in token

    output = run_cli(["check", "-a", str(artifacts), "-o", str(out), "--name", "cli-bindings", "--rpc", "--derive", "Hash"])
    assert "up to date" in output


def test_bind_module_single_file(artifacts: Path, tmp_path: Path) -> None:
    out = tmp_path / "bindings"
    run_cli(["bind", "-a", str(artifacts), "-o", str(out), "--module", "--single-file"])
    assert [p.name for p in out.iterdir()] == ["mod.rs"]


def test_bind_error_surfaces(artifacts: Path, tmp_path: Path) -> None:
    write_artifact(artifacts, "Lib.sol/Lib.json", None)
    result = runner.invoke(app, ["bind", "-a", str(artifacts), "-o", str(tmp_path / "b")])
    assert result.exit_code != 0
    assert isinstance(result.exception, MissingInterface)


def test_invalid_name_is_a_usage_error(artifacts: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["bind", "-a", str(artifacts), "-o", str(tmp_path / "b"), "--name", "bad name"])
    assert result.exit_code == 2


def test_main_exit_codes(artifacts: Path, tmp_path: Path, capsys) -> None:
    out = tmp_path / "bindings"
    assert main(["bind", "-a", str(artifacts), "-o", str(out)]) == 0
    assert main(["check", "-a", str(artifacts), "-o", str(out)]) == 0

    (out / "src" / "token.rs").write_text("// edited")
    assert main(["check", "-a", str(artifacts), "-o", str(out)]) == 1
    assert "error: bindings under" in capsys.readouterr().err

    assert main(["bind", "-a", str(artifacts), "-o", str(out), "--crate-version", "one"]) == 2


def test_main_without_arguments_prints_usage(capsys) -> None:
    code = main([])
    captured = capsys.readouterr()
    assert code in (0, 2)
    assert "Usage" in captured.out + captured.err


def test_main_unknown_option_is_a_usage_error(capsys) -> None:
    assert main(["bind", "--bogus"]) == 2
    assert "No such option" in capsys.readouterr().err
