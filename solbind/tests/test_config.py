from __future__ import annotations

from pathlib import Path

import pytest

from solbind.config import DEFAULT_ALLOY_VERSION, BindConfig, PackageKind


def test_defaults() -> None:
    cfg = BindConfig()
    assert cfg.artifacts_root == Path("out")
    assert cfg.output_root == Path("out/bindings")
    assert cfg.package_kind is PackageKind.CRATE
    assert cfg.alloy_version == DEFAULT_ALLOY_VERSION
    assert cfg.attributes == []
    assert not cfg.allow_name_collisions


def test_attributes_from_flags() -> None:
    cfg = BindConfig(annotate_rpc=True, extra_derives=["Hash", "serde::Serialize"])
    assert cfg.attributes == ["sol(rpc)", "derive(Hash, serde::Serialize)"]


@pytest.mark.parametrize(
    "kw",
    [
        {"package_name": "9lives"},
        {"package_name": "has space"},
        {"package_version": "1.0"},
        {"package_version": "v1.0.0"},
        {"alloy_version": " "},
        {"extra_derives": ["Hash)"]},
        {"package_kind": "workspace"},
    ],
)
def test_validation(kw) -> None:
    with pytest.raises(ValueError):
        BindConfig(**kw)


def test_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SOLBIND_ARTIFACTS", str(tmp_path / "a"))
    monkeypatch.setenv("SOLBIND_OUT", str(tmp_path / "b"))
    monkeypatch.setenv("SOLBIND_NAME", "env-bindings")
    monkeypatch.setenv("SOLBIND_VERSION", "2.0.0-rc.1")
    monkeypatch.setenv("SOLBIND_KIND", "MODULE")
    monkeypatch.setenv("SOLBIND_SINGLE_FILE", "yes")
    monkeypatch.setenv("SOLBIND_RPC", "1")
    monkeypatch.setenv("SOLBIND_DERIVES", "Hash, Default")
    monkeypatch.setenv("SOLBIND_ALLOY_REV", "deadbeef")
    cfg = BindConfig.from_env()
    assert cfg.artifacts_root == tmp_path / "a"
    assert cfg.output_root == tmp_path / "b"
    assert cfg.package_name == "env-bindings"
    assert cfg.package_version == "2.0.0-rc.1"
    assert cfg.package_kind is PackageKind.MODULE
    assert cfg.single_file and cfg.annotate_rpc
    assert cfg.extra_derives == ("Hash", "Default")
    assert cfg.alloy_rev == "deadbeef"
    assert not cfg.atomic


def test_with_overrides_ignores_none_and_unknown() -> None:
    base = BindConfig(package_name="base")
    cfg = BindConfig.with_overrides(base, package_name=None, single_file=True, nonsense=1)
    assert cfg.package_name == "base"
    assert cfg.single_file
    assert base.single_file is False
    assert cfg.to_dict()["single_file"] is True
