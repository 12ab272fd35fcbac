"""
Run configuration: where artifacts live, where bindings go and what shape they take.

- Loads defaults and supports overrides via environment variables (SOLBIND_*).
- Validates names/versions up front so a bad setting never leaves a half
  written package behind.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .sol.parser import parse_attributes

DEFAULT_ALLOY_VERSION = "0.7.4"
ALLOY_GIT = "https://github.com/alloy-rs/alloy"

_CRATE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$")
_TRUE = ("1", "true", "yes", "on")


class PackageKind(str, Enum):
    CRATE = "crate"
    MODULE = "module"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _env_bool(name: str, default: bool = False) -> bool:
    v = _env(name)
    return default if v is None else v.strip().lower() in _TRUE


def _env_list(name: str) -> Tuple[str, ...]:
    v = _env(name)
    return tuple(p.strip() for p in v.split(",") if p.strip()) if v else ()


@dataclass(slots=True)
class BindConfig:
    artifacts_root: Path = field(default_factory=lambda: Path("out"))
    output_root: Path = field(default_factory=lambda: Path("out/bindings"))
    package_name: str = "foundry-contracts"
    package_version: str = "0.1.0"
    package_kind: PackageKind = PackageKind.CRATE
    single_file: bool = False
    annotate_rpc: bool = False
    extra_derives: Tuple[str, ...] = ()
    alloy_version: str = DEFAULT_ALLOY_VERSION
    alloy_rev: Optional[str] = None
    allow_name_collisions: bool = False
    collect_errors: bool = False
    atomic: bool = False
    check_only: bool = False

    def __post_init__(self) -> None:
        self.artifacts_root = Path(self.artifacts_root)
        self.output_root = Path(self.output_root)
        self.package_kind = PackageKind(self.package_kind)
        self.extra_derives = tuple(self.extra_derives)
        self.validate()

    def validate(self) -> None:
        if not _CRATE_NAME_RE.match(self.package_name):
            raise ValueError(f"invalid package name: {self.package_name!r}")
        if not _SEMVER_RE.match(self.package_version):
            raise ValueError(f"package version must be semver, got: {self.package_version!r}")
        if not self.alloy_version.strip():
            raise ValueError("alloy version must not be empty")
        # raises ValueError on malformed derive paths
        parse_attributes(self.attributes)

    @property
    def attributes(self) -> List[str]:
        """Decoration attributes applied to every interface before expansion."""
        attrs: List[str] = []
        if self.annotate_rpc:
            attrs.append("sol(rpc)")
        if self.extra_derives:
            attrs.append(f"derive({', '.join(self.extra_derives)})")
        return attrs

    @classmethod
    def from_env(cls, prefix: str = "SOLBIND_") -> "BindConfig":
        """
        Create config from environment variables:

        SOLBIND_ARTIFACTS       artifacts root directory
        SOLBIND_OUT             output directory
        SOLBIND_NAME            package name
        SOLBIND_VERSION         package version (semver)
        SOLBIND_KIND            "crate" | "module"
        SOLBIND_SINGLE_FILE     bool
        SOLBIND_RPC             bool, emit RPC instance types
        SOLBIND_DERIVES         comma separated extra derives
        SOLBIND_ALLOY_VERSION   alloy-sol-types version
        SOLBIND_ALLOY_REV       alloy git revision for alloy-contract
        SOLBIND_ATOMIC          bool, write through a staging directory
        """
        return cls(
            artifacts_root=Path(_env(f"{prefix}ARTIFACTS", "out")),
            output_root=Path(_env(f"{prefix}OUT", "out/bindings")),
            package_name=_env(f"{prefix}NAME", "foundry-contracts"),
            package_version=_env(f"{prefix}VERSION", "0.1.0"),
            package_kind=PackageKind(_env(f"{prefix}KIND", PackageKind.CRATE.value).lower()),
            single_file=_env_bool(f"{prefix}SINGLE_FILE"),
            annotate_rpc=_env_bool(f"{prefix}RPC"),
            extra_derives=_env_list(f"{prefix}DERIVES"),
            alloy_version=_env(f"{prefix}ALLOY_VERSION", DEFAULT_ALLOY_VERSION),
            alloy_rev=_env(f"{prefix}ALLOY_REV"),
            atomic=_env_bool(f"{prefix}ATOMIC"),
        )

    @classmethod
    def with_overrides(cls, base: Optional["BindConfig"] = None, **overrides: Any) -> "BindConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and `None` values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


__all__ = ["ALLOY_GIT", "DEFAULT_ALLOY_VERSION", "BindConfig", "PackageKind"]
