"""
Package assembly: turn a set of synthesized bindings into files on disk.

Two layouts are supported (see `PackageKind`):

Crate::

    <out>/Cargo.toml
    <out>/src/lib.rs          pub mod <name>; ... + extern crate lines
    <out>/src/<name>.rs       one per contract (multi-file)

Module::

    <out>/mod.rs              banner + pub mod <name>; ...
    <out>/<name>.rs           one per contract (multi-file)

In single-file mode every expansion is inlined into the index file instead.
Rendering is separated from writing so the same output can be written
directly, written through a staging directory, or compared with what is
already on disk.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Union

from structlog.contextvars import bound_contextvars

from .config import ALLOY_GIT, BindConfig, PackageKind
from .errors import BindgenError, BindingFailures, BindingsOutOfDate, IoError, NamingCollision
from .extract import read_artifact
from .locator import iter_artifacts
from .model import BindingInstance, ContractArtifact
from .synth import synthesize

log = logging.getLogger(__name__)

HOST_EXT = ".rs"

CRATE_ALLOW = "#![allow(unused_imports)]\n"
CRATE_BANNER = (
    "//! This lib contains generated bindings for Solidity contracts.\n"
    "//! This is generated code, do not edit.\n"
    "//! Any manual change is lost the next time bindings are generated.\n"
)
EXTERN_DECLS = "extern crate alloy_sol_types;\nextern crate core;\n"

MODULE_ALLOW = "#![allow(unused_imports, clippy::all, rustdoc::all)]\n"
MODULE_BANNER = (
    "//! This module contains generated bindings for Solidity contracts.\n"
    "//! This is autogenerated code.\n"
    "//! Do not manually edit these files.\n"
    "//! These files may be overwritten by the codegen system at any time.\n"
)
MODULE_FILE_PROVENANCE = (
    "//! This module was autogenerated by solbind from a compiler ABI artifact.\n"
    "//! Regenerate it instead of editing it.\n"
)


class BindingSet:
    """Ordered bindings for one artifacts root; the unit the assembler consumes."""

    def __init__(self, artifacts_root: Union[str, Path], instances: Sequence[BindingInstance] = ()) -> None:
        self.artifacts_root = Path(artifacts_root)
        self.instances: List[BindingInstance] = list(instances)

    @classmethod
    def discover(cls, artifacts_root: Union[str, Path], *, allow_name_collisions: bool = False) -> "BindingSet":
        """
        Build a set from every artifact under `artifacts_root`.

        Raises:
            NamingCollision: two artifacts map to the same module name and
                `allow_name_collisions` is false. When allowed, the later
                artifact overwrites the earlier one's file and the index gets
                a duplicate declaration.
        """
        seen: Dict[str, ContractArtifact] = {}
        instances: List[BindingInstance] = []
        for artifact in iter_artifacts(artifacts_root):
            prev = seen.get(artifact.module_name)
            if prev is not None:
                if not allow_name_collisions:
                    raise NamingCollision(artifact.module_name, prev.path, artifact.path)
                log.warning(
                    "%s and %s both map to module `%s`; the latter overwrites the former",
                    prev.path, artifact.path, artifact.module_name,
                )
            else:
                seen[artifact.module_name] = artifact
            instances.append(BindingInstance(artifact))
        log.info("discovered %d artifact(s) under %s", len(instances), artifacts_root)
        return cls(artifacts_root, instances)

    def __iter__(self) -> Iterator[BindingInstance]:
        return iter(self.instances)

    def __len__(self) -> int:
        return len(self.instances)

    @property
    def names(self) -> List[str]:
        return [i.name for i in self.instances]

    def generate(self, attributes: Sequence[str] = (), *, collect_errors: bool = False) -> None:
        """
        Synthesize every instance in order.

        Already expanded instances are left as they are. By default the first
        failure propagates; with `collect_errors` all instances are attempted
        and the failures are raised together as `BindingFailures`.
        """
        failures = []
        for instance in self.instances:
            if instance.is_expanded:
                continue
            try:
                with bound_contextvars(binding=instance.name):
                    extracted = read_artifact(instance.artifact)
                    expansion = synthesize(extracted.abi, instance.name, attributes)
            except BindgenError as e:
                if not collect_errors:
                    raise
                log.error("failed to generate bindings for %s: %s", instance.name, e)
                failures.append((instance.name, e))
                continue
            instance.attach_expansion(expansion)
        if failures:
            raise BindingFailures(failures)


# --- Rendering ----------------------------------------------------------------

def manifest_text(config: BindConfig) -> str:
    lines = [
        "[package]",
        f'name = "{config.package_name}"',
        f'version = "{config.package_version}"',
        'edition = "2021"',
        "",
        "[dependencies]",
        f'alloy-sol-types = "{config.alloy_version}"',
    ]
    if config.annotate_rpc:
        rev = f', rev = "{config.alloy_rev}"' if config.alloy_rev else ""
        lines.append(f'alloy-contract = {{ git = "{ALLOY_GIT}"{rev} }}')
    return "\n".join(lines) + "\n"


def _expansion_of(instance: BindingInstance) -> str:
    if instance.expansion is None:
        raise RuntimeError(f"binding {instance.name!r} has not been generated")
    return instance.expansion


def _render_crate(binding_set: BindingSet, config: BindConfig) -> Dict[str, str]:
    files: Dict[str, str] = {"Cargo.toml": manifest_text(config)}
    if config.single_file:
        lib = CRATE_BANNER + CRATE_ALLOW
        for instance in binding_set:
            lib += "\n" + _expansion_of(instance)
    else:
        lib = CRATE_ALLOW
        for instance in binding_set:
            module = instance.artifact.module_name
            files[f"src/{module}{HOST_EXT}"] = _expansion_of(instance)
            lib += f"pub mod {module};\n"
        lib += EXTERN_DECLS
    files[f"src/lib{HOST_EXT}"] = lib
    return files


def _render_module(binding_set: BindingSet, config: BindConfig) -> Dict[str, str]:
    files: Dict[str, str] = {}
    index = MODULE_BANNER + MODULE_ALLOW
    for instance in binding_set:
        module = instance.artifact.module_name
        if config.single_file:
            index += "\n"
            if module != instance.name:
                index += f"pub mod {module} {{ pub use super::{instance.name}::*; }}\n"
            index += _expansion_of(instance)
        else:
            files[f"{module}{HOST_EXT}"] = MODULE_FILE_PROVENANCE + _expansion_of(instance)
            index += f"pub mod {module};\n"
    files[f"mod{HOST_EXT}"] = index
    return files


def render_package(binding_set: BindingSet, config: BindConfig) -> Dict[str, str]:
    """Relative path -> file content, in write order. Every instance must be expanded."""
    if config.package_kind is PackageKind.CRATE:
        return _render_crate(binding_set, config)
    return _render_module(binding_set, config)


# --- Writing ------------------------------------------------------------------

def _write_files(root: Path, files: Dict[str, str]) -> List[Path]:
    written = []
    for rel, text in files.items():
        path = root / rel
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise IoError(f"cannot write bindings file: {e.strerror or e}", path) from e
        written.append(path)
    return written


def _write_atomic(root: Path, files: Dict[str, str]) -> List[Path]:
    """Write into a sibling staging directory, then swap it in by rename."""
    try:
        root.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{root.name}.staging-", dir=root.parent))
    except OSError as e:
        raise IoError(f"cannot create staging directory: {e.strerror or e}", root.parent) from e

    try:
        _write_files(staging, files)
    except IoError:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    backup: Optional[Path] = None
    try:
        if root.exists():
            backup = root.with_name(f".{root.name}.previous-{os.getpid()}")
            if backup.exists():
                shutil.rmtree(backup)
            os.rename(root, backup)
        os.rename(staging, root)
    except OSError as e:
        if backup is not None and backup.exists() and not root.exists():
            os.rename(backup, root)
        shutil.rmtree(staging, ignore_errors=True)
        raise IoError(f"cannot move staged bindings into place: {e.strerror or e}", root) from e
    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
    return [root / rel for rel in files]


def write_package(binding_set: BindingSet, config: BindConfig) -> List[Path]:
    """
    Materialize the package under `config.output_root`.

    Directories are created as needed and existing files are overwritten.
    With `config.atomic` the whole output directory is replaced in one
    rename, which also drops files from earlier runs.
    """
    files = render_package(binding_set, config)
    root = config.output_root
    kind = config.package_kind.value
    log.info("writing %s with %d file(s) to %s", kind, len(files), root)
    written = _write_atomic(root, files) if config.atomic else _write_files(root, files)
    log.info("wrote %s to %s", kind, root)
    return written


def verify_package(binding_set: BindingSet, config: BindConfig) -> None:
    """
    Check that the bindings on disk match a fresh rendering.

    Raises:
        BindingsOutOfDate: some files are missing or differ, or the output
            root holds `.rs` files that would not be generated.
    """
    root = config.output_root
    files = render_package(binding_set, config)
    missing: List[str] = []
    changed: List[str] = []
    for rel, text in files.items():
        path = root / rel
        if not path.is_file():
            missing.append(rel)
            continue
        try:
            on_disk = path.read_text(encoding="utf-8")
        except OSError as e:
            raise IoError(f"cannot read existing bindings: {e.strerror or e}", path) from e
        if on_disk != text:
            changed.append(rel)
    extra: List[str] = []
    if root.is_dir():
        extra = sorted(
            rel
            for rel in (p.relative_to(root).as_posix() for p in root.rglob(f"*{HOST_EXT}") if p.is_file())
            if rel not in files
        )
    if missing or changed or extra:
        raise BindingsOutOfDate(root, missing, changed, extra)
    log.info("bindings under %s are up to date", root)


__all__ = [
    "BindingSet",
    "manifest_text",
    "render_package",
    "write_package",
    "verify_package",
    "CRATE_BANNER",
    "MODULE_BANNER",
    "MODULE_FILE_PROVENANCE",
    "EXTERN_DECLS",
]
