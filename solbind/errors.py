"""
Typed error classes for solbind.

Every stage of the bindings pipeline raises one of these so callers can catch a
specific failure mode while still being able to catch the base `BindgenError`.
Nothing is recovered locally: the first error aborts the run unless the caller
asked the driver to collect synthesis failures (see `BindingFailures`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

__all__ = [
    "BindgenError",
    "IoError",
    "MalformedDocument",
    "MissingInterface",
    "SynthesisError",
    "ExpansionError",
    "NamingCollision",
    "BindingFailures",
    "BindingsOutOfDate",
]


class BindgenError(Exception):
    """Base class for all solbind errors."""


@dataclass
class IoError(BindgenError):
    """Raised when an artifact, directory or output file cannot be read or written."""

    message: str
    path: Optional[Path] = None

    def __str__(self) -> str:
        where = f" [{self.path}]" if self.path is not None else ""
        return f"IoError{where}: {self.message}"


@dataclass
class MalformedDocument(BindgenError):
    """Raised when an artifact is not a JSON object or its `abi` has the wrong shape."""

    message: str
    path: Optional[Path] = None

    def __str__(self) -> str:
        where = f" [{self.path}]" if self.path is not None else ""
        return f"MalformedDocument{where}: {self.message}"


@dataclass
class MissingInterface(BindgenError):
    """Raised when an artifact carries no `abi` field."""

    path: Path

    def __str__(self) -> str:
        return f"MissingInterface [{self.path}]: no `abi` field found"


@dataclass
class SynthesisError(BindgenError):
    """
    Raised when the ABI -> interface text -> token round trip fails.

    The interface text is machine-generated, so this always points at a bug or
    an upstream contract violation, never at user input. `line`/`column` refer
    to the generated text when known.
    """

    binding: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        loc = ""
        if self.line is not None:
            loc = f" at {self.line}:{self.column if self.column is not None else 0}"
        return f"SynthesisError [{self.binding}]{loc}: {self.message}"


@dataclass
class ExpansionError(BindgenError):
    """Raised when the parsed interface is rejected by the expander; message is verbatim."""

    binding: str
    message: str

    def __str__(self) -> str:
        return f"ExpansionError [{self.binding}]: {self.message}"


@dataclass
class NamingCollision(BindgenError):
    """Raised when two artifacts normalize to the same output module name."""

    module: str
    first: Path
    second: Path

    def __str__(self) -> str:
        return (
            f"NamingCollision: `{self.module}` is produced by both "
            f"{self.first} and {self.second}"
        )


@dataclass
class BindingFailures(BindgenError):
    """Aggregate of per-binding failures, raised when errors are collected."""

    failures: List[Tuple[str, BindgenError]] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [f"{len(self.failures)} binding(s) failed:"]
        for name, err in self.failures:
            lines.append(f"  - {name}: {err}")
        return "\n".join(lines)


@dataclass
class BindingsOutOfDate(BindgenError):
    """Raised by the consistency check when on-disk bindings differ from fresh output."""

    root: Path
    missing: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        bits = [f"bindings under {self.root} are out of date"]
        if self.missing:
            bits.append("missing: " + ", ".join(self.missing))
        if self.changed:
            bits.append("changed: " + ", ".join(self.changed))
        if self.extra:
            bits.append("unexpected: " + ", ".join(self.extra))
        return "; ".join(bits)
