"""
Version helpers for solbind.

A static __version__ (PEP 440) plus `git describe` metadata when running
from a checkout, which is useful when comparing bindings produced by dev builds.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Bump this when publishing
__version__ = "0.1.0"


@dataclass(frozen=True)
class VersionInfo:
    base: str
    git: Optional[str] = None

    def __str__(self) -> str:
        return self.base if not self.git else f"{self.base} ({self.git})"


def _git_describe() -> Optional[str]:
    """`git describe --tags --dirty --always` when inside a checkout, else None."""
    here = Path(__file__).resolve().parent
    root = next((p for p in (here, *here.parents) if (p / ".git").is_dir()), None)
    if root is None:
        return None
    try:
        out = subprocess.run(
            ["git", "describe", "--tags", "--dirty", "--always"],
            cwd=root,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.stdout.strip() or None


def version_info() -> VersionInfo:
    return VersionInfo(base=__version__, git=_git_describe())


__all__ = ["__version__", "VersionInfo", "version_info"]
