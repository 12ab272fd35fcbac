"""
solbind: Rust bindings from Solidity ABI artifacts.

Convenience exports for the most common entry points.
"""

from .version import __version__  # noqa: F401

from .config import BindConfig, PackageKind  # noqa: F401
from .errors import (  # noqa: F401
    BindgenError,
    BindingFailures,
    BindingsOutOfDate,
    ExpansionError,
    IoError,
    MalformedDocument,
    MissingInterface,
    NamingCollision,
    SynthesisError,
)
from .model import AbiEntry, BindingInstance, ContractArtifact, JsonAbi, Param  # noqa: F401
from .locator import derive_binding_name, iter_artifacts  # noqa: F401
from .extract import parse_abi, read_artifact  # noqa: F401
from .idl import render_idl  # noqa: F401
from .synth import synthesize  # noqa: F401
from .assemble import BindingSet, render_package, verify_package, write_package  # noqa: F401
from .pipeline import run  # noqa: F401

__all__ = [
    "__version__",
    "BindConfig", "PackageKind",
    "BindgenError", "BindingFailures", "BindingsOutOfDate", "ExpansionError", "IoError",
    "MalformedDocument", "MissingInterface", "NamingCollision", "SynthesisError",
    "AbiEntry", "BindingInstance", "ContractArtifact", "JsonAbi", "Param",
    "derive_binding_name", "iter_artifacts",
    "parse_abi", "read_artifact",
    "render_idl", "synthesize",
    "BindingSet", "render_package", "verify_package", "write_package",
    "run",
]
