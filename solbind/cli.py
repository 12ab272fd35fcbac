"""
solbind.cli
===========

`solbind`: generate Rust bindings from compiler ABI artifacts.

Examples
--------
    $ solbind bind --artifacts out --out bindings --name my-bindings
    $ solbind bind --module --single-file --out src/bindings
    $ solbind check --artifacts out --out bindings     # exit 1 if stale
    $ solbind version

Every option can also come from the environment (see `BindConfig.from_env`):
SOLBIND_ARTIFACTS, SOLBIND_OUT, SOLBIND_NAME, SOLBIND_VERSION, ...
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer

from .config import DEFAULT_ALLOY_VERSION, BindConfig, PackageKind
from .errors import BindgenError
from .logging import get_logger, setup_logging
from .pipeline import run
from .version import version_info

app = typer.Typer(
    name="solbind",
    help="Generate Rust bindings from Solidity ABI artifacts.",
    no_args_is_help=True,
    add_completion=False,
)

log = get_logger(__name__)

__all__ = ["app", "main"]


@app.callback()
def _root(
    log_level: Optional[str] = typer.Option(None, "--log-level", envvar="LOG_LEVEL", help="Log level."),
    log_format: Optional[str] = typer.Option(None, "--log-format", envvar="LOG_FORMAT", help="console | json"),
) -> None:
    setup_logging(level=log_level, log_format=log_format)


def _config(
    artifacts: Path,
    out: Path,
    name: str,
    version: str,
    module: bool,
    single_file: bool,
    rpc: bool,
    derive: List[str],
    alloy_version: str,
    alloy_rev: Optional[str],
    allow_collisions: bool,
    keep_going: bool,
    atomic: bool,
    check_only: bool,
) -> BindConfig:
    try:
        return BindConfig(
            artifacts_root=artifacts,
            output_root=out,
            package_name=name,
            package_version=version,
            package_kind=PackageKind.MODULE if module else PackageKind.CRATE,
            single_file=single_file,
            annotate_rpc=rpc,
            extra_derives=tuple(derive),
            alloy_version=alloy_version,
            alloy_rev=alloy_rev,
            allow_name_collisions=allow_collisions,
            collect_errors=keep_going,
            atomic=atomic,
            check_only=check_only,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


_ARTIFACTS = typer.Option(Path("out"), "--artifacts", "-a", envvar="SOLBIND_ARTIFACTS", help="Compiler artifacts directory.")
_OUT = typer.Option(Path("out/bindings"), "--out", "-o", envvar="SOLBIND_OUT", help="Bindings output directory.")
_NAME = typer.Option("foundry-contracts", "--name", envvar="SOLBIND_NAME", help="Crate name.")
_VERSION = typer.Option("0.1.0", "--crate-version", envvar="SOLBIND_VERSION", help="Crate version.")
_MODULE = typer.Option(False, "--module", help="Emit a module tree instead of a crate.")
_SINGLE = typer.Option(False, "--single-file", help="Put every binding into the index file.")
_RPC = typer.Option(False, "--rpc", envvar="SOLBIND_RPC", help="Emit provider-backed instance types.")
_DERIVE = typer.Option([], "--derive", help="Extra derive for generated types (repeatable).")
_ALLOY_VERSION = typer.Option(DEFAULT_ALLOY_VERSION, "--alloy-version", envvar="SOLBIND_ALLOY_VERSION")
_ALLOY_REV = typer.Option(None, "--alloy-rev", envvar="SOLBIND_ALLOY_REV", help="alloy git revision for alloy-contract.")
_COLLISIONS = typer.Option(False, "--allow-name-collisions", help="Let later artifacts overwrite same-named ones.")
_KEEP_GOING = typer.Option(False, "--keep-going", help="Report every failing binding instead of stopping at the first.")


@app.command("bind")
def bind(
    artifacts: Path = _ARTIFACTS,
    out: Path = _OUT,
    name: str = _NAME,
    version: str = _VERSION,
    module: bool = _MODULE,
    single_file: bool = _SINGLE,
    rpc: bool = _RPC,
    derive: List[str] = _DERIVE,
    alloy_version: str = _ALLOY_VERSION,
    alloy_rev: Optional[str] = _ALLOY_REV,
    allow_collisions: bool = _COLLISIONS,
    keep_going: bool = _KEEP_GOING,
    atomic: bool = typer.Option(False, "--atomic", envvar="SOLBIND_ATOMIC", help="Write through a staging directory."),
) -> None:
    """Generate bindings from every artifact under --artifacts."""
    cfg = _config(artifacts, out, name, version, module, single_file, rpc, derive,
                  alloy_version, alloy_rev, allow_collisions, keep_going, atomic, False)
    bindings = run(cfg)
    typer.echo(f"Generated bindings for {len(bindings)} contract(s) in {cfg.output_root}")


@app.command("check")
def check(
    artifacts: Path = _ARTIFACTS,
    out: Path = _OUT,
    name: str = _NAME,
    version: str = _VERSION,
    module: bool = _MODULE,
    single_file: bool = _SINGLE,
    rpc: bool = _RPC,
    derive: List[str] = _DERIVE,
    alloy_version: str = _ALLOY_VERSION,
    alloy_rev: Optional[str] = _ALLOY_REV,
    allow_collisions: bool = _COLLISIONS,
    keep_going: bool = _KEEP_GOING,
) -> None:
    """Verify that existing bindings match the artifacts, without writing."""
    cfg = _config(artifacts, out, name, version, module, single_file, rpc, derive,
                  alloy_version, alloy_rev, allow_collisions, keep_going, False, True)
    bindings = run(cfg)
    typer.echo(f"Bindings for {len(bindings)} contract(s) in {cfg.output_root} are up to date")


@app.command("version")
def version_cmd() -> None:
    """Print the solbind version."""
    typer.echo(f"solbind {version_info()}")


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.

    Usage errors are reported by typer itself (exit code 2); solbind errors
    print `error: ...` and return 1.
    """
    try:
        app(prog_name="solbind", args=argv)
    except SystemExit as e:
        if e.code is None or isinstance(e.code, int):
            return e.code or 0
        typer.echo(e.code, err=True)
        return 1
    except BindgenError as e:
        log.debug("run failed", exc_info=True)
        typer.echo(f"error: {e}", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
