"""Top-level driver: discover -> extract/synthesize -> write (or verify)."""

from __future__ import annotations

import logging

from .assemble import BindingSet, verify_package, write_package
from .config import BindConfig

log = logging.getLogger(__name__)


def run(config: BindConfig) -> BindingSet:
    """
    Regenerate the whole bindings package described by `config`.

    Every error propagates to the caller; a failure while writing can leave a
    partial package behind unless `config.atomic` is set.
    """
    bindings = BindingSet.discover(
        config.artifacts_root,
        allow_name_collisions=config.allow_name_collisions,
    )
    bindings.generate(config.attributes, collect_errors=config.collect_errors)
    if config.check_only:
        verify_package(bindings, config)
    else:
        write_package(bindings, config)
    return bindings


__all__ = ["run"]
