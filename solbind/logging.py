from __future__ import annotations

"""
Structured logging setup for solbind.

Library modules log through the stdlib (`logging.getLogger(__name__)`); this
module routes those records through **structlog** so that CLI runs get either
a readable console rendering (default) or JSON lines for CI.

Context bound with `structlog.contextvars` (e.g. the binding currently being
generated) is merged into every event.

Environment
-----------
- LOG_LEVEL: one of DEBUG, INFO, WARNING, ERROR (default: WARNING)
- LOG_FORMAT: "console" (default) or "json"
"""

import logging
import os
from typing import Iterable, Optional

import structlog
from structlog.contextvars import merge_contextvars


def _processors() -> Iterable:
    yield structlog.stdlib.add_log_level
    yield structlog.stdlib.add_logger_name
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    yield structlog.processors.format_exc_info


def setup_logging(*, level: Optional[str | int] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once.

    Parameters
    ----------
    level: str|int
        Log level. Defaults to $LOG_LEVEL or WARNING.
    log_format: str
        "console" or "json". Defaults to $LOG_FORMAT or "console".
    """
    level = level or os.getenv("LOG_LEVEL", "") or "WARNING"
    if isinstance(level, str):
        level = level.upper()
    log_format = (log_format or os.getenv("LOG_FORMAT", "") or "console").lower()

    processors = list(_processors())
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False, sort_keys=False)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors)
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger; bind module name if provided."""
    log = structlog.get_logger()
    if name:
        return log.bind(logger=name)
    return log


__all__ = ["setup_logging", "get_logger"]
