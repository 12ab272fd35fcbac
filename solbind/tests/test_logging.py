from __future__ import annotations

import json
import logging

import pytest
from structlog.contextvars import bound_contextvars

from solbind.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_carry_bound_context(capsys) -> None:
    setup_logging(level="INFO", log_format="json")
    with bound_contextvars(binding="Token"):
        logging.getLogger("solbind.test").info("generated %s", "Token")
    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "generated Token"
    assert event["binding"] == "Token"
    assert event["level"] == "info"
    assert event["logger"] == "solbind.test"


def test_level_filters_records(capsys, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    setup_logging()
    logging.getLogger("solbind.test").info("hidden")
    logging.getLogger("solbind.test").warning("shown")
    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "shown" in err
