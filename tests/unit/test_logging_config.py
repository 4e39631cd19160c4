"""Unit tests for logging setup."""

from __future__ import annotations

import json
import logging

import pytest

from nbpilot.logging_config import JsonLineFormatter, configure_logging


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter() -> None:
    record = logging.LogRecord("nbpilot.test", logging.WARNING, __file__, 1, "Step %d failed", (3,), None)
    entry = json.loads(JsonLineFormatter().format(record))
    assert entry["severity"] == "WARNING"
    assert entry["message"] == "Step 3 failed"
    assert entry["logger"] == "nbpilot.test"


def test_configure_logging_replaces_handlers(restore_root_logger) -> None:
    configure_logging("debug", json_format=True)
    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonLineFormatter)


def test_unknown_level_falls_back_to_info(restore_root_logger) -> None:
    configure_logging("chatty")
    assert restore_root_logger.level == logging.INFO
