"""Tests for logging setup."""

import json
import logging

import pytest
import structlog

from dep_inspector.config import AnalyzerSettings
from dep_inspector.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.FileHandler, logging.NullHandler, logging.StreamHandler):
            root.removeHandler(handler)
            handler.close()
    structlog.reset_defaults()


def test_json_lines_to_file(tmp_path):
    log_file = tmp_path / "dep.log"
    setup_logging(AnalyzerSettings(log_format="json", log_file=str(log_file), log_level="debug"))

    structlog.get_logger("dep_inspector.test").info("registry.lookup_failed", reason="timeout")
    for handler in logging.getLogger().handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["event"] == "registry.lookup_failed"
    assert record["reason"] == "timeout"
    assert record["level"] == "info"
    assert record["logger"] == "dep_inspector.test"


def test_tui_mode_discards_records():
    setup_logging(AnalyzerSettings(), tui=True)
    [handler] = logging.getLogger().handlers
    assert isinstance(handler, logging.NullHandler)


def test_console_mode_writes_stderr():
    setup_logging(AnalyzerSettings())
    [handler] = logging.getLogger().handlers
    assert isinstance(handler, logging.StreamHandler)


def test_http_libraries_quieted():
    setup_logging(AnalyzerSettings(log_level="debug"))
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("dep_inspector").level == logging.DEBUG
