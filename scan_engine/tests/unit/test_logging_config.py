"""Unit tests for scan_engine.logging_config."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from scan_engine.config import Settings
from scan_engine.logging_config import JSONFormatter, configure_logging


def _record(msg: str = "hello %s", args: tuple = ("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="scan_engine.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_core_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "scan_engine.test"
        assert payload["message"] == "hello world"
        assert "timestamp" in payload

    def test_extra_fields_included_when_present(self):
        payload = json.loads(JSONFormatter().format(_record(source_path="a.sql", node_id="n1")))
        assert payload["source_path"] == "a.sql"
        assert payload["node_id"] == "n1"
        assert "line_number" not in payload

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in payload["exc_info"]


@pytest.fixture()
def _restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, JSONFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.mark.usefixtures("_restore_root_logger")
class TestConfigureLogging:
    def test_structured_installs_json_handler(self):
        configure_logging(Settings(structured_logging=True))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING

    def test_verbose_sets_debug(self):
        configure_logging(Settings(), verbose=True)
        assert logging.getLogger().level == logging.DEBUG
