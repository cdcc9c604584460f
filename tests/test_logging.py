"""Tests for root logger configuration."""

import json
import logging

import pytest
from rich.logging import RichHandler

from ai_services.logging_setup import JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


class TestConfigureLogging:
    def test_text_uses_rich(self):
        handler = configure_logging("info", "text")
        assert isinstance(handler, RichHandler)
        assert logging.getLogger().handlers == [handler]
        assert logging.getLogger().level == logging.INFO

    def test_json_handler(self):
        handler = configure_logging("debug", "json")
        assert isinstance(handler.formatter, JsonFormatter)
        assert logging.getLogger().level == logging.DEBUG

    def test_warn_level(self):
        configure_logging("warn")
        assert logging.getLogger().level == logging.WARNING

    def test_repeated_calls_do_not_stack_handlers(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_httpx_kept_quiet_in_debug(self):
        configure_logging("debug")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported log format"):
            configure_logging("info", "xml")


class TestJsonFormatter:
    def test_formats_record(self):
        record = logging.LogRecord("ai_services.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
        data = json.loads(JsonFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["name"] == "ai_services.test"
        assert data["message"] == "hello world"
        assert "exc_info" not in data

    def test_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys

            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in data["exc_info"]
