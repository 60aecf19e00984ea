"""Tests for structured logging configuration."""

import json
import logging
from unittest.mock import patch

from redikit.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
)


def _record(msg: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_json_format_with_context(self):
        record = _record("Request denied")
        record.key = "rl:user:42"
        record.strategy = "token-bucket"

        data = json.loads(JSONFormatter().format(record))

        assert data["key"] == "rl:user:42"
        assert data["strategy"] == "token-bucket"
        assert "extra" not in data

    def test_json_format_with_extra_fields(self):
        record = _record()
        record.count = 7

        data = json.loads(JSONFormatter().format(record))
        assert data["extra"]["count"] == 7

    def test_json_format_with_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = logging.LogRecord(
                name="test",
                level=logging.ERROR,
                pathname="test.py",
                lineno=1,
                msg="failed",
                args=(),
                exc_info=sys.exc_info(),
            )

        data = json.loads(JSONFormatter().format(record))
        assert any("ValueError: boom" in line for line in data["exception"])

    def test_none_context_omitted(self):
        record = _record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))
        assert "key" not in data
        assert "strategy" not in data

    def test_plain_record_has_only_standard_keys(self):
        record = _record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))
        assert set(data) == {"timestamp", "level", "logger", "message", "source"}


class TestContextFilter:
    """Test the context filter."""

    def test_adds_defaults(self):
        record = _record()
        assert ContextFilter().filter(record) is True
        assert record.key is None
        assert record.strategy is None

    def test_keeps_existing_values(self):
        record = _record()
        record.key = "cache:user:1"
        ContextFilter().filter(record)
        assert record.key == "cache:user:1"


class TestLoggingConfig:
    """Test logging configuration selection."""

    def test_text_format_by_default(self):
        with patch("redikit.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "standard"
        assert config["handlers"]["console"]["level"] == "DEBUG"
        assert "json" not in config["formatters"]
        assert "redikit" in config["loggers"]

    def test_json_format(self):
        with patch("redikit.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"] == "redikit.core.logging.JSONFormatter"

    def test_structured_format(self):
        with patch("redikit.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"


class TestHelpers:
    def test_get_logger_default_name(self):
        assert get_logger().name == "redikit"

    def test_get_log_context_drops_none(self):
        context = get_log_context(key="rl:u1", strategy=None, count=3)
        assert context == {"key": "rl:u1", "count": 3}

