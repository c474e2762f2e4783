# tests/test_logs.py
# Tests for logging setup.

import json
import logging

import pytest
from rich.logging import RichHandler

from safe_load_gate.errors import ConfigInvalidError
from safe_load_gate.logs import JsonFormatter, KeyValueFormatter, configure_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("safe_load_gate.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for the text and JSON formatters."""

    def test_key_value_appends_context(self):
        """Test node and annotation are appended."""
        text = KeyValueFormatter("%(message)s").format(make_record(node="node1", annotation="x/y"))
        assert text == "hello world node=node1 annotation=x/y"

    def test_key_value_without_context(self):
        """Test plain messages are unchanged."""
        assert KeyValueFormatter("%(message)s").format(make_record()) == "hello world"

    def test_json(self):
        """Test the JSON formatter emits one parseable object."""
        payload = json.loads(JsonFormatter().format(make_record(node="node1")))
        assert payload["msg"] == "hello world"
        assert payload["level"] == "info"
        assert payload["node"] == "node1"
        assert "annotation" not in payload


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_text_uses_rich(self):
        """Test the default format installs a RichHandler."""
        log = configure_logging("debug", "text")
        assert log.level == logging.DEBUG
        assert len(log.handlers) == 1
        assert isinstance(log.handlers[0], RichHandler)

    def test_json_format(self):
        """Test json format installs the JSON formatter."""
        log = configure_logging("info", "json")
        assert isinstance(log.handlers[0].formatter, JsonFormatter)

    def test_reconfigure_replaces_handler(self):
        """Test repeated setup does not stack handlers."""
        configure_logging()
        log = configure_logging(fmt="json")
        assert len(log.handlers) == 1

    def test_invalid_level(self):
        with pytest.raises(ConfigInvalidError, match="log level"):
            configure_logging("loud")

    def test_invalid_format(self):
        with pytest.raises(ConfigInvalidError, match="log format"):
            configure_logging("info", "xml")
