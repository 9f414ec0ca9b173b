"""
Unit tests for logging setup and context injection.
"""

import json
import logging

from activity_ingest.monitoring.logging import (
    ROOT_LOGGER,
    JsonFormatter,
    LoggingOptions,
    TextFormatter,
    setup_logging,
    with_context,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord(ROOT_LOGGER, logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for the JSON and text formatters."""

    def test_json_includes_context(self):
        """Should emit one JSON object with message and context fields."""
        payload = json.loads(JsonFormatter().format(_record(run_id="abc", source_id="badm")))
        assert payload["msg"] == "hello"
        assert payload["run_id"] == "abc"
        assert payload["source_id"] == "badm"

    def test_text_contains_message(self):
        """Should include level and message."""
        line = TextFormatter(include_timestamps=False).format(_record())
        assert "INFO" in line
        assert "hello" in line


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_repeated_setup_keeps_one_handler(self):
        """Should replace rather than stack handlers."""
        setup_logging(LoggingOptions(level="DEBUG"))
        logger = setup_logging(LoggingOptions(level="WARNING", json_logs=True))
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)
        assert logger.level == logging.WARNING

    def test_with_context_merges_extra(self):
        """Should inject run and source ids into each record."""
        adapter = with_context(logging.getLogger(ROOT_LOGGER), run_id="r1", source_id="s1")
        _, kwargs = adapter.process("msg", {"extra": {"item": "x"}})
        assert kwargs["extra"] == {"run_id": "r1", "source_id": "s1", "item": "x"}
