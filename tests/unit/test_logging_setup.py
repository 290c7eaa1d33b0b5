"""Tests for structured logging functionality."""

import json
import logging
from unittest.mock import patch

from event_relay.logging import (
    HumanReadableFormatter,
    StructuredJSONFormatter,
    clear_log_context,
    get_log_context,
    set_log_context,
)


def make_record(msg="Test message", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="/test/test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    def test_set_log_context_adds_fields(self):
        clear_log_context()
        set_log_context(connection_id="c1", room="user:a")

        assert get_log_context() == {"connection_id": "c1", "room": "user:a"}

        clear_log_context()

    def test_set_log_context_updates_existing_fields(self):
        clear_log_context()
        set_log_context(connection_id="c1")
        set_log_context(room="user:a")

        assert get_log_context() == {"connection_id": "c1", "room": "user:a"}

        clear_log_context()

    def test_clear_log_context_removes_fields(self):
        set_log_context(connection_id="c1")
        clear_log_context()

        assert get_log_context() == {}


class TestStructuredJSONFormatter:
    def test_format_includes_standard_fields(self):
        log_data = json.loads(StructuredJSONFormatter().format(make_record()))

        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "test_logger"
        assert log_data["message"] == "Test message"
        assert log_data["line"] == 10
        assert "timestamp" in log_data
        assert "environment" in log_data

    def test_format_includes_correlation_id_when_available(self):
        with patch(
            "event_relay.logging.get_correlation_id",
            return_value="abcd1234",
        ):
            log_data = json.loads(
                StructuredJSONFormatter().format(make_record())
            )

        assert log_data["request_id"] == "abcd1234"

    def test_format_includes_extra_fields(self):
        record = make_record(room="user:a", sent_to=2)

        log_data = json.loads(StructuredJSONFormatter().format(record))

        assert log_data["room"] == "user:a"
        assert log_data["sent_to"] == 2

    def test_format_truncates_long_messages(self):
        record = make_record(msg="x" * 300000)

        formatted = StructuredJSONFormatter().format(record)

        assert json.loads(formatted)["message"].endswith("... [TRUNCATED]")


class TestHumanReadableFormatter:
    def test_format_uses_dash_without_correlation_id(self):
        formatted = HumanReadableFormatter().format(make_record())

        assert "[-] INFO: Test message" in formatted

    def test_warning_includes_location(self):
        formatted = HumanReadableFormatter().format(
            make_record(level=logging.WARNING)
        )

        assert "WARNING: test.None:10 - Test message" in formatted
