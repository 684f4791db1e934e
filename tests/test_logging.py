"""
Tests for the structured log output.
"""
import json
import logging

from relay.core.config import Settings
from relay.core.logging import JSONFormatter, TextFormatter, setup_logging


def make_record(message: str, extra_data=None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="relay.services.ingest",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_message_ids_are_top_level_fields(self):
        formatter = JSONFormatter(service="relay-test")
        record = make_record(
            "Incoming message saved",
            {"message_id": "wamid.1", "conversation_id": "15551234567", "direction": "incoming"},
        )

        data = json.loads(formatter.format(record))

        assert data["message"] == "Incoming message saved"
        assert data["service"] == "relay-test"
        assert data["level"] == "INFO"
        assert data["message_id"] == "wamid.1"
        assert data["conversation_id"] == "15551234567"
        assert data["context"] == {"direction": "incoming"}

    def test_record_without_extra_data(self):
        data = json.loads(JSONFormatter().format(make_record("Starting application...")))
        assert "context" not in data
        assert "message_id" not in data
        assert data["logger"] == "relay.services.ingest"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_format_selected(self):
        logger = setup_logging(Settings(log_format="json", log_level="warning"))
        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_text_format_selected(self):
        logger = setup_logging(Settings(log_format="text"))
        assert isinstance(logger.handlers[0].formatter, TextFormatter)
