"""
Structured JSON logging configuration.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from relay.core.config import Settings


# Lifted out of extra_data so every event about one message can be filtered on
CORRELATION_KEYS = ("message_id", "conversation_id")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, keyed for tracing a message through the relay."""

    def __init__(self, service: str = "relay"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        extra_data = dict(getattr(record, "extra_data", None) or {})

        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for key in CORRELATION_KEYS:
            if key in extra_data:
                log_data[key] = extra_data.pop(key)

        if extra_data:
            log_data["context"] = extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            line = f"{line} {json.dumps(extra_data, default=str)}"
        return line


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure and return the relay's root logger."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logger = logging.getLogger("relay")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if settings.log_format.lower() == "json":
        handler.setFormatter(JSONFormatter(service=settings.app_name))
    else:
        handler.setFormatter(TextFormatter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = "relay") -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
