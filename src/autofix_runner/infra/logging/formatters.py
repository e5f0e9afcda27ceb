from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

# Attributes every LogRecord carries; anything else arrived via ``extra``
STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


def record_fields(record: logging.LogRecord) -> dict[str, object]:
    """Structured fields attached to a record through ``extra``."""
    return {k: v for k, v in record.__dict__.items() if k not in STANDARD_RECORD_ATTRS}


class JSONFormatter(JsonFormatter):
    """JSON lines formatter using python-json-logger.

    Extra fields passed by the logger adapter end up as top-level keys.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["message"] = record.getMessage()


class HumanReadableFormatter(logging.Formatter):
    """Console formatter: message followed by key=value fields."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if not fields:
            return line
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        head, sep, tail = line.partition("\n")
        return f"{head} {rendered}{sep}{tail}"
