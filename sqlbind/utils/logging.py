"""Loggers for sqlbind.

Every logger lives under the ``sqlbind`` namespace and stamps its records
with the correlation ID of the running context. Query code passes its fields
as ``extra={"extra_fields": {...}}`` (``statement``, ``kind``, ``duration_s``,
``row_count``), and :class:`StructuredFormatter` lifts them into the JSON line.
"""

import logging
from contextvars import ContextVar
from typing import Any, Final, Optional

from sqlbind._serialization import encode_json

__all__ = ("ROOT_LOGGER_NAME", "CorrelationIDFilter", "StructuredFormatter", "correlation_id_var", "get_logger")

ROOT_LOGGER_NAME: Final = "sqlbind"

correlation_id_var: "ContextVar[Optional[str]]" = ContextVar("sqlbind_correlation_id", default=None)


class CorrelationIDFilter(logging.Filter):
    """Copies :data:`correlation_id_var` onto each record as ``correlation_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: level, logger, message, correlation ID and query fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id is not None:
            payload["correlation_id"] = correlation_id
        payload.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return encode_json(payload)


def get_logger(name: "Optional[str]" = None) -> logging.Logger:
    """Return ``sqlbind.<name>`` (or the ``sqlbind`` root) with the correlation filter attached."""
    if not name or name == ROOT_LOGGER_NAME:
        full_name = ROOT_LOGGER_NAME
    elif name.startswith(f"{ROOT_LOGGER_NAME}."):
        full_name = name
    else:
        full_name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(full_name)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger
