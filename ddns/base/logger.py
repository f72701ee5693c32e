"""
Structured logging for DDNS.

Provides a pre-configured logger that emits JSON-structured log records
with reconciliation context (zone, fqdn, record type, operation) for easy
filtering in log aggregation tools.
"""

from __future__ import annotations

import json
import logging
from typing import Any

# Context fields copied from the log record into the JSON line, in order.
CONTEXT_KEYS: tuple[str, ...] = (
    "run_id",
    "zone_id",
    "base_domain",
    "fqdn",
    "record_type",
    "operation",
    "attempt",
    "max_attempts",
    "delay",
    "content",
    "proxied",
    "ttl",
    "old_content",
    "old_proxied",
    "old_ttl",
    "count",
    "outcome",
    "created_count",
    "updated_count",
    "up_to_date_count",
    "failed_count",
    "version",
    "error",
    "context",
)


class StructuredFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry, default=str)


class DDNSLogger:
    """Convenience wrapper around :mod:`logging` for reconciliation events."""

    def __init__(self, name: str = "ddns") -> None:
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def log_operation(
        self,
        level: int,
        message: str,
        *,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        """Emit a structured log record with reconciliation context.

        Args:
            level: Logging level (e.g. logging.INFO).
            message: Human-readable message.
            exc_info: Whether to include exception info.
            **context: Fields for the JSON line; ``None`` values are dropped.
                Keys outside :data:`CONTEXT_KEYS` are nested under ``context``
                so they can never clash with :class:`logging.LogRecord` attributes.
        """
        unknown = {k: context.pop(k) for k in list(context) if k not in CONTEXT_KEYS}
        if unknown:
            context["context"] = unknown
        if isinstance(context.get("error"), BaseException):
            context["error"] = str(context["error"])
        self.logger.log(level, message, extra=context, exc_info=exc_info)

    def set_level(self, level: int | str) -> None:
        self.logger.setLevel(level)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log_operation(logging.DEBUG, message, **kwargs)


# Module-level singleton
ddns_logger = DDNSLogger()
