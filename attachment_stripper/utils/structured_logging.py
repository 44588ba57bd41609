"""
Structured Logging Module
Provides JSON-formatted logging for log aggregation tools
"""

import json
import logging
from typing import Any


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records as one JSON object per line.

    Extra context can be attached with
    logger.info("msg", extra={"extra_fields": {"message_id": ...}}).
    Values of sensitive keys are replaced with "[REDACTED]"; raw message
    payloads are never written in full.
    """

    SENSITIVE_FIELDS = {
        'password', 'token', 'secret', 'credential',
        'refresh_token', 'client_secret', 'raw'
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Python logging.LogRecord to format

        Returns:
            JSON string with structured log data
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            filtered_extra = {
                k: self._sanitize_value(k, v)
                for k, v in record.extra_fields.items()
            }
            log_data.update(filtered_extra)

        return json.dumps(log_data, default=str)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        """
        Replace the value of a sensitive field with "[REDACTED]".

        Args:
            key: Field name
            value: Field value

        Returns:
            Original value or "[REDACTED]" for sensitive fields
        """
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS):
            return "[REDACTED]"
        return value
