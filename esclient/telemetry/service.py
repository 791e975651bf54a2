"""
Structured logging for esclient.

The library logs through stdlib loggers named after their modules and attaches
structured context with ``extra={"extra_data": {...}}``. Applications that
want JSON log lines can install JSONFormatter with configure_logging().
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs one JSON object per record.

    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry

    Additional fields are taken from the 'extra_data' attribute on the
    log record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        if hasattr(record, "extra_data") and record.extra_data:
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


def configure_logging(settings: Optional[Any] = None, stream=None) -> logging.Logger:
    """
    Configure the ``esclient`` logger hierarchy to emit JSON lines.

    Only the library's own logger is touched, so host applications keep
    control of the root logger.

    Args:
        settings: Optional settings object providing ``log_level``
        stream: Stream to write to, defaults to stdout

    Returns:
        The configured ``esclient`` logger
    """
    log_level_str = "INFO"
    if settings is not None and hasattr(settings, "log_level"):
        log_level_str = settings.log_level

    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    logger = logging.getLogger("esclient")
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicate logs
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug("esclient logging configured", extra={
        "extra_data": {"log_level": log_level_str}
    })
    return logger
