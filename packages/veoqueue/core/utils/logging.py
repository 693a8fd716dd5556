"""Logging configuration utilities for veoqueue.

Provides centralized logging configuration with:
- Flexible output (stderr or file)
- Customizable format strings
- Structured logging support (JSON format)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from veoqueue.core.config.models import LoggingConfig

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredJSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per log line.

    Format:
    {
        "level": "INFO",
        "message": "...",
        "timestamp": "2026-01-29T12:00:00.000000+00:00",
        "context": {"logger_name": "...", "module": "...", ...extra fields...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        context: dict[str, Any] = {
            "logger_name": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            context["error_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            context["error_message"] = str(record.exc_info[1]) if record.exc_info[1] else None
            context["stack_trace"] = record.exc_text or self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                context[key] = value

        log_entry = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "context": context,
        }
        return json.dumps(log_entry, default=str)


def _supress_noisy_loggers() -> None:
    """Supress noisy loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def configure_logging(
    level: str = "INFO",
    format_string: str | None = None,
    filename: str | None = None,
    structured: bool = False,
) -> None:
    """Configure application-wide logging.

    Can be called multiple times to reconfigure logging (uses force=True).

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Case-insensitive.
        format_string: Format for text logs; ignored if structured=True.
        filename: Path to log file. If None, logs to stderr so CLI output stays clean.
        structured: If True, use structured JSON logging format.

    Examples:
        >>> configure_logging(level="DEBUG")
        >>> configure_logging(level="INFO", structured=True, filename="veoqueue.jsonl")
    """
    handler: logging.Handler
    if filename:
        handler = logging.FileHandler(filename)
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter: logging.Formatter
    if structured:
        formatter = StructuredJSONFormatter()
    else:
        formatter = logging.Formatter(
            format_string or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )

    _supress_noisy_loggers()


def configure_logging_from_config(config: LoggingConfig, level: str | None = None) -> None:
    """Configure logging from the ``logging`` section of AppConfig.

    Args:
        config: Logging configuration
        level: Optional override (e.g. from a --verbose flag)
    """
    configure_logging(
        level=level or config.level,
        format_string=config.format,
        filename=config.filename,
        structured=config.structured,
    )

