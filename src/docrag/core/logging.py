"""Structured logging for docrag.

This module provides consistent logging configuration
with support for both structured (JSON) and plain text formats.
Everything is written to stderr so the stdio MCP transport stays clean.
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any

from docrag.core.config import get_settings


class StructuredFormatter(logging.Formatter):
    """JSON-formatted log output for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable plain text log format."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra = getattr(record, "extra_data", None)
        if extra:
            fields = " ".join(f"{k}={v}" for k, v in extra.items())
            message = f"{message} | {fields}"
        return message


def _make_handler(level: int, format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(PlainFormatter())
    return handler


def setup_logging(level: str = "INFO", format: str = "plain") -> None:
    """Configure the package root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format ("plain" or "structured")
    """
    root = logging.getLogger("docrag")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not root.handlers:
        root.addHandler(_make_handler(root.level, format))
        root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        settings = get_settings()
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
        logger.setLevel(level)
        logger.addHandler(_make_handler(level, settings.log_format))
        logger.propagate = False

    return logger


class LogContext:
    """Context manager for adding extra data to log messages.

    Example:
        >>> logger = get_logger(__name__)
        >>> with LogContext(logger, path="/docs"):
        ...     logger.info("Starting ingest")
    """

    def __init__(self, logger: logging.Logger, **extra: Any) -> None:
        """Initialize LogContext.

        Args:
            logger: The logger to add context to
            **extra: Extra fields to include in log messages
        """
        self.logger = logger
        self.extra = extra
        self._old_factory: Any = None

    def __enter__(self) -> "LogContext":
        """Enter context and set up extra data."""
        old_factory = logging.getLogRecordFactory()
        extra = self.extra

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = old_factory(*args, **kwargs)
            record.extra_data = extra  # type: ignore[attr-defined]
            return record

        self._old_factory = old_factory
        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context and restore original factory."""
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)
