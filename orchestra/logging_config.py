"""Structured logging configuration for Orchestra."""

import json
import logging
import logging.config
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_LOG_PATH, PathLike

# Keys every record carries; engine context never overrides them
RESERVED_FIELDS = frozenset(
    {"timestamp", "level", "logger", "message", "module", "function", "line", "exception"}
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Engine context passed as ``extra={"context": {"agent": ..., "cycle": ...}}``
    is lifted to top-level fields so log processors can filter on agent,
    tool, cycle, attempt or stage directly.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            for key, value in context.items():
                if value is None:
                    continue
                field = f"context_{key}" if key in RESERVED_FIELDS else key
                log_data[field] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: PathLike | None = None,
) -> None:
    """
    Setup structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Defaults to INFO.
        log_file: Path to log file. Defaults to logs/orchestra.log.
    """
    if log_level is None:
        log_level = "INFO"

    if log_file is None:
        log_file = DEFAULT_LOG_PATH

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "orchestra.logging_config.JSONFormatter",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_path),
                "maxBytes": 10 * 1024 * 1024,  # 10 MB
                "backupCount": 5,
                "formatter": "json",
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            # HTTP client request lines stay out of INFO output
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["file", "console"],
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
