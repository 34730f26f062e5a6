"""Logging setup for the ``docretrieval`` logger tree.

Modules log through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look. JSON output is one object
per line so it can be shipped to a log collector unchanged.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, TextIO

ROOT_LOGGER = "docretrieval"
TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# Client libraries that log every HTTP request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "qdrant_client", "google_genai", "sentence_transformers")

# Attributes every LogRecord has; anything else came from ``extra=``
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JSONExceptionFormatter(logging.Formatter):
    """Render records as single-line JSON, with exception details when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "function": record.funcName,
                "line": record.lineno,
            },
        }

        extras = {k: v for k, v in vars(record).items() if k not in _RECORD_FIELDS}
        if extras:
            entry["extra"] = extras

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value) if exc_value is not None else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach handlers to the ``docretrieval`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Also append records to this file.
        json_format: Emit JSON lines instead of the text format.
        stream: Console stream, stderr by default.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper() if level.upper() in LEVELS else logging.INFO)
    logger.handlers.clear()

    formatter: logging.Formatter = (
        JSONExceptionFormatter() if json_format else logging.Formatter(TEXT_FORMAT, DATE_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """The package logger, or its child ``docretrieval.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
