"""Logging setup for the library and the embed script.

Records carry batch context (provider, indices, error codes) through
``extra=``. The JSON formatter nests it under ``context``; the dev formatter
appends it as ``key=value`` pairs.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from embedkit.config import Environment, get_settings

# Attributes present on every LogRecord; anything else came in via `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

# HTTP client libraries log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached to ``record`` through ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        context = record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class DevFormatter(logging.Formatter):
    """Single-line console format with trailing context."""

    FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    DATE_FORMAT = "%H:%M:%S"

    def __init__(self) -> None:
        super().__init__(fmt=self.FORMAT, datefmt=self.DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        # Keep tracebacks after the context, not before it.
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
) -> logging.Logger:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level name. Defaults to ``LOG_LEVEL``, or DEBUG when
            ``DEBUG`` is set.
        json_output: Emit JSON. Defaults to True outside development.

    Returns:
        The root logger.
    """
    settings = get_settings()

    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if json_output is None:
        json_output = settings.environment != Environment.DEVELOPMENT

    # stderr keeps stdout free for script output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else DevFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return root


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)
