"""Structured logging configuration for tdsgrade.

Provides a centralized logging setup with:
- Console handler (stderr) with configurable level; tasting context
  (profile, attribute, capture state) is appended to each line
- Optional file handler (JSON lines for machine parsing)
- Environment-based configuration
- ``log_duration`` for timing a scoring or aggregation step

Usage:
    from tdsgrade.util.logging import configure_logging, get_logger, log_duration

    configure_logging(level="DEBUG", json_file="/var/log/tdsgrade.log")
    logger = get_logger(__name__)
    logger.info("Scoring profile", extra={"profile_id": "abc"})

    with log_duration(logger, "Aggregated replications", replications=12):
        ...
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Tuple


# Module-level state
_configured = False
_root_logger_name = "tdsgrade"

_EXTRA_FIELDS = ("profile_id", "attribute", "replications", "state", "error_type", "duration_ms")

# Shown on the console after the message; the JSON formatter emits all of _EXTRA_FIELDS.
_CONSOLE_FIELDS = ("profile_id", "attribute", "state", "duration_ms")


def _record_context(record: logging.LogRecord, fields: Tuple[str, ...]) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in fields if getattr(record, key, None) is not None}


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        output: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        output.update(_record_context(record, _EXTRA_FIELDS))
        if record.exc_info:
            output["traceback"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(output, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console format with optional color."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname
        if self.use_color:
            color = self.LEVEL_COLORS.get(level, "")
            level_str = f"{color}{level:8}{self.RESET}"
        else:
            level_str = f"{level:8}"
        name = record.name.replace("tdsgrade.", "")
        base = f"[{ts}] {level_str} [{name}] {record.getMessage()}"
        context = _record_context(record, _CONSOLE_FIELDS)
        if context:
            base += " (" + " ".join(f"{key}={value}" for key, value in context.items()) + ")"
        if record.exc_info:
            base += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return base


def configure_logging(
    *,
    level: Optional[str] = None,
    json_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """Configure the tdsgrade logging subsystem.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to WARNING,
               or DEBUG if TDSGRADE_DEBUG=1 is set.
        json_file: Optional path to write JSON-formatted logs.
        use_color: Whether to colorize console output (auto-disabled if not a TTY).

    Calling it again replaces the previously installed handlers.
    """
    global _configured

    if level is None:
        if os.environ.get("TDSGRADE_DEBUG", "").strip() in ("1", "true", "yes"):
            level = "DEBUG"
        else:
            level = os.environ.get("TDSGRADE_LOG_LEVEL", "WARNING").upper()

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(_root_logger_name)
    logger.setLevel(numeric_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ConsoleFormatter(use_color=use_color))
    logger.addHandler(console_handler)

    if json_file:
        try:
            file_handler = logging.FileHandler(json_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)
        except OSError as exc:
            logger.warning("Failed to open JSON log file %s: %s", json_file, exc)

    logger.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the tdsgrade namespace.

    If configure_logging() has not been called, a default configuration
    is applied automatically.
    """
    global _configured
    if not _configured:
        configure_logging()

    if not name.startswith(_root_logger_name):
        if name == "__main__":
            name = f"{_root_logger_name}.main"
        else:
            name = f"{_root_logger_name}.{name}"

    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    message: str,
    *,
    error_type: Optional[str] = None,
    **extra: Any,
) -> None:
    """Log the exception currently being handled with structured context.

    Args:
        logger: The logger to use.
        message: Human-readable error description.
        error_type: Category of error (e.g., "profile_parse", "analysis").
        **extra: Additional context fields.
    """
    extra_dict = dict(extra)
    if error_type:
        extra_dict["error_type"] = error_type
    logger.exception(message, extra=extra_dict)


@contextmanager
def log_duration(logger: logging.Logger, message: str, **extra: Any) -> Iterator[Dict[str, Any]]:
    """Log ``message`` at DEBUG with ``duration_ms`` once the block finishes.

    The yielded dict can be filled in by the block (e.g. a profile id only
    known after parsing). Nothing is logged when the block raises.
    """
    fields = dict(extra)
    started = time.perf_counter()
    yield fields
    fields["duration_ms"] = round((time.perf_counter() - started) * 1000.0, 3)
    logger.debug(message, extra=fields)
