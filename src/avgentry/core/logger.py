from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from rich.logging import RichHandler

# Set once per refresh so every line from one snapshot can be grouped
_snapshot_id: ContextVar[str] = ContextVar("snapshot_id", default="")

_EXTRA_FIELDS = ("symbol", "scope", "break_even_price", "distance_in_pips", "error", "error_type")

# SDK chatter below WARNING drowns out the break-even lines
_QUIET_LIBRARIES = ("urllib3", "alpaca")


def get_snapshot_id() -> str:
    return _snapshot_id.get()


def set_snapshot_id(sid: Optional[str] = None) -> str:
    """Start a new snapshot (or resume ``sid``) and return its short ID."""
    if sid is None:
        sid = uuid.uuid4().hex[:8]
    _snapshot_id.set(sid)
    return sid


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, carrying the break-even fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        sid = get_snapshot_id()
        if sid:
            payload["snapshot_id"] = sid

        payload.update(
            {key: getattr(record, key) for key in _EXTRA_FIELDS if hasattr(record, key)}
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload)


class SnapshotFilter(logging.Filter):
    """Stamps ``snapshot_id`` on records so plain formatters can use it too."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.snapshot_id = get_snapshot_id()
        return True


def _json_requested(json_output: bool) -> bool:
    return json_output or os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")


def _console_handler(json_output: bool) -> logging.Handler:
    if json_output:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        return handler

    handler = RichHandler(rich_tracebacks=True, show_time=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Route all monitor output through the root logger.

    The terminal gets rich formatting unless ``json_output`` is set or the
    ``LOG_JSON`` environment variable is truthy, in which case stdout gets
    JSON lines. ``log_file``, when given, always receives JSON lines.
    Calling this again replaces the handlers installed by the last call.

    Examples:
        setup_logging("DEBUG")                          # interactive
        setup_logging("INFO", log_file="avgentry.log")  # keep a JSON trail
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []
    root.filters = []
    root.addFilter(SnapshotFilter())

    root.addHandler(_console_handler(_json_requested(json_output)))

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _emit(logger: logging.Logger, level: int, fn: str, message: str, extra: dict) -> None:
    record = logger.makeRecord(logger.name, level, fn, 0, message, args=(), exc_info=None)
    for key, value in extra.items():
        setattr(record, key, value)
    logger.handle(record)


def log_break_even(logger: logging.Logger, symbol: str, result: Any) -> None:
    """Write the chart label for ``result`` and attach its numbers as fields."""
    extra = {
        "symbol": symbol,
        "scope": result.scope.value,
        "break_even_price": result.break_even_price,
        "distance_in_pips": result.distance_in_pips,
    }
    _emit(logger, logging.INFO, "(break_even)", f"[{symbol}] {result.text}", extra)


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    error: Exception,
    **context: Any,
) -> None:
    """Report a rejected snapshot or failed read at ERROR level.

    ``error`` and ``error_type`` are set from the exception. ``context``
    adds fields such as ``symbol`` or ``snapshot`` (the file path).
    """
    extra = {"error": str(error), "error_type": type(error).__name__}
    extra.update(context)
    _emit(logger, logging.ERROR, "(error)", f"{message}: {error}", extra)
