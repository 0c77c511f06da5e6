"""
Application logging utilities.

Configures a root logger that writes one JSON-like line per record to stdout.
Each line carries the service name and environment from settings, and any
values passed through ``extra=`` (item ids, counts, error codes).

httpx and httpcore log every request of the remote import at INFO; they are
kept at WARNING unless LOG_LEVEL is DEBUG.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

from .config import get_settings

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_CHATTY_LOGGERS = ("httpx", "httpcore")


class GroceryLogFormatter(logging.Formatter):
    """Formats a record as a single JSON object line."""

    def __init__(self, service: str, env: str):
        super().__init__()
        self.service = service
        self.env = env

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "service": self.service,
            "env": self.env,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            payload["where"] = f"{record.module}.{record.funcName}:{record.lineno}"
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(name: Optional[str]) -> int:
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _configure_root_logger() -> None:
    """Configure the root logger exactly once."""
    root = logging.getLogger()
    if getattr(root, "_configured_by_app", False):
        return
    settings = get_settings()

    # Clear existing handlers to avoid duplicates in reloads
    for h in list(root.handlers):
        root.removeHandler(h)

    level = _resolve_level(settings.LOG_LEVEL)
    root.setLevel(level)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(GroceryLogFormatter(service=settings.APP_NAME, env=settings.APP_ENV))
    root.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    setattr(root, "_configured_by_app", True)


# PUBLIC_INTERFACE
def get_logger(name: str = "grocery") -> logging.Logger:
    """Get a logger for the grocery service, configuring the root logger on first use."""
    _configure_root_logger()
    return logging.getLogger(name)
