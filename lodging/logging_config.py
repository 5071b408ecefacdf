"""
Shared log setup for the lodging API, the night editor and operator scripts.

Every process logs one line per record to stdout:
    2026-03-19T14:05:52Z [api] INFO Saved 12 assignments for night 1

LOG_LEVEL picks the verbosity:
    INFO   (default) saves, loads, operator actions
    DEBUG  repository queries, subscription changes, auth decisions
    TRACE  full assignment documents and realtime events

Call configure_logging() once at process start; modules then use
``logging.getLogger(__name__)`` as usual.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_ENV_LEVELS = {"TRACE": TRACE, "DEBUG": logging.DEBUG, "INFO": logging.INFO}

# Loggers that would otherwise print one line per PocketBase request
_QUIET_LOGGERS = ("httpx", "httpcore")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _trace(self: logging.Logger, message: object, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)  # type: ignore[arg-type]


logging.Logger.trace = _trace  # type: ignore[attr-defined]


class ISO8601Formatter(logging.Formatter):
    """``<UTC timestamp> [source] LEVEL message``, traceback on following lines."""

    def __init__(self, source: str = "app"):
        super().__init__()
        self.source = source

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        line = f"{stamp} [{self.source}] {record.levelname} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class HealthCheckFilter(logging.Filter):
    """Drop successful health probe access lines below DEBUG.

    The admin UI polls /health while a night is open.
    """

    HEALTH_PATHS = ("/health", "/api/health")

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno <= logging.DEBUG:
            return True
        message = record.getMessage()
        if "GET" not in message and "200" not in message:
            return True
        return not any(path in message for path in self.HEALTH_PATHS)


def level_from_env(debug: bool | None = None) -> int:
    """LOG_LEVEL from the environment; ``debug`` raises INFO to DEBUG."""
    level = _ENV_LEVELS.get(os.getenv("LOG_LEVEL", "").strip().upper(), logging.INFO)
    if debug and level > logging.DEBUG:
        level = logging.DEBUG
    return level


def configure_logging(
    source: str = "app",
    level: int | None = None,
    debug: bool | None = None,
) -> logging.Logger:
    """Route the root logger and uvicorn's loggers to one stdout handler.

    Args:
        source: Tag shown in brackets on every line ("api", "seed", ...)
        level: Explicit level; when omitted LOG_LEVEL decides
        debug: Shortcut for at least DEBUG when level is omitted

    Returns:
        The root logger
    """
    if level is None:
        level = level_from_env(debug)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ISO8601Formatter(source=source))
    handler.addFilter(HealthCheckFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    # uvicorn ships its own handlers; replacing them keeps one line format
    for name in _UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers[:] = [handler]
        server_logger.setLevel(level)
        server_logger.propagate = False

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
