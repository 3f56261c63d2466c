# src/dir_cache/infrastructure/logging/logger.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce JSON logs suitable for ingestion by log pipelines.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * Structured extras passed through ``logger.info(..., extra={...})`` are
      emitted as top-level keys (``cache_key``, ``generation``, ...).
    * Exceptions are summarised as ``exc_type`` / ``exc_message``.

The library never calls :func:`configure_root_logging` itself; applications
opt in once at startup.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any, Final

__all__ = [
    "PACKAGE_LOGGER",
    "configure_root_logging",
    "get_json_logger",
    "set_package_log_level",
]

#: Parent of every logger created inside the library.
PACKAGE_LOGGER: Final[str] = "dir_cache"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
    | {"message", "asctime", "taskName"}
)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: Logging record.

        Returns:
            str: JSON-encoded log line.
        """
        ts = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        payload: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key.startswith("_") or key in payload:
                continue
            payload[key] = value

        # Exceptions: guard against None in exc_info tuple.
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env
            ``DIR_CACHE_LOG_LEVEL``, then ``LOG_LEVEL``, then ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("DIR_CACHE_LOG_LEVEL") or os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    if isinstance(resolved, str):
        resolved = resolved.upper()
    root.setLevel(resolved)

    if root.handlers:
        # Already configured; prevent duplicate handlers.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* implicitly configure the root logger. Call
    :func:`configure_root_logging` once at startup for global defaults.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        logging.Logger: Configured logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    # Delegate formatting and level to the root logger.
    logger.propagate = True
    return logger


def set_package_log_level(level: str | int) -> None:
    """Set the level of the ``dir_cache`` logger hierarchy only.

    Handlers and the root logger are left alone, so this is safe to call
    from library code.

    Args:
        level: Logging level or level name (case-insensitive).
    """
    logging.getLogger(PACKAGE_LOGGER).setLevel(level.upper() if isinstance(level, str) else level)
