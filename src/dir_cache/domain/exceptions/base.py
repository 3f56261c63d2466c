# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""
Base Cache Exceptions.

Summary:
    Canonical base class for every error raised by dir-cache so callers can
    catch one type, and branch on a stable ``code`` when they need to.

Layer:
    domain/exceptions
"""
from __future__ import annotations

from typing import Any


class DirCacheError(Exception):
    """Base class for all dir-cache exceptions."""

    code: str = "DIR_CACHE_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        return self.message
