"""Exception types raised by dir-cache."""

from __future__ import annotations

from .base import DirCacheError
from .cache import (
    CacheError,
    CacheKeyError,
    CacheOpenError,
    CompressionError,
    ManifestError,
    ProducerError,
    StoreError,
)

__all__ = [
    "CacheError",
    "CacheKeyError",
    "CacheOpenError",
    "CompressionError",
    "DirCacheError",
    "ManifestError",
    "ProducerError",
    "StoreError",
]
