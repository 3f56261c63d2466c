# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""
Cache Domain Exceptions

Purpose:
    Error kinds raised while encoding keys, parsing manifests, touching the
    disk and running caller-supplied producers.

Layer: domain/exceptions

Notes:
    - ``CacheKeyError`` is deliberately not named ``KeyError`` so the builtin
      is never shadowed at import sites.
    - Producer failures are wrapped, never re-raised bare, so a caller can
      tell its own error apart from a cache failure.
"""
from __future__ import annotations

from typing import Any

from .base import DirCacheError

#: Engine-level alias; every error the engine surfaces derives from it.
CacheError = DirCacheError


class CacheKeyError(DirCacheError):
    """Key is malformed or would resolve outside the cache base directory."""

    code = "UNSAFE_KEY"


class ManifestError(DirCacheError):
    """Per-key manifest is missing required fields or cannot be parsed."""

    code = "MANIFEST_MALFORMED"


class StoreError(DirCacheError):
    """Underlying filesystem read/write/remove failed."""

    code = "STORE_IO"


class CompressionError(DirCacheError):
    """Compressing or decompressing a history generation failed."""

    code = "COMPRESSION_FAILED"


class CacheOpenError(DirCacheError):
    """Base directory could not be opened with the requested open mode."""

    code = "CACHE_OPEN_FAILED"


class ProducerError(DirCacheError):
    """Caller-supplied producer raised during ``get_or_insert_with``.

    Args:
        original: The exception raised by the producer.
        details: Optional machine-readable diagnostic payload.
    """

    code = "PRODUCER_FAILED"

    def __init__(self, original: BaseException, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"value producer failed: {original}", details=details)
        self.original = original
