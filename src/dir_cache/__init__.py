# src/dir_cache/__init__.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""dir-cache: a directory-backed key-value cache.

Values are persisted as plain files under a base directory so that cached
responses stay browsable on disk. Typical usage:

    from dir_cache import CacheOptions, DirCache

    cache = DirCache("/tmp/http-cache", CacheOptions(generations_enabled=True))
    body = cache.get_or_insert_with("users/42", fetch_user).value
"""

from __future__ import annotations

from dir_cache.application.cache_engine import DirCache
from dir_cache.application.options import CacheOptions
from dir_cache.domain.entities.entry import Entry
from dir_cache.domain.enums.cache import CompressionKind, DirOpen
from dir_cache.domain.exceptions import (
    CacheError,
    CacheKeyError,
    CacheOpenError,
    CompressionError,
    DirCacheError,
    ManifestError,
    ProducerError,
    StoreError,
)
from dir_cache.domain.value_objects.cache_key import CacheKey

__all__ = [
    "CacheError",
    "CacheKey",
    "CacheKeyError",
    "CacheOpenError",
    "CacheOptions",
    "CompressionError",
    "CompressionKind",
    "DirCache",
    "DirCacheError",
    "DirOpen",
    "Entry",
    "ManifestError",
    "ProducerError",
    "StoreError",
]
