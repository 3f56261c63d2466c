# src/dir_cache/domain/services/key_encoder.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Key Encoder (Domain Service).

Synopsis:
    Turns a caller key into a key directory that is guaranteed to sit inside
    the cache base directory. Validation runs on every call; results are
    never memoised, so the safety check cannot go stale.

Design:
    * Component checks live on :class:`CacheKey` (pure, no filesystem).
    * Containment check resolves both the base directory and the candidate
      (following symlinks) and requires the candidate to be a strict
      descendant of the base.
    * A candidate that passes through a symlink is rejected even when the
      link stays inside the base, so every key owns exactly one directory.
    * No side effects: nothing is created, read or written.

Layer:
    domain/services
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dir_cache.domain.exceptions import CacheKeyError
from dir_cache.domain.value_objects.cache_key import CacheKey, KeyLike

__all__ = ["EncodedKey", "KeyEncoder"]


@dataclass(frozen=True, slots=True)
class EncodedKey:
    """A validated key and the key directory it maps to.

    Attributes:
        key: The parsed key.
        directory: Absolute key directory, a strict descendant of the base.
    """

    key: CacheKey
    directory: Path


class KeyEncoder:
    """Validate keys against a fixed base directory.

    Args:
        base_dir: Cache base directory. Relative paths are resolved against
            the working directory at encode time.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        """Configured (unresolved) base directory."""
        return self._base_dir

    def encode(self, raw: KeyLike) -> EncodedKey:
        """Validate ``raw`` and return its key directory.

        Args:
            raw: Caller-supplied key.

        Returns:
            EncodedKey: Parsed key and its absolute directory.

        Raises:
            CacheKeyError: If the key is malformed, escapes the base or
                passes through a symlink.
        """
        key = CacheKey.parse(raw)
        base = self._base_dir.resolve()
        candidate = base.joinpath(*key.segments)
        resolved = candidate.resolve()
        if resolved == base or not resolved.is_relative_to(base):
            raise CacheKeyError(
                f"unsafe cache key {str(key)!r}: resolves outside the cache directory",
                details={"key": str(key), "reason": "escapes base directory"},
            )
        if resolved != candidate:
            raise CacheKeyError(
                f"unsafe cache key {str(key)!r}: path passes through a symbolic link",
                details={"key": str(key), "reason": "symlink in key path"},
            )
        return EncodedKey(key=key, directory=candidate)

    def decode(self, directory: Path) -> CacheKey:
        """Return the key whose directory is ``directory``.

        Raises:
            CacheKeyError: If ``directory`` is not a valid key directory under the base.
        """
        base = self._base_dir.resolve()
        try:
            relative = Path(directory).resolve().relative_to(base)
        except ValueError:
            raise CacheKeyError(
                f"directory {str(directory)!r} is not inside the cache directory",
                details={"directory": str(directory)},
            ) from None
        return CacheKey.parse(relative.parts)
