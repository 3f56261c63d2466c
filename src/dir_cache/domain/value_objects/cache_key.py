# src/dir_cache/domain/value_objects/cache_key.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Cache Key (Value Object).

Synopsis:
    Validated, relative path-like key made of plain name segments. Parsing is
    strict: keys are rejected, never normalised, so two different caller
    strings can never map onto the same directory.

Accepted inputs:
    * ``str``: POSIX ``/``-separated, e.g. ``"users/42"``.
    * ``os.PathLike``: its components are used as segments.
    * ``Sequence[str]``: each item is one segment, e.g. ``["users", "42"]``.

Layer:
    domain/value_objects
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePath, PurePosixPath
from typing import Final, TypeAlias, Union

from dir_cache.domain.exceptions import CacheKeyError
from dir_cache.domain.layout import is_reserved_name

__all__ = ["CacheKey", "KeyLike", "MAX_SEGMENT_BYTES"]

#: Longest segment accepted, in UTF-8 bytes (common NAME_MAX).
MAX_SEGMENT_BYTES: Final[int] = 255

_SEPARATOR: Final[str] = "/"
_FORBIDDEN_CHARS: Final[frozenset[str]] = frozenset({"/", "\\", ":", "\x00"})

KeyLike: TypeAlias = Union["CacheKey", str, "os.PathLike[str]", Sequence[str]]


def _reject(raw: object, reason: str) -> CacheKeyError:
    return CacheKeyError(
        f"unsafe cache key {raw!r}: {reason}",
        details={"key": repr(raw), "reason": reason},
    )


def _check_segment(raw: object, segment: object) -> str:
    """Validate one key segment and return it unchanged."""
    if not isinstance(segment, str):
        raise _reject(raw, "segments must be str")
    if segment in ("", ".", ".."):
        raise _reject(raw, f"segment {segment!r} is not a plain name")
    bad = _FORBIDDEN_CHARS.intersection(segment)
    if bad:
        raise _reject(raw, f"segment contains forbidden character(s) {sorted(bad)!r}")
    try:
        encoded = segment.encode("utf-8")
    except UnicodeEncodeError:
        raise _reject(raw, "segment is not valid unicode") from None
    if len(encoded) > MAX_SEGMENT_BYTES:
        raise _reject(raw, f"segment longer than {MAX_SEGMENT_BYTES} bytes")
    if is_reserved_name(segment):
        raise _reject(raw, "segment uses the reserved dir-cache-generation- prefix")
    # A lone segment must parse back to exactly itself.
    if PurePosixPath(segment).parts != (segment,):
        raise _reject(raw, f"segment {segment!r} is not a single path component")
    return segment


def _segments_from_text(raw: object, text: str) -> tuple[str, ...]:
    if not text:
        raise _reject(raw, "key is empty")
    path = PurePosixPath(text)
    if path.is_absolute():
        raise _reject(raw, "key is absolute")
    parts = path.parts
    # Normalisation would hide '//' or '/./' or a trailing '/': compare lengths.
    expected = sum(len(p) for p in parts) + max(len(parts) - 1, 0)
    if expected != len(text):
        raise _reject(raw, "key text does not match its parsed components")
    return parts


@dataclass(frozen=True, slots=True)
class CacheKey:
    """An ordered, validated sequence of path segments.

    Attributes:
        segments: Plain name segments; never empty.
    """

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.segments, tuple):
            raise _reject(self.segments, "segments must be a tuple")
        if not self.segments:
            raise _reject(self.segments, "key is empty")
        for segment in self.segments:
            _check_segment(self.segments, segment)

    @classmethod
    def parse(cls, raw: KeyLike) -> CacheKey:
        """Parse and validate a caller-supplied key.

        Args:
            raw: Key as a string, path-like or sequence of segments.

        Returns:
            CacheKey: The validated key.

        Raises:
            CacheKeyError: If the key is absolute, has a non-plain segment,
                or its text does not round-trip through path parsing.
        """
        if isinstance(raw, CacheKey):
            return raw
        if isinstance(raw, str):
            return cls(_segments_from_text(raw, raw))
        if isinstance(raw, PurePath):
            if raw.anchor or raw.is_absolute():
                raise _reject(raw, "key is absolute")
            if not raw.parts:
                raise _reject(raw, "key is empty")
            return cls(tuple(raw.parts))
        if isinstance(raw, os.PathLike):
            text = os.fspath(raw)
            if not isinstance(text, str):
                raise _reject(raw, "bytes paths are not supported")
            return cls(_segments_from_text(raw, text))
        if isinstance(raw, (bytes, bytearray)):
            raise _reject(raw, "bytes keys are not supported")
        if isinstance(raw, Sequence):
            return cls(tuple(raw))
        raise _reject(raw, f"unsupported key type {type(raw).__name__}")

    @property
    def relative_path(self) -> PurePosixPath:
        """Key as a relative POSIX path."""
        return PurePosixPath(*self.segments)

    def __str__(self) -> str:
        return _SEPARATOR.join(self.segments)
