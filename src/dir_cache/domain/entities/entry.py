# src/dir_cache/domain/entities/entry.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Cache Entry (Domain Entity).

Synopsis:
    The logical value stored under a key: an opaque byte payload and the time
    it was written. Entries are rebuilt from disk on every read; nothing here
    is cached between calls.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from dir_cache.domain.entities.base import BaseEntity

_NANOS_PER_SECOND = 1_000_000_000


def datetime_from_ns(ts_ns: int) -> datetime:
    """Convert unix nanoseconds to an aware UTC datetime (microsecond precision)."""
    seconds, nanos = divmod(ts_ns, _NANOS_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz=UTC).replace(microsecond=nanos // 1_000)


@dataclass(frozen=True)
class Entry(BaseEntity):
    """A cached value.

    Attributes:
        value:
            Raw bytes exactly as inserted.
        written_at_ns:
            Unix timestamp (nanoseconds) of the write that produced ``value``.
    """

    value: bytes
    written_at_ns: int

    def __post_init__(self) -> None:
        """Enforce core invariants for entries."""
        super().__post_init__()

        if not isinstance(self.value, bytes):
            raise TypeError("Entry.value must be bytes.")
        if self.written_at_ns < 0:
            raise ValueError("Entry.written_at_ns must be >= 0.")

    @property
    def written_at(self) -> datetime:
        """Write time as an aware UTC datetime."""
        return datetime_from_ns(self.written_at_ns)

    def __bytes__(self) -> bytes:
        return self.value
