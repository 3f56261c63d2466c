# src/dir_cache/domain/entities/manifest.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Per-key Manifest (Domain Entity).

Synopsis:
    Metadata persisted next to a key's data files. One record per generation:
    record 0 describes the live value, record ``n`` the n-th most recently
    superseded value. The number of history records is the generation count
    and record 0's timestamp is the last-write time used for TTL checks.

Design:
    * Immutable; rotation returns a new manifest instead of mutating.
    * Generation numbers are implicit list positions, so they are always
      dense (no gaps) by construction.
    * Each record keeps the encoding its data file was written with, so
      history stays readable when the configured compression changes.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from dir_cache.domain.entities.base import BaseEntity
from dir_cache.domain.entities.entry import datetime_from_ns
from dir_cache.domain.enums.cache import Encoding

#: Current manifest format version (first line of the manifest file).
MANIFEST_VERSION = 1


@dataclass(frozen=True)
class GenerationRecord(BaseEntity):
    """Bookkeeping for one generation data file.

    Attributes:
        written_at_ns: Unix nanoseconds at which this value was inserted.
        encoding: Encoding of the generation file on disk.
    """

    written_at_ns: int
    encoding: Encoding = Encoding.PLAIN

    def __post_init__(self) -> None:
        """Enforce record invariants."""
        super().__post_init__()

        if self.written_at_ns < 0:
            raise ValueError("GenerationRecord.written_at_ns must be >= 0.")
        if not isinstance(self.encoding, Encoding):
            raise ValueError("GenerationRecord.encoding must be an Encoding.")


@dataclass(frozen=True)
class Manifest(BaseEntity):
    """Generation bookkeeping for a single key directory.

    Attributes:
        generations:
            Records ordered newest first; index 0 is the live value.
        version:
            Manifest format version.
    """

    generations: tuple[GenerationRecord, ...]
    version: int = MANIFEST_VERSION

    def __post_init__(self) -> None:
        """Enforce manifest invariants."""
        super().__post_init__()

        if not self.generations:
            raise ValueError("Manifest.generations must contain the live generation.")
        if self.generations[0].encoding is not Encoding.PLAIN:
            raise ValueError("Manifest generation 0 must be stored plain.")

    # ------------------------------------------------------------------ #
    # Constructors
    # ------------------------------------------------------------------ #
    @classmethod
    def fresh(cls, now_ns: int) -> Manifest:
        """Return a manifest describing a single, newly written value."""
        return cls(generations=(GenerationRecord(written_at_ns=now_ns),))

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #
    @property
    def generation_count(self) -> int:
        """Number of retained history generations (0 = only the live value)."""
        return len(self.generations) - 1

    @property
    def last_write_ns(self) -> int:
        """Unix nanoseconds of the most recent insert."""
        return self.generations[0].written_at_ns

    @property
    def last_write(self) -> datetime:
        """Most recent insert as an aware UTC datetime."""
        return datetime_from_ns(self.last_write_ns)

    def record(self, generation: int) -> GenerationRecord | None:
        """Return the record for ``generation`` or ``None`` when not retained."""
        if 0 <= generation < len(self.generations):
            return self.generations[generation]
        return None

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #
    def rotated(
        self,
        now_ns: int,
        *,
        max_generations: int,
        retired_encoding: Encoding,
    ) -> Manifest:
        """Return the manifest after inserting a new value with history enabled.

        The live record becomes generation 1 (re-encoded as
        ``retired_encoding``), older records shift by one and anything beyond
        ``max_generations`` history slots is dropped.

        Args:
            now_ns: Write time of the new live value.
            max_generations: Maximum number of history generations to keep.
            retired_encoding: Encoding applied to the value leaving slot 0.

        Returns:
            Manifest: The rotated manifest.
        """
        if max_generations < 1:
            raise ValueError("max_generations must be >= 1 when rotating.")
        retired = replace(self.generations[0], encoding=retired_encoding)
        history = (retired, *self.generations[1:])[:max_generations]
        return Manifest(
            generations=(GenerationRecord(written_at_ns=now_ns), *history),
            version=self.version,
        )
