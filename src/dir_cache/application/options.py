# src/dir_cache/application/options.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Cache Options (Application Layer).

Purpose:
    Immutable, validated policy for one :class:`DirCache`: expiry, history
    retention, history compression and how the base directory is opened.

Layer: application
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dir_cache.domain.enums.cache import CompressionKind, DirOpen


class CacheOptions(BaseModel):
    """Policy applied by the cache engine.

    Notes:
        - Strict fields (``extra='forbid'``) so a typo never silently
          falls back to a default.
        - ``max_age`` is a read-time policy, not a timer: expired entries
          read as absent but stay on disk until overwritten or removed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_age: timedelta | None = Field(
        default=None,
        description="Entries older than this read as absent. None disables expiry.",
    )
    generations_enabled: bool = Field(
        default=False,
        description="Keep superseded values as numbered history generations.",
    )
    max_generations: int = Field(
        default=1,
        ge=1,
        description="Maximum number of history generations retained per key.",
    )
    compression: CompressionKind | None = Field(
        default=None,
        description="Transform applied to history generations (never to the live value).",
    )
    dir_open: DirOpen = Field(
        default=DirOpen.CREATE_IF_MISSING,
        description="Whether a missing base directory is created or rejected.",
    )

    @field_validator("max_age")
    @classmethod
    def _positive_max_age(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value <= timedelta(0):
            raise ValueError("max_age must be positive")
        return value

    @property
    def max_age_ns(self) -> int | None:
        """``max_age`` in nanoseconds, or ``None`` when expiry is disabled."""
        if self.max_age is None:
            return None
        return (
            (self.max_age.days * 86_400 + self.max_age.seconds) * 1_000_000_000
            + self.max_age.microseconds * 1_000
        )
