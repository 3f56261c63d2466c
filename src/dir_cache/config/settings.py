# src/dir_cache/config/settings.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""dir-cache Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration read from ``DIR_CACHE_*`` environment
    variables (or a ``.env`` file). Library callers can ignore this module
    and pass :class:`CacheOptions` directly; applications that prefer
    environment-driven setup use :func:`get_settings` and
    :meth:`DirCache.from_settings`.

Design:
    - Pydantic v2 BaseSettings with ``extra='forbid'`` to catch unknown env.
    - Explicit field declarations with constrained types and ranges.
    - Singleton accessor ``get_settings()`` with LRU cache.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dir_cache.application.options import CacheOptions
from dir_cache.domain.enums.cache import CompressionKind, DirOpen

logger = logging.getLogger(__name__)


class DirCacheSettings(BaseSettings):
    """Environment-backed cache configuration."""

    # ---------------------------
    # Location
    # ---------------------------
    base_dir: Path = Field(
        default=Path(".dir-cache"),
        description="Root directory of the cache tree.",
        validation_alias="DIR_CACHE_BASE_DIR",
    )
    dir_open: DirOpen = Field(
        default=DirOpen.CREATE_IF_MISSING,
        description="'create_if_missing' or 'only_if_exists'.",
        validation_alias="DIR_CACHE_DIR_OPEN",
    )

    # ---------------------------
    # Expiry & history
    # ---------------------------
    max_age_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Entries older than this many seconds read as absent. Unset disables expiry.",
        validation_alias="DIR_CACHE_MAX_AGE_SECONDS",
    )
    generations_enabled: bool = Field(
        default=False,
        description="Keep superseded values as numbered history generations.",
        validation_alias="DIR_CACHE_GENERATIONS_ENABLED",
    )
    max_generations: int = Field(
        default=1,
        ge=1,
        le=10_000,
        description="Maximum number of history generations retained per key.",
        validation_alias="DIR_CACHE_MAX_GENERATIONS",
    )
    compression: CompressionKind | None = Field(
        default=None,
        description="Compression for history generations: 'gzip' or 'lz4'. Unset stores plain.",
        validation_alias="DIR_CACHE_COMPRESSION",
    )

    # ---------------------------
    # Logging
    # ---------------------------
    log_level: str | None = Field(
        default=None,
        description=(
            "Level for the dir_cache loggers (e.g., 'DEBUG', 'INFO'), applied by "
            "DirCache.from_settings. If not set, the level is inherited from root."
        ),
        validation_alias="DIR_CACHE_LOG_LEVEL",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
        case_sensitive=False,
    )

    def to_options(self) -> CacheOptions:
        """Return the :class:`CacheOptions` described by these settings."""
        return CacheOptions(
            max_age=(
                timedelta(seconds=self.max_age_seconds)
                if self.max_age_seconds is not None
                else None
            ),
            generations_enabled=self.generations_enabled,
            max_generations=self.max_generations,
            compression=self.compression,
            dir_open=self.dir_open,
        )


@lru_cache(maxsize=1)
def get_settings() -> DirCacheSettings:
    """Return a cached singleton :class:`DirCacheSettings` instance.

    Returns:
        DirCacheSettings: Validated settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = DirCacheSettings()
    except ValidationError as exc:
        logger.error("Invalid dir-cache configuration", extra={"errors": exc.errors()})
        raise RuntimeError(f"Invalid dir-cache configuration: {exc}") from exc

    logger.info(
        "Settings initialized",
        extra={
            "base_dir": str(settings.base_dir),
            "dir_open": settings.dir_open.value,
            "generations_enabled": settings.generations_enabled,
            "max_generations": settings.max_generations,
            "compression": settings.compression.value if settings.compression else None,
            "max_age_seconds": settings.max_age_seconds,
        },
    )
    return settings
