# src/dir_cache/application/cache_engine.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Cache Engine (map-like public surface).

Synopsis:
    :class:`DirCache` exposes ``get`` / ``insert`` / ``remove`` /
    ``get_or_insert_with`` over a directory tree. The engine holds no
    authoritative state: every call validates the key again and re-reads
    what it needs from disk, so the on-disk layout is the single source of
    truth.

Design:
    * Synchronous and blocking; each call completes its disk I/O on the
      caller's thread.
    * No locking. Two concurrent ``get_or_insert_with`` calls on a cold key
      may both run their producer and the later write wins. Callers that
      need one producer per key must serialise externally.
    * Callers with non-blocking producers should fetch first and call
      :meth:`DirCache.insert` afterwards instead of passing a producer.

Layer:
    application
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from dir_cache.application.options import CacheOptions
from dir_cache.config.settings import DirCacheSettings, get_settings
from dir_cache.domain.entities.entry import Entry
from dir_cache.domain.entities.manifest import Manifest
from dir_cache.domain.enums.cache import DirOpen
from dir_cache.domain.exceptions import CacheKeyError, CacheOpenError, ProducerError, StoreError
from dir_cache.domain.interfaces.storage import ByteStorage
from dir_cache.domain.services.key_encoder import EncodedKey, KeyEncoder
from dir_cache.domain.value_objects.cache_key import CacheKey, KeyLike
from dir_cache.infrastructure.compression.codecs import codec_for_encoding, get_codec
from dir_cache.infrastructure.logging.logger import get_json_logger, set_package_log_level
from dir_cache.infrastructure.observability.metrics import CacheObservation, observe_cache_operation
from dir_cache.infrastructure.storage.generation_store import GenerationStore
from dir_cache.infrastructure.storage.local_fs import LocalFileStorage

__all__ = ["DirCache"]

logger = get_json_logger(__name__)

Producer = Callable[[], bytes]


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"cache values must be bytes-like, got {type(value).__name__}")


class DirCache:
    """A directory-backed key-value cache.

    Example:
        cache = DirCache("/tmp/api-cache", CacheOptions(max_age=timedelta(hours=1)))
        entry = cache.get_or_insert_with(["users", "42"], lambda: fetch(42))
        entry.value

    Args:
        base_dir: Root directory of the cache tree.
        options: Cache policy; defaults to :class:`CacheOptions` defaults.
        storage: Byte-storage primitive; defaults to the local filesystem.
        clock: Returns unix time in nanoseconds; used for TTL and manifests.

    Raises:
        CacheOpenError: If the base directory cannot be opened under
            ``options.dir_open``.
    """

    def __init__(
        self,
        base_dir: str | Path,
        options: CacheOptions | None = None,
        *,
        storage: ByteStorage | None = None,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._options = options or CacheOptions()
        self._storage: ByteStorage = storage or LocalFileStorage()
        self._clock = clock
        self._encoder = KeyEncoder(self._base_dir)
        self._store = GenerationStore(
            self._storage, codec_resolver=codec_for_encoding, clock=clock
        )
        self._codec = get_codec(self._options.compression)
        self._open_base_dir()

    # ------------------------------------------------------------------ #
    # Construction helpers
    # ------------------------------------------------------------------ #
    @classmethod
    def open(
        cls,
        base_dir: str | Path,
        *,
        dir_open: DirOpen = DirOpen.CREATE_IF_MISSING,
        **options: Any,
    ) -> DirCache:
        """Open a cache, building :class:`CacheOptions` from keyword arguments.

        Args:
            base_dir: Root directory of the cache tree.
            dir_open: Open mode for the base directory.
            **options: Remaining :class:`CacheOptions` fields.

        Returns:
            DirCache: The opened cache.
        """
        return cls(base_dir, CacheOptions(dir_open=dir_open, **options))

    @classmethod
    def from_settings(cls, settings: DirCacheSettings | None = None) -> DirCache:
        """Build a cache from :class:`DirCacheSettings` (environment by default).

        A configured ``log_level`` is applied to the ``dir_cache`` loggers.
        """
        resolved = settings if settings is not None else get_settings()
        if resolved.log_level is not None:
            set_package_log_level(resolved.log_level)
        return cls(resolved.base_dir, resolved.to_options())

    def with_options(self, **changes: Any) -> DirCache:
        """Return a cache over the same directory with some options changed.

        Raises:
            pydantic.ValidationError: If the resulting options are invalid.
        """
        merged = CacheOptions.model_validate({**self._options.model_dump(), **changes})
        return DirCache(self._base_dir, merged, storage=self._storage, clock=self._clock)

    def _open_base_dir(self) -> None:
        base = self._base_dir
        if self._options.dir_open is DirOpen.ONLY_IF_EXISTS:
            if not base.exists():
                raise CacheOpenError(
                    f"cache directory {str(base)!r} does not exist",
                    details={"base_dir": str(base), "dir_open": self._options.dir_open.value},
                )
            if not base.is_dir():
                raise CacheOpenError(
                    f"cache path {str(base)!r} is not a directory",
                    details={"base_dir": str(base), "dir_open": self._options.dir_open.value},
                )
            return
        try:
            self._storage.create_dir(base)
        except StoreError as exc:
            raise CacheOpenError(
                f"cannot create cache directory {str(base)!r}: {exc}",
                details={"base_dir": str(base), **exc.details},
            ) from exc

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #
    @property
    def base_dir(self) -> Path:
        """Root directory of the cache tree."""
        return self._base_dir

    @property
    def options(self) -> CacheOptions:
        """Active cache policy."""
        return self._options

    # ------------------------------------------------------------------ #
    # Map-like API
    # ------------------------------------------------------------------ #
    def get(self, key: KeyLike) -> Entry | None:
        """Return the live entry for ``key``.

        Expired entries (per ``max_age``) read as ``None`` and are left on
        disk.

        Raises:
            CacheKeyError: If the key is unsafe.
            StoreError: On I/O failure.
        """
        with observe_cache_operation("get") as obs:
            encoded = self._encoder.encode(key)
            return self._lookup(encoded, obs)

    def insert(self, key: KeyLike, value: bytes) -> None:
        """Store ``value`` under ``key``, rotating history if enabled.

        Raises:
            CacheKeyError: If the key is unsafe.
            StoreError: On I/O failure (history may be partially rotated).
            CompressionError: If the retired value cannot be compressed.
        """
        with observe_cache_operation("insert"):
            encoded = self._encoder.encode(key)
            self._write(encoded, _as_bytes(value))

    def remove(self, key: KeyLike) -> bool:
        """Remove ``key`` and all its history.

        Removing an absent key is a successful no-op.

        Returns:
            True if anything was removed.

        Raises:
            CacheKeyError: If the key is unsafe.
            StoreError: On I/O failure.
        """
        with observe_cache_operation("remove") as obs:
            encoded = self._encoder.encode(key)
            removed = self._store.remove(encoded.directory)
            obs.outcome = "ok" if removed else "miss"
            if removed:
                logger.debug("cache_entry_removed", extra={"cache_key": str(encoded.key)})
            return removed

    def get_or_insert_with(self, key: KeyLike, produce: Producer) -> Entry:
        """Return the live entry for ``key``, producing and inserting it on a miss.

        ``produce`` is called at most once, and only when the key is absent
        or expired. If it raises, nothing is written.

        Args:
            key: Cache key.
            produce: Zero-argument callable returning the value bytes.

        Returns:
            Entry: The cached or newly inserted entry.

        Raises:
            CacheKeyError: If the key is unsafe.
            ProducerError: If ``produce`` raised; the original is ``__cause__``.
            StoreError: On I/O failure.
        """
        with observe_cache_operation("get_or_insert_with") as obs:
            encoded = self._encoder.encode(key)
            entry = self._lookup(encoded, obs)
            if entry is not None:
                return entry
            try:
                produced = produce()
            except Exception as exc:
                raise ProducerError(exc, details={"cache_key": str(encoded.key)}) from exc
            return self._write(encoded, _as_bytes(produced))

    def contains(self, key: KeyLike) -> bool:
        """Return True if ``key`` has a live, non-expired entry."""
        return self.get(key) is not None

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def get_generation(self, key: KeyLike, generation: int) -> bytes | None:
        """Return the decoded value of a history generation.

        Generation 0 is the live value (ignoring ``max_age``); 1 is the most
        recently superseded value.

        Raises:
            CacheKeyError: If the key is unsafe.
            ManifestError: If the key's manifest is malformed.
            CompressionError: If the stored data cannot be decoded.
            StoreError: On I/O failure.
        """
        with observe_cache_operation("get_generation") as obs:
            encoded = self._encoder.encode(key)
            value = self._store.read_generation(encoded.directory, generation)
            obs.outcome = "hit" if value is not None else "miss"
            return value

    def generation_count(self, key: KeyLike) -> int | None:
        """Return how many history generations ``key`` retains, or ``None`` if absent.

        Raises:
            ManifestError: If the key's manifest is malformed.
        """
        encoded = self._encoder.encode(key)
        manifest = self._store.read_manifest(encoded.directory)
        return manifest.generation_count if manifest is not None else None

    def keys(self) -> Iterator[CacheKey]:
        """Yield every stored key (expired ones included), breadth first.

        Directories whose names are not valid key segments are skipped.
        """
        pending: deque[Path] = deque(self._storage.iter_dirs(self._base_dir))
        while pending:
            directory = pending.popleft()
            pending.extend(self._storage.iter_dirs(directory))
            if not self._store.has_manifest(directory):
                continue
            try:
                yield self._encoder.decode(directory)
            except CacheKeyError:
                logger.debug("cache_dir_skipped", extra={"directory": str(directory)})

    def __iter__(self) -> Iterator[CacheKey]:
        return self.keys()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _lookup(self, encoded: EncodedKey, obs: CacheObservation) -> Entry | None:
        found = self._store.read_current(encoded.directory)
        if found is None:
            obs.outcome = "miss"
            return None
        entry, manifest = found
        if self._is_expired(manifest):
            obs.outcome = "expired"
            logger.debug(
                "cache_entry_expired",
                extra={"cache_key": str(encoded.key), "written_at_ns": manifest.last_write_ns},
            )
            return None
        obs.outcome = "hit"
        return entry

    def _is_expired(self, manifest: Manifest) -> bool:
        max_age_ns = self._options.max_age_ns
        if max_age_ns is None:
            return False
        return self._clock() - manifest.last_write_ns > max_age_ns

    def _write(self, encoded: EncodedKey, value: bytes) -> Entry:
        manifest = self._store.write(
            encoded.directory,
            value,
            generations_enabled=self._options.generations_enabled,
            max_generations=self._options.max_generations,
            codec=self._codec,
        )
        logger.debug(
            "cache_entry_written",
            extra={
                "cache_key": str(encoded.key),
                "bytes": len(value),
                "generation_count": manifest.generation_count,
            },
        )
        return Entry(value=value, written_at_ns=manifest.last_write_ns)
