# src/dir_cache/infrastructure/storage/generation_store.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Generation Store.

Synopsis:
    All filesystem interaction for a single, already validated key
    directory: reading the live value, rotating history generations on
    overwrite, compressing retired generations and removing an entry.

Design:
    * Only names from :mod:`dir_cache.domain.layout` are ever read, written
      or removed; there is no recursive or wildcard delete.
    * Rotation order is fixed: delete generations that would fall past the
      cap (oldest first), shift the remaining history down from oldest to
      newest, retire the live value into slot 1, write the new live value,
      then rewrite the manifest. No two files ever claim the same slot.
    * I/O failures surface immediately as :class:`StoreError`. A failure in
      the middle of a rotation can leave it partially applied. The next
      write skips history slots that were already shifted, so the key stays
      writable; the history itself is not rolled back.
    * Codecs come in through the :class:`CompressionCodec` contract only:
      the caller passes the compressing codec to :meth:`write` and a
      resolver that decodes each recorded encoding on read.
    * History files are reconciled with the active policy on every write:
      disabling generations or lowering the cap deletes slots that the
      policy no longer allows.

Layer:
    infrastructure/storage
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

from dir_cache.domain.entities.entry import Entry
from dir_cache.domain.entities.manifest import Manifest
from dir_cache.domain.enums.cache import Encoding
from dir_cache.domain.exceptions import ManifestError, StoreError
from dir_cache.domain.interfaces.codec import CompressionCodec
from dir_cache.domain.interfaces.storage import ByteStorage
from dir_cache.domain.layout import MANIFEST_FILE_NAME, generation_file_name
from dir_cache.domain.services.manifest_codec import parse_manifest, serialize_manifest
from dir_cache.infrastructure.logging.logger import get_json_logger
from dir_cache.infrastructure.observability.metrics import (
    get_cache_generations_pruned_total,
    get_cache_rotations_total,
)

__all__ = ["GenerationStore"]

logger = get_json_logger(__name__)


class GenerationStore:
    """Manage the fixed file set of one key directory.

    Args:
        storage: Byte-level filesystem primitive.
        codec_resolver: Returns the codec able to decode data stored in a
            given encoding; used for every history read.
        clock: Returns the current unix time in nanoseconds.
    """

    def __init__(
        self,
        storage: ByteStorage,
        *,
        codec_resolver: Callable[[Encoding], CompressionCodec],
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._storage = storage
        self._codec_resolver = codec_resolver
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def read_manifest(self, key_dir: Path) -> Manifest | None:
        """Read and parse the manifest of ``key_dir``.

        Returns:
            The manifest, or ``None`` if no manifest file exists.

        Raises:
            ManifestError: If the manifest exists but is malformed.
            StoreError: On I/O failure.
        """
        raw = self._storage.read(key_dir / MANIFEST_FILE_NAME)
        if raw is None:
            return None
        return parse_manifest(raw)

    def has_manifest(self, key_dir: Path) -> bool:
        """Return True if ``key_dir`` holds a manifest file."""
        return self._storage.exists(key_dir / MANIFEST_FILE_NAME)

    def read_current(self, key_dir: Path) -> tuple[Entry, Manifest] | None:
        """Return the live value and its manifest.

        A missing or corrupt manifest, or a manifest without its data file,
        reads as "no entry" so that the next insert regenerates it.

        Raises:
            StoreError: On I/O failure.
        """
        try:
            manifest = self.read_manifest(key_dir)
        except ManifestError as exc:
            logger.warning(
                "cache_manifest_corrupt",
                extra={"key_dir": str(key_dir), "reason": exc.details.get("reason")},
            )
            return None
        if manifest is None:
            return None

        data = self._storage.read(key_dir / generation_file_name(0))
        if data is None:
            logger.warning("cache_entry_inconsistent", extra={"key_dir": str(key_dir)})
            return None
        return Entry(value=data, written_at_ns=manifest.last_write_ns), manifest

    def read_generation(self, key_dir: Path, generation: int) -> bytes | None:
        """Return the decoded bytes of ``generation`` (0 = live value).

        Returns:
            The value, or ``None`` if the entry or the generation is not retained.

        Raises:
            ManifestError: If the manifest is malformed.
            CompressionError: If the stored data cannot be decoded.
            StoreError: On I/O failure.
        """
        if generation < 0:
            raise ValueError("generation must be >= 0")
        manifest = self.read_manifest(key_dir)
        if manifest is None:
            return None
        record = manifest.record(generation)
        if record is None:
            return None
        raw = self._storage.read(key_dir / generation_file_name(generation))
        if raw is None:
            logger.warning(
                "cache_generation_missing",
                extra={"key_dir": str(key_dir), "generation": generation},
            )
            return None
        return self._codec_resolver(record.encoding).decompress(raw)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def write(
        self,
        key_dir: Path,
        value: bytes,
        *,
        generations_enabled: bool,
        max_generations: int,
        codec: CompressionCodec | None = None,
    ) -> Manifest:
        """Write ``value`` as the new live value of ``key_dir``.

        Args:
            key_dir: Validated key directory.
            value: New live value.
            generations_enabled: Keep the previous value as history.
            max_generations: Cap on retained history generations (>= 1).
            codec: Transform applied to the value leaving slot 0.

        Returns:
            Manifest: The manifest now on disk.

        Raises:
            StoreError: On I/O failure (rotation may be partially applied).
            CompressionError: If the retiring value cannot be compressed.
        """
        if max_generations < 1:
            raise ValueError("max_generations must be >= 1")

        self._storage.create_dir(key_dir)
        previous = self._read_previous(key_dir)
        now = self._clock()
        live = key_dir / generation_file_name(0)

        if previous is None or not generations_enabled or not self._storage.exists(live):
            known = previous.generation_count if previous is not None else 0
            self._prune(key_dir, keep=0, known=known)
            manifest = Manifest.fresh(now)
            self._storage.write(live, value)
            self._write_manifest(key_dir, manifest)
            return manifest

        manifest = self._rotate(key_dir, previous, now, max_generations, codec)
        self._storage.write(live, value)
        self._write_manifest(key_dir, manifest)
        return manifest

    def _read_previous(self, key_dir: Path) -> Manifest | None:
        try:
            return self.read_manifest(key_dir)
        except ManifestError as exc:
            logger.warning(
                "cache_manifest_regenerated",
                extra={"key_dir": str(key_dir), "reason": exc.details.get("reason")},
            )
            return None

    def _rotate(
        self,
        key_dir: Path,
        previous: Manifest,
        now: int,
        max_generations: int,
        codec: CompressionCodec | None,
    ) -> Manifest:
        # 1. slots that would shift past the cap go first, oldest first
        self._prune(key_dir, keep=max_generations - 1, known=previous.generation_count)

        # 2. shift remaining history down, oldest first
        for gen in range(min(previous.generation_count, max_generations - 1), 0, -1):
            source = key_dir / generation_file_name(gen)
            if not self._storage.exists(source):
                # already shifted by an interrupted rotation
                logger.warning(
                    "cache_generation_missing",
                    extra={"key_dir": str(key_dir), "generation": gen},
                )
                continue
            self._storage.rename(source, key_dir / generation_file_name(gen + 1))

        # 3. retire the live value into slot 1
        live = key_dir / generation_file_name(0)
        first = key_dir / generation_file_name(1)
        if codec is None:
            self._storage.rename(live, first)
            retired_encoding = Encoding.PLAIN
        else:
            data = self._storage.read(live)
            if data is None:
                raise StoreError(
                    f"live value vanished during rotation at {str(live)!r}",
                    details={"op": "rotate", "path": str(live)},
                )
            self._storage.write(first, codec.compress(data))
            retired_encoding = codec.encoding

        get_cache_rotations_total().labels(compressed=str(codec is not None).lower()).inc()
        logger.debug(
            "cache_generations_rotated",
            extra={
                "key_dir": str(key_dir),
                "generation_count": min(previous.generation_count + 1, max_generations),
                "encoding": retired_encoding.value,
            },
        )
        return previous.rotated(
            now, max_generations=max_generations, retired_encoding=retired_encoding
        )

    def _write_manifest(self, key_dir: Path, manifest: Manifest) -> None:
        self._storage.write(key_dir / MANIFEST_FILE_NAME, serialize_manifest(manifest))

    # ------------------------------------------------------------------ #
    # Removal
    # ------------------------------------------------------------------ #
    def remove(self, key_dir: Path) -> bool:
        """Delete the entry stored in ``key_dir``.

        Only the manifest and the numbered generation files are removed; the
        directory itself is removed afterwards only if it is empty.

        Returns:
            True if any cache file was removed.

        Raises:
            StoreError: On I/O failure.
        """
        if not self._storage.is_dir(key_dir):
            return False
        try:
            manifest = self.read_manifest(key_dir)
        except ManifestError:
            manifest = None
        known = manifest.generation_count if manifest is not None else 0

        removed = 0
        for gen in range(self._highest_generation(key_dir, known), -1, -1):
            removed += self._storage.remove(key_dir / generation_file_name(gen))
        removed += self._storage.remove(key_dir / MANIFEST_FILE_NAME)
        self._storage.remove_dir_if_empty(key_dir)
        return removed > 0

    def _highest_generation(self, key_dir: Path, known: int) -> int:
        """Return the highest history slot to consider: the manifest's count
        extended by any contiguous files left over by an interrupted rotation."""
        top = known
        while self._storage.exists(key_dir / generation_file_name(top + 1)):
            top += 1
        return top

    def _prune(self, key_dir: Path, *, keep: int, known: int) -> int:
        """Delete history slots above ``keep``, highest (oldest) first."""
        pruned = 0
        for gen in range(self._highest_generation(key_dir, known), keep, -1):
            pruned += self._storage.remove(key_dir / generation_file_name(gen))
        if pruned:
            get_cache_generations_pruned_total().inc(pruned)
            logger.debug(
                "cache_generations_pruned",
                extra={"key_dir": str(key_dir), "pruned": pruned, "kept": keep},
            )
        return pruned
