# src/dir_cache/domain/interfaces/storage.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Byte Storage Protocol.

Synopsis:
    Domain-level Protocol (PEP 544) for the raw byte-level filesystem
    primitives the generation store is built on. Each call is assumed to be
    atomic enough on its own; no cross-call transaction is assumed.

Design:
    * Implementations translate ``OSError`` into :class:`StoreError`.
    * Missing files are not errors for ``read``/``remove``; they are
      reported through the return value.
    * Every file handle is opened and released within a single call.

Layer:
    domain/interfaces
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol


class ByteStorage(Protocol):
    """Abstraction over the filesystem calls used by the cache."""

    def read(self, path: Path) -> bytes | None:
        """Return the file content at ``path`` or ``None`` if it does not exist.

        Raises:
            StoreError: On any other I/O failure.
        """
        ...

    def write(self, path: Path, data: bytes) -> None:
        """Create or truncate ``path`` and write ``data`` to it.

        Raises:
            StoreError: On I/O failure.
        """
        ...

    def remove(self, path: Path) -> bool:
        """Remove the file at ``path``.

        Returns:
            True if a file was removed, False if none existed.

        Raises:
            StoreError: On I/O failure other than "not found".
        """
        ...

    def rename(self, source: Path, target: Path) -> None:
        """Move ``source`` over ``target``, replacing it if present.

        Raises:
            StoreError: On I/O failure.
        """
        ...

    def exists(self, path: Path) -> bool:
        """Return True if a regular file exists at ``path``."""
        ...

    def create_dir(self, path: Path) -> None:
        """Create ``path`` and any missing parents.

        Raises:
            StoreError: On I/O failure or if ``path`` exists as a file.
        """
        ...

    def remove_dir_if_empty(self, path: Path) -> bool:
        """Remove ``path`` only if it is an empty directory.

        Returns:
            True if the directory was removed.
        """
        ...

    def is_dir(self, path: Path) -> bool:
        """Return True if ``path`` is an existing directory."""
        ...

    def iter_dirs(self, path: Path) -> Iterator[Path]:
        """Yield the immediate sub-directories of ``path`` (not following symlinks)."""
        ...
