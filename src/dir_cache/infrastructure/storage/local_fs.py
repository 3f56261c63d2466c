# src/dir_cache/infrastructure/storage/local_fs.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Local filesystem byte storage.

Synopsis:
    Implements :class:`ByteStorage` on top of the local filesystem. Every
    handle is opened in a ``with`` block so it is released on all exit
    paths, and every ``OSError`` surfaces as :class:`StoreError`.

Design:
    * Data files are opened with ``O_NOFOLLOW`` where the platform has it,
      so a symlink planted at a cache-owned file name cannot redirect a
      write outside the cache directory.
    * No temp files: only the exact path asked for is created, which keeps
      the key-directory file set fixed.

Layer:
    infrastructure/storage
"""

from __future__ import annotations

import errno
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Final

from dir_cache.domain.exceptions import StoreError

__all__ = ["LocalFileStorage"]

_NOFOLLOW: Final[int] = getattr(os, "O_NOFOLLOW", 0)
_BINARY: Final[int] = getattr(os, "O_BINARY", 0)
_READ_FLAGS: Final[int] = os.O_RDONLY | _NOFOLLOW | _BINARY
_WRITE_FLAGS: Final[int] = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | _NOFOLLOW | _BINARY
_FILE_MODE: Final[int] = 0o644


def _io_error(op: str, path: Path, exc: OSError) -> StoreError:
    return StoreError(
        f"failed to {op} {str(path)!r}: {exc.strerror or exc}",
        details={"op": op, "path": str(path), "errno": exc.errno},
    )


class LocalFileStorage:
    """Byte storage backed by ``os``/``pathlib`` calls."""

    def read(self, path: Path) -> bytes | None:
        """Return file bytes, or ``None`` when the file does not exist."""
        try:
            fd = os.open(path, _READ_FLAGS)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise _io_error("read", path, exc) from exc
        try:
            with os.fdopen(fd, "rb") as handle:
                return handle.read()
        except OSError as exc:
            raise _io_error("read", path, exc) from exc

    def write(self, path: Path, data: bytes) -> None:
        """Create or truncate ``path`` and write ``data``."""
        try:
            fd = os.open(path, _WRITE_FLAGS, _FILE_MODE)
        except OSError as exc:
            raise _io_error("write", path, exc) from exc
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        except OSError as exc:
            raise _io_error("write", path, exc) from exc

    def remove(self, path: Path) -> bool:
        """Remove a file; a missing file is not an error."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise _io_error("remove", path, exc) from exc
        return True

    def rename(self, source: Path, target: Path) -> None:
        """Atomically move ``source`` over ``target``."""
        try:
            os.replace(source, target)
        except OSError as exc:
            raise _io_error("rename", source, exc) from exc

    def exists(self, path: Path) -> bool:
        """Return True for an existing regular file (symlinks are not followed)."""
        return path.is_file() and not path.is_symlink()

    def create_dir(self, path: Path) -> None:
        """Create ``path`` with parents; an existing directory is fine."""
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise _io_error("create directory", path, exc) from exc

    def remove_dir_if_empty(self, path: Path) -> bool:
        """Remove ``path`` if it is an empty directory."""
        try:
            path.rmdir()
        except FileNotFoundError:
            return False
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                return False
            raise _io_error("remove directory", path, exc) from exc
        return True

    def is_dir(self, path: Path) -> bool:
        """Return True for an existing directory (symlinks are not followed)."""
        return path.is_dir() and not path.is_symlink()

    def iter_dirs(self, path: Path) -> Iterator[Path]:
        """Yield immediate sub-directories of ``path``."""
        try:
            with os.scandir(path) as entries:
                subdirs = [Path(e.path) for e in entries if e.is_dir(follow_symlinks=False)]
        except FileNotFoundError:
            return
        except OSError as exc:
            raise _io_error("list directory", path, exc) from exc
        yield from sorted(subdirs)
