# src/dir_cache/domain/layout.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""On-disk layout of a key directory.

Every file the cache writes or removes inside a key directory is named by
one of the helpers below; nothing else in a key directory is ever touched.

    <base>/<encoded-key>/
        dir-cache-generation-manifest.txt
        dir-cache-generation-0
        dir-cache-generation-1
        ...
        dir-cache-generation-N
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "GENERATION_FILE_PREFIX",
    "MANIFEST_FILE_NAME",
    "generation_file_name",
    "is_reserved_name",
]

#: Prefix shared by the manifest and every generation data file.
GENERATION_FILE_PREFIX: Final[str] = "dir-cache-generation-"

#: Manifest file name inside a key directory.
MANIFEST_FILE_NAME: Final[str] = f"{GENERATION_FILE_PREFIX}manifest.txt"


def generation_file_name(generation: int) -> str:
    """Return the data file name for ``generation`` (0 = live value)."""
    if generation < 0:
        raise ValueError("generation must be >= 0")
    return f"{GENERATION_FILE_PREFIX}{generation}"


def is_reserved_name(name: str) -> bool:
    """Return True if ``name`` could collide with a cache-owned file name."""
    return name.startswith(GENERATION_FILE_PREFIX)
