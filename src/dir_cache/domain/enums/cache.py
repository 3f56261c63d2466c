# src/dir_cache/domain/enums/cache.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Cache enumerations.

Synopsis:
    String enums shared by configuration, the manifest format and the
    storage layer. Values are persisted in manifests and read from the
    environment, so they are part of the on-disk contract.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class CompressionKind(str, Enum):
    """Transform applied to history generations (generation >= 1).

    Attributes:
        GZIP: DEFLATE via the ``gzip`` container.
        LZ4: LZ4 frame format.
    """

    GZIP = "gzip"
    LZ4 = "lz4"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


class Encoding(str, Enum):
    """Encoding a generation data file is stored in, as recorded in the manifest."""

    PLAIN = "plain"
    GZIP = "gzip"
    LZ4 = "lz4"

    @classmethod
    def for_compression(cls, kind: CompressionKind | None) -> Encoding:
        """Return the stored encoding produced by ``kind`` (``PLAIN`` for ``None``)."""
        if kind is None:
            return cls.PLAIN
        return cls(kind.value)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


class DirOpen(str, Enum):
    """How the base directory is treated when a cache is opened.

    Attributes:
        CREATE_IF_MISSING: Create the base directory (and parents) if needed.
        ONLY_IF_EXISTS: Fail unless the base directory already exists.
    """

    CREATE_IF_MISSING = "create_if_missing"
    ONLY_IF_EXISTS = "only_if_exists"
