# src/dir_cache/domain/interfaces/codec.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Compression Codec Protocol.

Synopsis:
    Pluggable transform applied to history generations. The generation
    store depends on this contract only, never on a concrete codec; the
    codec is chosen from configuration when a cache is built.

Layer:
    domain/interfaces
"""

from __future__ import annotations

from typing import Protocol

from dir_cache.domain.enums.cache import Encoding


class CompressionCodec(Protocol):
    """Reversible byte transform."""

    @property
    def encoding(self) -> Encoding:
        """Encoding recorded in the manifest for data produced by :meth:`compress`."""
        ...

    def compress(self, data: bytes) -> bytes:
        """Return the compressed form of ``data``.

        Raises:
            CompressionError: If the codec fails.
        """
        ...

    def decompress(self, data: bytes) -> bytes:
        """Return the original bytes for ``data``.

        Raises:
            CompressionError: If ``data`` is not valid for this codec.
        """
        ...
