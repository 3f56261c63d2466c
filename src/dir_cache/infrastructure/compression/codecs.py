# src/dir_cache/infrastructure/compression/codecs.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Compression codecs for history generations.

Synopsis:
    Concrete :class:`CompressionCodec` implementations and the factories that
    pick one from configuration (:func:`get_codec`) or from a manifest record
    (:func:`codec_for_encoding`).

Design:
    * ``gzip`` uses the standard library with a fixed ``mtime`` so identical
      input always yields identical files.
    * ``lz4`` uses the LZ4 frame format from the ``lz4`` package.
    * Codec failures are normalised to :class:`CompressionError`.

Layer:
    infrastructure/compression
"""

from __future__ import annotations

import gzip
import zlib
from typing import Final

import lz4.frame

from dir_cache.domain.enums.cache import CompressionKind, Encoding
from dir_cache.domain.exceptions import CompressionError
from dir_cache.domain.interfaces.codec import CompressionCodec

__all__ = [
    "GzipCodec",
    "Lz4Codec",
    "PlainCodec",
    "codec_for_encoding",
    "get_codec",
]

_GZIP_LEVEL: Final[int] = 6


class PlainCodec:
    """Identity transform for generations stored uncompressed."""

    encoding = Encoding.PLAIN

    def compress(self, data: bytes) -> bytes:
        return data

    def decompress(self, data: bytes) -> bytes:
        return data


class GzipCodec:
    """gzip container around DEFLATE."""

    encoding = Encoding.GZIP

    def __init__(self, level: int = _GZIP_LEVEL) -> None:
        self._level = level

    def compress(self, data: bytes) -> bytes:
        try:
            return gzip.compress(data, compresslevel=self._level, mtime=0)
        except (OSError, zlib.error) as exc:
            raise CompressionError(
                f"gzip compress failed: {exc}", details={"codec": "gzip"}
            ) from exc

    def decompress(self, data: bytes) -> bytes:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise CompressionError(
                f"gzip decompress failed: {exc}", details={"codec": "gzip"}
            ) from exc


class Lz4Codec:
    """LZ4 frame format."""

    encoding = Encoding.LZ4

    def compress(self, data: bytes) -> bytes:
        try:
            return lz4.frame.compress(data)
        except RuntimeError as exc:
            raise CompressionError(f"lz4 compress failed: {exc}", details={"codec": "lz4"}) from exc

    def decompress(self, data: bytes) -> bytes:
        try:
            return lz4.frame.decompress(data)
        except RuntimeError as exc:
            raise CompressionError(
                f"lz4 decompress failed: {exc}", details={"codec": "lz4"}
            ) from exc


_BY_ENCODING: Final[dict[Encoding, type[CompressionCodec]]] = {
    Encoding.PLAIN: PlainCodec,
    Encoding.GZIP: GzipCodec,
    Encoding.LZ4: Lz4Codec,
}


def codec_for_encoding(encoding: Encoding) -> CompressionCodec:
    """Return a codec able to decode data stored as ``encoding``."""
    return _BY_ENCODING[encoding]()


def get_codec(kind: CompressionKind | None) -> CompressionCodec | None:
    """Return the codec configured by ``kind`` (``None`` disables compression)."""
    if kind is None:
        return None
    return codec_for_encoding(Encoding.for_compression(kind))
