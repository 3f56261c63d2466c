# src/dir_cache/domain/services/manifest_codec.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Manifest Codec.

Synopsis:
    Serialises :class:`Manifest` to the fixed, line-oriented text stored in
    ``dir-cache-generation-manifest.txt`` and parses it back.

Format:
    Line 1 is the format version. Every following line describes one
    generation, newest first, as ``<unix-nanos>,<encoding>``::

        1
        1734567890123456789,plain
        1734567000000000000,gzip

Layer:
    domain/services
"""

from __future__ import annotations

from dir_cache.domain.entities.manifest import MANIFEST_VERSION, GenerationRecord, Manifest
from dir_cache.domain.enums.cache import Encoding
from dir_cache.domain.exceptions import ManifestError

__all__ = ["parse_manifest", "serialize_manifest"]


def _malformed(reason: str, *, line: int | None = None) -> ManifestError:
    details: dict[str, object] = {"reason": reason}
    where = ""
    if line is not None:
        details["line"] = line
        where = f" (line {line})"
    return ManifestError(f"malformed manifest{where}: {reason}", details=details)


def serialize_manifest(manifest: Manifest) -> bytes:
    """Render ``manifest`` as UTF-8 bytes.

    Args:
        manifest: Manifest to serialise.

    Returns:
        bytes: Manifest text, newline terminated.
    """
    lines = [str(manifest.version)]
    lines.extend(f"{rec.written_at_ns},{rec.encoding.value}" for rec in manifest.generations)
    return ("\n".join(lines) + "\n").encode("utf-8")


def _parse_record(raw: str, line_no: int) -> GenerationRecord:
    fields = raw.split(",")
    if len(fields) != 2:
        raise _malformed("expected '<timestamp>,<encoding>'", line=line_no)
    ts_raw, enc_raw = fields
    if not (ts_raw.isascii() and ts_raw.isdigit()):
        raise _malformed(f"timestamp {ts_raw!r} is not a non-negative integer", line=line_no)
    try:
        encoding = Encoding(enc_raw)
    except ValueError:
        raise _malformed(f"unknown encoding {enc_raw!r}", line=line_no) from None
    return GenerationRecord(written_at_ns=int(ts_raw), encoding=encoding)


def parse_manifest(data: bytes) -> Manifest:
    """Parse manifest bytes.

    Args:
        data: Raw manifest file content.

    Returns:
        Manifest: Parsed manifest.

    Raises:
        ManifestError: On any line-count or field mismatch.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        raise _malformed("not valid UTF-8") from None

    lines = text.split("\n")
    # Exactly one trailing newline is allowed.
    if lines and lines[-1] == "":
        lines.pop()
    if not lines:
        raise _malformed("empty manifest")

    version_raw = lines[0]
    if not (version_raw.isascii() and version_raw.isdigit()):
        raise _malformed(f"version {version_raw!r} is not an integer", line=1)
    version = int(version_raw)
    if version != MANIFEST_VERSION:
        raise _malformed(f"unsupported version {version}, want {MANIFEST_VERSION}", line=1)

    if len(lines) < 2:
        raise _malformed("missing generation 0 record")

    records = tuple(_parse_record(raw, idx) for idx, raw in enumerate(lines[1:], start=2))
    if records[0].encoding is not Encoding.PLAIN:
        raise _malformed("generation 0 must be stored plain", line=2)
    return Manifest(generations=records, version=version)
