# tests/unit/domain/test_key_encoder.py
from __future__ import annotations

import os
from pathlib import Path

import pytest

from dir_cache.domain.exceptions import CacheKeyError
from dir_cache.domain.services.key_encoder import KeyEncoder
from dir_cache.domain.value_objects.cache_key import CacheKey


def test_encode_maps_segments_under_base(tmp_path: Path) -> None:
    """Each segment becomes one directory level below the base."""
    encoder = KeyEncoder(tmp_path)
    encoded = encoder.encode("users/42")

    assert encoded.key == CacheKey(("users", "42"))
    assert encoded.directory == tmp_path.resolve() / "users" / "42"


def test_encode_has_no_filesystem_side_effects(tmp_path: Path) -> None:
    encoder = KeyEncoder(tmp_path)
    encoder.encode("a/b/c")
    with pytest.raises(CacheKeyError):
        encoder.encode("../outside")
    assert list(tmp_path.iterdir()) == []


def test_encode_rejects_symlink_escaping_base(tmp_path: Path) -> None:
    """A directory symlink inside the base must not lead keys outside of it."""
    base = tmp_path / "cache"
    outside = tmp_path / "outside"
    base.mkdir()
    outside.mkdir()
    os.symlink(outside, base / "link", target_is_directory=True)

    encoder = KeyEncoder(base)
    with pytest.raises(CacheKeyError) as ei:
        encoder.encode("link/secret")
    assert ei.value.details["reason"] == "escapes base directory"


def test_encode_rejects_symlink_staying_inside_base(tmp_path: Path) -> None:
    """A link to another key's directory would let two keys share one entry."""
    base = tmp_path / "cache"
    (base / "real").mkdir(parents=True)
    os.symlink(base / "real", base / "alias", target_is_directory=True)

    encoder = KeyEncoder(base)
    with pytest.raises(CacheKeyError) as ei:
        encoder.encode("alias/x")
    assert ei.value.details["reason"] == "symlink in key path"
    assert encoder.encode("real/x").directory == base.resolve() / "real" / "x"


def test_decode_inverts_encode(tmp_path: Path) -> None:
    encoder = KeyEncoder(tmp_path)
    encoded = encoder.encode(["api", "v1", "items"])
    assert encoder.decode(encoded.directory) == encoded.key


def test_decode_rejects_directories_outside_base(tmp_path: Path) -> None:
    encoder = KeyEncoder(tmp_path / "cache")
    with pytest.raises(CacheKeyError):
        encoder.decode(tmp_path / "elsewhere")
