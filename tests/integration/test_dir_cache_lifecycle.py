# tests/integration/test_dir_cache_lifecycle.py
"""End-to-end behaviour of a cache directory across several cache instances.

Each test opens real caches on a temporary directory and inspects the files
left behind, the way an operator browsing the cache would see them.
"""

from __future__ import annotations

import gzip
import os
from datetime import timedelta
from pathlib import Path

import lz4.frame
import pytest

from dir_cache import CacheKeyError, CacheOptions, CompressionKind, DirCache, StoreError
from dir_cache.domain.layout import MANIFEST_FILE_NAME, generation_file_name

pytestmark = pytest.mark.integration


def _all_files(root: Path) -> set[Path]:
    return {p for p in root.rglob("*") if p.is_file()}


def test_versioned_user_record_round_trip(tmp_path: Path) -> None:
    """users/42 keeps the previous body as generation 1 on disk."""
    cache = DirCache(tmp_path, CacheOptions(generations_enabled=True, max_generations=1))
    cache.insert("users/42", b"A")
    cache.insert("users/42", b"B")

    assert cache.get("users/42").value == b"B"  # type: ignore[union-attr]
    key_dir = tmp_path / "users" / "42"
    assert (key_dir / generation_file_name(0)).read_bytes() == b"B"
    assert (key_dir / generation_file_name(1)).read_bytes() == b"A"
    assert (key_dir / MANIFEST_FILE_NAME).read_bytes().startswith(b"1\n")


def test_traversal_key_never_escapes(tmp_path: Path) -> None:
    base = tmp_path / "cache"
    sibling = tmp_path / "etc"
    sibling.mkdir()
    cache = DirCache(base)

    with pytest.raises(CacheKeyError):
        cache.insert("../etc/passwd", b"pwned")

    assert _all_files(tmp_path) == set()
    assert list(sibling.iterdir()) == []


def test_planted_symlink_file_is_not_followed(tmp_path: Path) -> None:
    """A symlink at the live-value path must not redirect the write."""
    base = tmp_path / "cache"
    victim = tmp_path / "victim.txt"
    victim.write_bytes(b"keep me")
    (base / "k").mkdir(parents=True)
    os.symlink(victim, base / "k" / generation_file_name(0))

    cache = DirCache(base)
    with pytest.raises(StoreError):
        cache.insert("k", b"overwrite")
    assert victim.read_bytes() == b"keep me"


@pytest.mark.parametrize("cap", [1, 2, 5])
def test_cap_plus_two_inserts_leave_cap_generations(tmp_path: Path, cap: int) -> None:
    cache = DirCache(tmp_path, CacheOptions(generations_enabled=True, max_generations=cap))
    for i in range(cap + 2):
        cache.insert("k", f"v{i}".encode())

    names = {p.name for p in (tmp_path / "k").iterdir()}
    assert names == {MANIFEST_FILE_NAME, *(generation_file_name(n) for n in range(cap + 1))}
    assert cache.get_generation("k", cap) == b"v1"


@pytest.mark.parametrize(
    ("kind", "decode"),
    [(CompressionKind.GZIP, gzip.decompress), (CompressionKind.LZ4, lz4.frame.decompress)],
)
def test_compressed_history_is_readable_with_standard_tools(
    tmp_path: Path, kind: CompressionKind, decode
) -> None:
    cache = DirCache.open(
        tmp_path, generations_enabled=True, max_generations=3, compression=kind
    )
    body = b'{"id": 42, "tags": ["a", "b"]}' * 20
    cache.insert("api/items", body)
    cache.insert("api/items", b"latest")

    key_dir = tmp_path / "api" / "items"
    assert (key_dir / generation_file_name(0)).read_bytes() == b"latest"
    assert decode((key_dir / generation_file_name(1)).read_bytes()) == body
    assert cache.get_generation("api/items", 1) == body


def test_state_is_shared_between_instances(tmp_path: Path) -> None:
    """Caches hold no state of their own: a second instance sees every write."""
    writer = DirCache(tmp_path, CacheOptions(generations_enabled=True, max_generations=2))
    reader = DirCache(tmp_path)

    writer.insert("shared", b"1")
    assert reader.get("shared").value == b"1"  # type: ignore[union-attr]

    writer.insert("shared", b"2")
    assert reader.get("shared").value == b"2"  # type: ignore[union-attr]
    assert reader.get_generation("shared", 1) == b"1"

    reader.remove("shared")
    assert writer.get("shared") is None


def test_switching_off_generations_cleans_history(tmp_path: Path) -> None:
    versioned = DirCache(tmp_path, CacheOptions(generations_enabled=True, max_generations=4))
    for value in (b"a", b"b", b"c"):
        versioned.insert("k", value)

    DirCache(tmp_path).insert("k", b"d")

    names = {p.name for p in (tmp_path / "k").iterdir()}
    assert names == {MANIFEST_FILE_NAME, generation_file_name(0)}


def test_foreign_files_survive_remove(tmp_path: Path) -> None:
    cache = DirCache(tmp_path)
    cache.insert("docs", b"x")
    readme = tmp_path / "docs" / "README"
    readme.write_bytes(b"hand written")

    assert cache.remove("docs") is True
    assert readme.read_bytes() == b"hand written"


def test_corrupt_manifest_recovers_on_next_insert(tmp_path: Path) -> None:
    cache = DirCache(tmp_path, CacheOptions(max_age=timedelta(hours=1)))
    cache.insert("k", b"v1")
    (tmp_path / "k" / MANIFEST_FILE_NAME).write_bytes(b"\x00not a manifest")

    assert cache.get("k") is None
    assert cache.get_or_insert_with("k", lambda: b"v2").value == b"v2"
    assert cache.get("k").value == b"v2"  # type: ignore[union-attr]


def test_linked_key_directory_cannot_alias_another_key(tmp_path: Path) -> None:
    """A directory symlink inside the cache gives no second name for an entry."""
    cache = DirCache(tmp_path)
    cache.insert("victim/data", b"secret")
    os.symlink(tmp_path / "victim", tmp_path / "alias", target_is_directory=True)

    with pytest.raises(CacheKeyError):
        cache.get("alias/data")
    with pytest.raises(CacheKeyError):
        cache.remove("alias/data")
    with pytest.raises(CacheKeyError):
        cache.insert("alias/data", b"clobbered")

    assert cache.get("victim/data").value == b"secret"  # type: ignore[union-attr]
