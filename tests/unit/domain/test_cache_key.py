# tests/unit/domain/test_cache_key.py
from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from dir_cache.domain.exceptions import CacheKeyError
from dir_cache.domain.value_objects.cache_key import MAX_SEGMENT_BYTES, CacheKey


@pytest.mark.parametrize(
    "raw",
    [
        "users/42",
        ["users", "42"],
        ("users", "42"),
        Path("users/42"),
        PurePosixPath("users") / "42",
    ],
)
def test_parse_accepts_equivalent_key_forms(raw: object) -> None:
    """String, sequence and path keys with the same components are equal."""
    key = CacheKey.parse(raw)  # type: ignore[arg-type]
    assert key.segments == ("users", "42")
    assert str(key) == "users/42"
    assert key.relative_path == PurePosixPath("users/42")


def test_parse_returns_existing_key_unchanged() -> None:
    key = CacheKey.parse("a")
    assert CacheKey.parse(key) is key


def test_parse_keeps_unicode_and_dots_inside_names() -> None:
    """Dots inside a name and non-ASCII text are ordinary characters."""
    key = CacheKey.parse("api.example.com/v1/répertoire/file.json")
    assert key.segments == ("api.example.com", "v1", "répertoire", "file.json")


def test_longest_allowed_segment_is_accepted() -> None:
    key = CacheKey.parse(["x" * MAX_SEGMENT_BYTES])
    assert len(key.segments[0]) == MAX_SEGMENT_BYTES


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "/etc/passwd",
        "../etc/passwd",
        "users/../../etc",
        "a/./b",
        "./a",
        "a//b",
        "a/",
        "a\\b",
        "C:/windows",
        "nul\x00byte",
        "x" * (MAX_SEGMENT_BYTES + 1),
        "é" * 128,
        "dir-cache-generation-0",
        "users/dir-cache-generation-manifest.txt",
        [],
        [""],
        ["."],
        [".."],
        ["..", "etc", "passwd"],
        ["a/b"],
        ["users", 42],
        Path("/etc/passwd"),
        b"users/42",
        42,
        None,
    ],
)
def test_parse_rejects_unsafe_keys(raw: object) -> None:
    """Unsafe keys are rejected with a structured error, never normalised."""
    with pytest.raises(CacheKeyError) as ei:
        CacheKey.parse(raw)  # type: ignore[arg-type]
    assert ei.value.code == "UNSAFE_KEY"
    assert "reason" in ei.value.details


def test_direct_construction_validates_segments() -> None:
    with pytest.raises(CacheKeyError):
        CacheKey(("ok", ".."))
    with pytest.raises(CacheKeyError):
        CacheKey(())
