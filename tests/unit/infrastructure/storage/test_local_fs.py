# tests/unit/infrastructure/storage/test_local_fs.py
from __future__ import annotations

import os
from pathlib import Path

import pytest

from dir_cache.domain.exceptions import StoreError
from dir_cache.infrastructure.storage.local_fs import LocalFileStorage


@pytest.fixture
def storage() -> LocalFileStorage:
    return LocalFileStorage()


def test_write_then_read_round_trips_bytes(storage: LocalFileStorage, tmp_path: Path) -> None:
    target = tmp_path / "f"
    storage.write(target, b"\x00\x01payload")
    assert storage.read(target) == b"\x00\x01payload"

    storage.write(target, b"short")
    assert storage.read(target) == b"short"


def test_read_missing_file_is_none(storage: LocalFileStorage, tmp_path: Path) -> None:
    assert storage.read(tmp_path / "missing") is None


def test_write_refuses_to_follow_symlink(storage: LocalFileStorage, tmp_path: Path) -> None:
    """A symlink planted at a cache file name must not redirect the write."""
    victim = tmp_path / "victim"
    victim.write_bytes(b"original")
    os.symlink(victim, tmp_path / "link")

    with pytest.raises(StoreError) as ei:
        storage.write(tmp_path / "link", b"overwritten")
    assert ei.value.code == "STORE_IO"
    assert ei.value.details["op"] == "write"
    assert victim.read_bytes() == b"original"


def test_write_into_missing_directory_raises(storage: LocalFileStorage, tmp_path: Path) -> None:
    with pytest.raises(StoreError):
        storage.write(tmp_path / "nope" / "f", b"x")


def test_remove_reports_whether_file_existed(storage: LocalFileStorage, tmp_path: Path) -> None:
    target = tmp_path / "f"
    target.write_bytes(b"x")
    assert storage.remove(target) is True
    assert storage.remove(target) is False
    assert not target.exists()


def test_rename_replaces_target(storage: LocalFileStorage, tmp_path: Path) -> None:
    src, dst = tmp_path / "a", tmp_path / "b"
    src.write_bytes(b"new")
    dst.write_bytes(b"old")
    storage.rename(src, dst)
    assert not src.exists()
    assert dst.read_bytes() == b"new"


def test_rename_missing_source_raises(storage: LocalFileStorage, tmp_path: Path) -> None:
    with pytest.raises(StoreError) as ei:
        storage.rename(tmp_path / "a", tmp_path / "b")
    assert ei.value.details["op"] == "rename"


def test_exists_and_is_dir_ignore_symlinks(storage: LocalFileStorage, tmp_path: Path) -> None:
    (tmp_path / "file").write_bytes(b"x")
    (tmp_path / "dir").mkdir()
    os.symlink(tmp_path / "file", tmp_path / "file-link")
    os.symlink(tmp_path / "dir", tmp_path / "dir-link")

    assert storage.exists(tmp_path / "file")
    assert not storage.exists(tmp_path / "file-link")
    assert not storage.exists(tmp_path / "dir")
    assert storage.is_dir(tmp_path / "dir")
    assert not storage.is_dir(tmp_path / "dir-link")


def test_remove_dir_if_empty(storage: LocalFileStorage, tmp_path: Path) -> None:
    full = tmp_path / "full"
    full.mkdir()
    (full / "keep.txt").write_bytes(b"x")
    empty = tmp_path / "empty"
    empty.mkdir()

    assert storage.remove_dir_if_empty(full) is False
    assert full.is_dir()
    assert storage.remove_dir_if_empty(empty) is True
    assert not empty.exists()
    assert storage.remove_dir_if_empty(empty) is False


def test_create_dir_is_idempotent(storage: LocalFileStorage, tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    storage.create_dir(target)
    storage.create_dir(target)
    assert target.is_dir()


def test_create_dir_over_file_raises(storage: LocalFileStorage, tmp_path: Path) -> None:
    (tmp_path / "f").write_bytes(b"x")
    with pytest.raises(StoreError):
        storage.create_dir(tmp_path / "f")


def test_iter_dirs_lists_sorted_subdirectories(storage: LocalFileStorage, tmp_path: Path) -> None:
    for name in ("b", "a", "c"):
        (tmp_path / name).mkdir()
    (tmp_path / "file").write_bytes(b"x")
    os.symlink(tmp_path / "a", tmp_path / "link")

    assert list(storage.iter_dirs(tmp_path)) == [tmp_path / "a", tmp_path / "b", tmp_path / "c"]
    assert list(storage.iter_dirs(tmp_path / "missing")) == []
