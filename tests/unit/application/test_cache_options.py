# tests/unit/application/test_cache_options.py
from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from dir_cache import CacheOptions, CompressionKind


def test_defaults() -> None:
    options = CacheOptions()
    assert options.max_age is None
    assert options.max_age_ns is None
    assert options.generations_enabled is False
    assert options.max_generations == 1
    assert options.compression is None


def test_max_age_ns_keeps_sub_second_precision() -> None:
    options = CacheOptions(max_age=timedelta(days=1, seconds=2, microseconds=3))
    assert options.max_age_ns == (86_400 + 2) * 1_000_000_000 + 3_000


def test_compression_accepts_string_values() -> None:
    assert CacheOptions(compression="gzip").compression is CompressionKind.GZIP


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_age": timedelta(0)},
        {"max_age": timedelta(seconds=-1)},
        {"max_generations": 0},
        {"compression": "brotli"},
        {"max_generation": 2},
    ],
)
def test_invalid_options_are_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        CacheOptions(**kwargs)


def test_options_are_frozen() -> None:
    options = CacheOptions()
    with pytest.raises(ValidationError):
        options.max_generations = 3  # type: ignore[misc]
