# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import prometheus_client as prom
import pytest
from prometheus_client.registry import CollectorRegistry

from dir_cache import CacheOptions, DirCache

START_NS = 1_700_000_000 * 1_000_000_000


class FakeClock:
    """Deterministic unix-nanosecond clock."""

    def __init__(self, start_ns: int = START_NS) -> None:
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += int(seconds * 1_000_000_000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Base directory of the cache under test (not created yet)."""
    return tmp_path / "cache"


@pytest.fixture
def make_cache(cache_dir: Path, clock: FakeClock) -> Callable[..., DirCache]:
    """Factory building a DirCache over ``cache_dir`` with the fake clock."""

    def _make(**options: Any) -> DirCache:
        return DirCache(cache_dir, CacheOptions(**options), clock=clock)

    return _make


@pytest.fixture
def fresh_registry(monkeypatch: pytest.MonkeyPatch) -> Iterator[CollectorRegistry]:
    """Swap the default Prometheus registry for an empty one."""
    registry = CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", registry)
    yield registry
