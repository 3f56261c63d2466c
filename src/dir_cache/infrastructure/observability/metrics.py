# src/dir_cache/infrastructure/observability/metrics.py
# Copyright (c) dir-cache.
# SPDX-License-Identifier: MIT
"""Prometheus metrics for cache operations (registry-aware, reload safe).

Collectors are created lazily against the **current**
``prometheus_client.REGISTRY`` and cached per registry, so tests that swap
the default registry never hit duplicate-registration errors.

Exports
-------
* ``dir_cache_operations_total{operation,outcome}`` (Counter)
* ``dir_cache_operation_duration_seconds{operation}`` (Histogram)
* ``dir_cache_rotations_total{compressed}`` (Counter)
* ``dir_cache_generations_pruned_total`` (Counter)

Helpers:

* :func:`observe_cache_operation`: context manager for one engine call.
* ``get_*`` accessors returning the underlying collectors.

Example:
    with observe_cache_operation("get") as obs:
        obs.outcome = "hit"
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field
from time import perf_counter
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

__all__ = [
    "CacheObservation",
    "get_cache_generations_pruned_total",
    "get_cache_operation_duration_seconds",
    "get_cache_operations_total",
    "get_cache_rotations_total",
    "observe_cache_operation",
]

_log = logging.getLogger(__name__)

# Disk-bound, small payloads: sub-millisecond to a few seconds.
_BUCKETS: Final[tuple[float, ...]] = (
    0.0005,
    0.001,
    0.0025,
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
)

_registry_id: int | None = None
_collectors: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()


# ---------------------------------------------------------------------------
# Registry-handling primitives


def _ensure_registry() -> None:
    """Reset the collector cache if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _collectors.clear()
            _registry_id = rid


def _lookup_existing(
    name: str, kind: type[Counter] | type[Histogram]
) -> Counter | Histogram | None:
    """Return a collector already registered under ``name`` in the active registry."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(
    kind: type[Counter] | type[Histogram],
    name: str,
    help_text: str,
    labelnames: tuple[str, ...] = (),
) -> Counter | Histogram:
    """Get or create a registry-bound collector with stable identity.

    1. Return from module cache if present for the active registry.
    2. If the registry already has a collector by this name, reuse it.
    3. Otherwise, register a new collector on the active registry.

    Args:
        kind: ``Counter`` or ``Histogram``.
        name: Metric name (snake_case, without ``_total`` for counters).
        help_text: Human-readable description.
        labelnames: Label names.

    Returns:
        The collector bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _collectors.get(name)
        if isinstance(cached, kind):
            return cached

        existing = _lookup_existing(name, kind)
        if existing is not None:
            _collectors[name] = existing
            return existing

        kwargs: dict[str, object] = {"registry": prom.REGISTRY}
        if kind is Histogram:
            kwargs["buckets"] = _BUCKETS
        try:
            col = kind(name, help_text, labelnames, **kwargs)
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, kind)
                if again is not None:
                    _collectors[name] = again
                    return again
            _log.exception("Failed to register Prometheus collector %s", name)
            raise
        _collectors[name] = col
        return col


# ---------------------------------------------------------------------------
# Accessors


def get_cache_operations_total() -> Counter:
    """Return the per-operation outcome counter."""
    col = _get_or_create(
        Counter,
        "dir_cache_operations",
        "Cache engine calls by operation and outcome.",
        ("operation", "outcome"),
    )
    assert isinstance(col, Counter)
    return col


def get_cache_operation_duration_seconds() -> Histogram:
    """Return the per-operation latency histogram."""
    col = _get_or_create(
        Histogram,
        "dir_cache_operation_duration_seconds",
        "Wall time of cache engine calls (seconds).",
        ("operation",),
    )
    assert isinstance(col, Histogram)
    return col


def get_cache_rotations_total() -> Counter:
    """Return the generation-rotation counter."""
    col = _get_or_create(
        Counter,
        "dir_cache_rotations",
        "Generation rotations performed on insert.",
        ("compressed",),
    )
    assert isinstance(col, Counter)
    return col


def get_cache_generations_pruned_total() -> Counter:
    """Return the counter of history files deleted by rotation or cleanup."""
    col = _get_or_create(
        Counter,
        "dir_cache_generations_pruned",
        "History generation files deleted by rotation or policy cleanup.",
    )
    assert isinstance(col, Counter)
    return col


# ---------------------------------------------------------------------------
# Observation context manager


@dataclass
class CacheObservation:
    """State captured while observing one engine call.

    Attributes:
        operation: Engine operation name (``get``, ``insert``, ...).
        outcome: ``hit``, ``miss``, ``expired``, ``ok`` or ``error``.
        start: Monotonic start time in seconds.
    """

    operation: str
    outcome: str = "ok"
    start: float = field(default_factory=perf_counter)


@contextmanager
def observe_cache_operation(operation: str) -> Generator[CacheObservation, None, None]:
    """Record latency and outcome of one cache operation.

    The outcome defaults to ``ok``; callers set ``hit``/``miss``/``expired``
    on the yielded observation. An exception escaping the block records
    ``error`` and is re-raised. Metric failures never mask the operation.

    Args:
        operation: Engine operation name.

    Yields:
        A mutable :class:`CacheObservation`.
    """
    obs = CacheObservation(operation=operation)
    try:
        yield obs
    except BaseException:
        obs.outcome = "error"
        raise
    finally:
        elapsed = perf_counter() - obs.start
        with suppress(Exception):
            get_cache_operation_duration_seconds().labels(operation=obs.operation).observe(elapsed)
            get_cache_operations_total().labels(
                operation=obs.operation, outcome=obs.outcome
            ).inc()
