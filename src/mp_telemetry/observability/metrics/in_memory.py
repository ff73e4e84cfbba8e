"""Observability – InMemoryMetrics.

Process-local registry keyed by instrument name and label set.  Updates are
lock-protected so concurrent increments are never lost.  Used by the test
suite and handy for inspecting what a service would export.
"""
from __future__ import annotations

import threading
from typing import Iterable

from mp_telemetry.observability.metrics.ports import Counter, Histogram, Metrics

LabelKey = tuple[tuple[str, str], ...]


def _label_key(labels: dict[str, str] | None) -> LabelKey:
    return tuple(sorted((labels or {}).items()))


class _InMemoryCounter(Counter):
    def __init__(self, name: str, lock: threading.Lock) -> None:
        self.name = name
        self._lock = lock
        self._series: dict[LabelKey, float] = {}

    def add(self, value: float = 1.0, labels: dict[str, str] | None = None) -> None:
        key = _label_key(labels)
        with self._lock:
            self._series[key] = self._series.get(key, 0.0) + value

    def value(self, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            return self._series.get(_label_key(labels), 0.0)

    @property
    def total(self) -> float:
        with self._lock:
            return sum(self._series.values())

    def series(self) -> dict[LabelKey, float]:
        with self._lock:
            return dict(self._series)


class _InMemoryHistogram(Histogram):
    def __init__(self, name: str, unit: str, lock: threading.Lock) -> None:
        self.name = name
        self.unit = unit
        self._lock = lock
        self._series: dict[LabelKey, list[float]] = {}

    def record(self, value: float, labels: dict[str, str] | None = None) -> None:
        key = _label_key(labels)
        with self._lock:
            self._series.setdefault(key, []).append(value)

    def values(self, labels: dict[str, str] | None = None) -> list[float]:
        with self._lock:
            return list(self._series.get(_label_key(labels), []))

    def series(self) -> dict[LabelKey, list[float]]:
        with self._lock:
            return {k: list(v) for k, v in self._series.items()}


class InMemoryMetrics(Metrics):
    """In-memory :class:`Metrics` backend with lookup helpers.

    Usage::

        metrics = InMemoryMetrics()
        metrics.counter("http_requests_total").add(1, {"method": "GET"})
        assert metrics.counter_value("http_requests_total", method="GET") == 1
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, _InMemoryCounter] = {}
        self._histograms: dict[str, _InMemoryHistogram] = {}

    def counter(self, name: str, description: str = "", unit: str = "") -> _InMemoryCounter:
        with self._lock:
            if name not in self._counters:
                self._counters[name] = _InMemoryCounter(name, threading.Lock())
            return self._counters[name]

    def histogram(self, name: str, description: str = "", unit: str = "s") -> _InMemoryHistogram:
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = _InMemoryHistogram(name, unit, threading.Lock())
            return self._histograms[name]

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def counter_value(self, name: str, **labels: str) -> float:
        counter = self._counters.get(name)
        return counter.value(labels) if counter is not None else 0.0

    def counter_total(self, name: str) -> float:
        counter = self._counters.get(name)
        return counter.total if counter is not None else 0.0

    def histogram_values(self, name: str, **labels: str) -> list[float]:
        histogram = self._histograms.get(name)
        return histogram.values(labels) if histogram is not None else []

    def names(self) -> Iterable[str]:
        return sorted({*self._counters, *self._histograms})

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


__all__ = ["InMemoryMetrics"]
