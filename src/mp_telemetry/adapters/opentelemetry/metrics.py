"""OpenTelemetry adapter – OtelMetrics."""
from __future__ import annotations

import threading
from typing import Any

from opentelemetry import metrics
from opentelemetry.metrics import MeterProvider

from mp_telemetry.observability.metrics import Counter, Histogram, Metrics


class _OtelCounter(Counter):
    def __init__(self, counter: Any) -> None:
        self._c = counter

    def add(self, value: float = 1.0, labels: dict[str, str] | None = None) -> None:
        self._c.add(value, attributes=labels)


class _OtelHistogram(Histogram):
    def __init__(self, hist: Any) -> None:
        self._h = hist

    def record(self, value: float, labels: dict[str, str] | None = None) -> None:
        self._h.record(value, attributes=labels)


class OtelMetrics(Metrics):
    """OpenTelemetry metrics adapter.

    Instruments are created once per name and reused, so the aggregator and
    caller-defined metrics share one meter.
    """

    def __init__(
        self,
        meter_name: str = "mp_telemetry",
        meter_provider: MeterProvider | None = None,
    ) -> None:
        self._meter = metrics.get_meter(meter_name, meter_provider=meter_provider)
        self._counters: dict[str, _OtelCounter] = {}
        self._histograms: dict[str, _OtelHistogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, description: str = "", unit: str = "") -> Counter:
        with self._lock:
            if name not in self._counters:
                self._counters[name] = _OtelCounter(
                    self._meter.create_counter(name, description=description, unit=unit)
                )
            return self._counters[name]

    def histogram(self, name: str, description: str = "", unit: str = "s") -> Histogram:
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = _OtelHistogram(
                    self._meter.create_histogram(name, description=description, unit=unit)
                )
            return self._histograms[name]


__all__ = ["OtelMetrics"]
