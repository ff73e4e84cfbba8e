"""Observability – metrics ports, backends and the telemetry aggregator."""
from mp_telemetry.observability.metrics.ports import Counter, Histogram, Metrics
from mp_telemetry.observability.metrics.noop import NoopMetrics
from mp_telemetry.observability.metrics.in_memory import InMemoryMetrics
from mp_telemetry.observability.metrics.normalization import (
    MAX_LABEL_LENGTH,
    normalize_route,
    normalize_routing_key,
)
from mp_telemetry.observability.metrics.aggregator import TelemetryMetrics

__all__ = [
    "Counter",
    "Histogram",
    "InMemoryMetrics",
    "MAX_LABEL_LENGTH",
    "Metrics",
    "NoopMetrics",
    "TelemetryMetrics",
    "normalize_route",
    "normalize_routing_key",
]
