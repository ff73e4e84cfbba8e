"""Observability – correlation, logging, metrics, tracing, error classification."""

from mp_telemetry.observability.correlation import (
    TraceIdentity,
    current_identity,
    current_trace_id,
    extract_context,
    inject_current,
    inject_trace_context,
)
from mp_telemetry.observability.errors import ErrorClassifier, ErrorKind, ErrorObserver, OriginContext
from mp_telemetry.observability.facade import Observability
from mp_telemetry.observability.logging import (
    LogLevel,
    LogPipeline,
    StructuredLogger,
    create_logger,
)
from mp_telemetry.observability.metrics import Metrics, NoopMetrics, TelemetryMetrics
from mp_telemetry.observability.redaction import SensitiveDataMasker, truncate_body
from mp_telemetry.observability.tracing import bound_span, get_tracer

__all__ = [
    "ErrorClassifier",
    "ErrorKind",
    "ErrorObserver",
    "LogLevel",
    "LogPipeline",
    "Metrics",
    "NoopMetrics",
    "Observability",
    "OriginContext",
    "SensitiveDataMasker",
    "StructuredLogger",
    "TelemetryMetrics",
    "TraceIdentity",
    "bound_span",
    "create_logger",
    "current_identity",
    "current_trace_id",
    "extract_context",
    "get_tracer",
    "inject_current",
    "inject_trace_context",
    "truncate_body",
]
