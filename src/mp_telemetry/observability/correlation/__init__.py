"""Observability – trace carrier codecs and active-context helpers."""
from mp_telemetry.observability.correlation.carrier import (
    PROPAGATION_KEYS,
    TRACE_FIELD,
    TRACEPARENT,
    TRACESTATE,
    Carrier,
    CarrierCodec,
)
from mp_telemetry.observability.correlation.codecs import (
    BrokerCarrierCodec,
    HttpCarrierCodec,
    SocketCarrierCodec,
    SocketHandshake,
    inject_trace_context,
)
from mp_telemetry.observability.correlation.context import (
    TraceIdentity,
    current_identity,
    current_span,
    current_span_id,
    current_trace_id,
    extract_context,
    has_active_trace,
    inject_current,
)

__all__ = [
    "BrokerCarrierCodec",
    "Carrier",
    "CarrierCodec",
    "HttpCarrierCodec",
    "PROPAGATION_KEYS",
    "SocketCarrierCodec",
    "SocketHandshake",
    "TRACEPARENT",
    "TRACESTATE",
    "TRACE_FIELD",
    "TraceIdentity",
    "current_identity",
    "current_span",
    "current_span_id",
    "current_trace_id",
    "extract_context",
    "has_active_trace",
    "inject_current",
    "inject_trace_context",
]
