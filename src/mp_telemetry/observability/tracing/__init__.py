"""Observability – span scoping helpers over the OpenTelemetry API."""
from mp_telemetry.observability.tracing.scope import (
    INSTRUMENTATION_NAME,
    bound_span,
    get_tracer,
    mark_error,
    mark_ok,
    rename_span,
    set_attributes,
    set_error_status,
)

__all__ = [
    "INSTRUMENTATION_NAME",
    "bound_span",
    "get_tracer",
    "mark_error",
    "mark_ok",
    "rename_span",
    "set_attributes",
    "set_error_status",
]
