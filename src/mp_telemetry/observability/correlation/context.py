"""Observability – TraceIdentity and active-context helpers."""
from __future__ import annotations

import dataclasses

from opentelemetry import propagate, trace
from opentelemetry.context import Context
from opentelemetry.trace import Span

from mp_telemetry.observability.correlation.carrier import Carrier


@dataclasses.dataclass(frozen=True)
class TraceIdentity:
    """Read-only view of the active span's identity."""

    trace_id: str
    span_id: str
    sampled: bool

    @classmethod
    def from_span(cls, span: Span) -> "TraceIdentity | None":
        ctx = span.get_span_context()
        if not ctx.is_valid:
            return None
        return cls(
            trace_id=format(ctx.trace_id, "032x"),
            span_id=format(ctx.span_id, "016x"),
            sampled=ctx.trace_flags.sampled,
        )


def current_span() -> Span:
    return trace.get_current_span()


def current_identity() -> TraceIdentity | None:
    return TraceIdentity.from_span(trace.get_current_span())


def current_trace_id() -> str | None:
    identity = current_identity()
    return identity.trace_id if identity else None


def current_span_id() -> str | None:
    identity = current_identity()
    return identity.span_id if identity else None


def has_active_trace() -> bool:
    return current_identity() is not None


def extract_context(carrier: Carrier, context: Context | None = None) -> Context:
    """Parent context described by *carrier* (the current one if it holds none)."""
    return propagate.extract(carrier, context=context)


def inject_current(carrier: Carrier | None = None, context: Context | None = None) -> Carrier:
    """Write the active (or given) context into *carrier* and return it."""
    target: Carrier = {} if carrier is None else carrier
    propagate.inject(target, context=context)
    return target


__all__ = [
    "TraceIdentity",
    "current_identity",
    "current_span",
    "current_span_id",
    "current_trace_id",
    "extract_context",
    "has_active_trace",
    "inject_current",
]
