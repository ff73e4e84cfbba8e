"""Observability – span scoping bound to the current execution context.

OpenTelemetry keeps the active span in a :mod:`contextvars` context, so a
span attached here is visible to everything the current task awaits and to
nothing another task runs concurrently.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Iterator, Mapping

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, TracerProvider

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "mp_telemetry"


def get_tracer(tracer_provider: TracerProvider | None = None) -> trace.Tracer:
    from mp_telemetry import __version__

    return trace.get_tracer(INSTRUMENTATION_NAME, __version__, tracer_provider=tracer_provider)


def _status_is_unset(span: Span) -> bool:
    status = getattr(span, "status", None)
    return status is None or status.status_code is StatusCode.UNSET


def mark_ok(span: Span) -> None:
    try:
        if _status_is_unset(span):
            span.set_status(Status(StatusCode.OK))
    except Exception as exc:  # noqa: BLE001
        logger.debug("span.status_failed error=%s", exc)


def mark_error(span: Span, error: BaseException, description: str | None = None) -> None:
    """Record *error* on *span* and set ``ERROR``, once per span."""
    try:
        if not _status_is_unset(span):
            return
        if isinstance(error, asyncio.CancelledError):
            span.set_attribute("error.type", "cancelled")
            span.set_status(Status(StatusCode.ERROR, description or "cancelled"))
            return
        span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, description or str(error)))
    except Exception as exc:  # noqa: BLE001
        logger.debug("span.record_failed error=%s", exc)


def set_error_status(span: Span, description: str) -> None:
    """Mark *span* failed without an exception event (e.g. a 5xx response)."""
    try:
        if _status_is_unset(span):
            span.set_status(Status(StatusCode.ERROR, description))
    except Exception as exc:  # noqa: BLE001
        logger.debug("span.status_failed error=%s", exc)


def rename_span(span: Span, name: str) -> None:
    try:
        span.update_name(name)
    except Exception as exc:  # noqa: BLE001
        logger.debug("span.rename_failed error=%s", exc)


def set_attributes(span: Span, attributes: Mapping[str, Any]) -> None:
    for key, value in attributes.items():
        if value is None:
            continue
        try:
            span.set_attribute(key, value)
        except Exception as exc:  # noqa: BLE001
            logger.debug("span.attribute_failed key=%s error=%s", key, exc)


@contextlib.contextmanager
def bound_span(
    tracer: trace.Tracer,
    name: str,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Mapping[str, Any] | None = None,
    parent: Context | None = None,
) -> Iterator[Span]:
    """Start *name* under *parent* and make it the active span for the block.

    The span is detached and ended on every exit path, cancellation
    included.  An exception escaping the block is recorded and sets the
    status to ``ERROR`` unless the block already set a status itself.
    """
    clean = {k: v for k, v in (attributes or {}).items() if v is not None}
    span = tracer.start_span(name, context=parent, kind=kind, attributes=clean)
    token = otel_context.attach(trace.set_span_in_context(span, parent))
    try:
        yield span
    except BaseException as exc:
        mark_error(span, exc)
        raise
    finally:
        otel_context.detach(token)
        span.end()


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
