"""Observability – structlog processors and get_logger helper.

``TraceContextProcessor`` injects the active span's ``trace_id``/``span_id``
into structlog event dicts; ``RedactionProcessor`` masks sensitive keys.
Together they give hosts that log through structlog the same correlation
and redaction as :class:`~mp_telemetry.observability.logging.StructuredLogger`.
"""
from __future__ import annotations

from typing import Any, Iterable

import structlog

from mp_telemetry.observability.correlation.context import current_identity
from mp_telemetry.observability.redaction import SensitiveDataMasker


class TraceContextProcessor:
    """structlog processor adding the active trace identity.

    Usage::

        structlog.configure(processors=[TraceContextProcessor(), ...])
    """

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        identity = current_identity()
        if identity is not None:
            event_dict.setdefault("trace_id", identity.trace_id)
            event_dict.setdefault("span_id", identity.span_id)
        return event_dict


class RedactionProcessor:
    """structlog processor masking sensitive keys at any depth."""

    def __init__(self, sensitive_fields: Iterable[str] | None = None) -> None:
        self._masker = SensitiveDataMasker(sensitive_fields)

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event = event_dict.pop("event", None)
        masked = self._masker.mask(event_dict)
        if not isinstance(masked, dict):
            masked = {"meta": masked}
        if event is not None:
            masked["event"] = event
        return masked


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["RedactionProcessor", "TraceContextProcessor", "get_logger"]
