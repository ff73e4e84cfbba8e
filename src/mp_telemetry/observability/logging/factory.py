"""Observability – JsonLoggerFactory."""
from __future__ import annotations

import logging
from typing import Any, Iterable

import structlog

from mp_telemetry.observability.logging.processors import RedactionProcessor, TraceContextProcessor


class JsonLoggerFactory:
    """Configure structlog and the stdlib root logger for JSON output.

    Every record gets the active trace identity, and sensitive keys are
    masked before rendering.
    """

    @staticmethod
    def configure(
        level: int = logging.INFO,
        sensitive_fields: Iterable[str] | None = None,
        service: str | None = None,
    ) -> None:
        shared_processors: list[Any] = [
            RedactionProcessor(sensitive_fields),
            structlog.contextvars.merge_contextvars,
            TraceContextProcessor(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
        ]
        if service:
            def _add_service(logger: Any, method: Any, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
                event_dict.setdefault("service", service)
                return event_dict

            shared_processors.append(_add_service)

        structlog.configure(
            processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)


__all__ = ["JsonLoggerFactory"]
