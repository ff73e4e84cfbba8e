"""Observability – TelemetryMetrics, the four fixed metric families.

=============================================  ===========================================
Family                                         Labels
=============================================  ===========================================
``http_requests_total`` / ``_errors_total``    ``method``, ``route``, ``status_code``
``rabbitmq_messages_total`` / ``_errors_...``  ``exchange``, ``routing_key``, ``operation``
``websocket_events_total`` / ``_errors_...``   ``event``
``errors_total``                               ``error_type``, ``context``, ``error_code``
=============================================  ===========================================

Each family except errors also has a duration histogram in seconds.  A
failed request/message/event increments the family's errors counter with
the same labels as the total.  Recording is best-effort: an instrument
failure is logged at debug level and never reaches the caller.
"""
from __future__ import annotations

import logging
from typing import Any

from mp_telemetry.observability.metrics.normalization import (
    MAX_LABEL_LENGTH,
    normalize_route,
    normalize_routing_key,
)
from mp_telemetry.observability.metrics.ports import Counter, Histogram, Metrics

logger = logging.getLogger(__name__)

HTTP_REQUESTS_TOTAL = "http_requests_total"
HTTP_ERRORS_TOTAL = "http_errors_total"
HTTP_REQUEST_DURATION = "http_request_duration_seconds"
BROKER_MESSAGES_TOTAL = "rabbitmq_messages_total"
BROKER_ERRORS_TOTAL = "rabbitmq_errors_total"
BROKER_PROCESSING_DURATION = "rabbitmq_processing_duration_seconds"
SOCKET_EVENTS_TOTAL = "websocket_events_total"
SOCKET_ERRORS_TOTAL = "websocket_errors_total"
SOCKET_EVENT_DURATION = "websocket_event_duration_seconds"
ERRORS_TOTAL = "errors_total"

BROKER_OPERATIONS = ("publish", "consume")


def _label(value: Any) -> str:
    return str(value)[:MAX_LABEL_LENGTH]


class TelemetryMetrics:
    """Records request, broker, socket and error events on a :class:`Metrics` backend."""

    def __init__(self, metrics: Metrics) -> None:
        self._metrics = metrics
        self._http_requests = metrics.counter(HTTP_REQUESTS_TOTAL, "Total number of HTTP requests")
        self._http_errors = metrics.counter(HTTP_ERRORS_TOTAL, "Total number of failed HTTP requests")
        self._http_duration = metrics.histogram(
            HTTP_REQUEST_DURATION, "HTTP request duration in seconds", unit="s"
        )
        self._broker_messages = metrics.counter(
            BROKER_MESSAGES_TOTAL, "Total number of RabbitMQ messages processed"
        )
        self._broker_errors = metrics.counter(
            BROKER_ERRORS_TOTAL, "Total number of failed RabbitMQ messages"
        )
        self._broker_duration = metrics.histogram(
            BROKER_PROCESSING_DURATION, "RabbitMQ message processing duration in seconds", unit="s"
        )
        self._socket_events = metrics.counter(SOCKET_EVENTS_TOTAL, "Total number of WebSocket events")
        self._socket_errors = metrics.counter(
            SOCKET_ERRORS_TOTAL, "Total number of failed WebSocket events"
        )
        self._socket_duration = metrics.histogram(
            SOCKET_EVENT_DURATION, "WebSocket event handling duration in seconds", unit="s"
        )
        self._errors = metrics.counter(ERRORS_TOTAL, "Total number of errors by type and context")

    @property
    def backend(self) -> Metrics:
        return self._metrics

    def record_request(
        self,
        method: str,
        route: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        labels = {
            "method": _label(method.upper()),
            "route": normalize_route(route),
            "status_code": _label(status_code),
        }
        self._record(
            self._http_requests, self._http_errors, self._http_duration,
            labels, success=status_code < 400, duration_ms=duration_ms,
        )

    def record_broker_message(
        self,
        exchange: str,
        routing_key: str,
        operation: str,
        success: bool,
        duration_ms: float | None = None,
    ) -> None:
        labels = {
            "exchange": _label(exchange),
            "routing_key": normalize_routing_key(routing_key),
            "operation": _label(operation),
        }
        self._record(
            self._broker_messages, self._broker_errors, self._broker_duration,
            labels, success=success, duration_ms=duration_ms,
        )

    def record_socket_event(
        self,
        event: str,
        success: bool,
        duration_ms: float | None = None,
    ) -> None:
        self._record(
            self._socket_events, self._socket_errors, self._socket_duration,
            {"event": _label(event)}, success=success, duration_ms=duration_ms,
        )

    def record_error(self, error_type: str, context: str, code: str | None = None) -> None:
        labels = {
            "error_type": _label(error_type),
            "context": _label(context),
            "error_code": _label(code if code is not None else "unknown"),
        }
        try:
            self._errors.add(1, labels)
        except Exception as exc:  # noqa: BLE001
            logger.debug("metrics.record_failed name=%s error=%s", ERRORS_TOTAL, exc)

    def create_counter(self, name: str, description: str = "") -> Counter:
        return self._metrics.counter(name, description)

    def create_histogram(self, name: str, description: str = "", unit: str = "s") -> Histogram:
        return self._metrics.histogram(name, description, unit=unit)

    @staticmethod
    def _record(
        total: Counter,
        errors: Counter,
        duration: Histogram,
        labels: dict[str, str],
        *,
        success: bool,
        duration_ms: float | None,
    ) -> None:
        try:
            total.add(1, labels)
            if not success:
                errors.add(1, labels)
            if duration_ms is not None:
                duration.record(duration_ms / 1000.0, labels)
        except Exception as exc:  # noqa: BLE001
            logger.debug("metrics.record_failed labels=%s error=%s", labels, exc)


__all__ = [
    "BROKER_ERRORS_TOTAL",
    "BROKER_MESSAGES_TOTAL",
    "BROKER_OPERATIONS",
    "BROKER_PROCESSING_DURATION",
    "ERRORS_TOTAL",
    "HTTP_ERRORS_TOTAL",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "SOCKET_ERRORS_TOTAL",
    "SOCKET_EVENTS_TOTAL",
    "SOCKET_EVENT_DURATION",
    "TelemetryMetrics",
]
