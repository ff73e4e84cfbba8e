"""Observability – ErrorObserver.

Feeds one classified failure into all three signals: the active span gets
an exception event, ``ERROR`` status and ``error.*`` attributes, the metric
aggregator gets an ``errors_total`` increment, and the log pipeline gets an
error entry.  Observation never raises and never changes the failure; the
caller re-raises it.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from opentelemetry import trace
from opentelemetry.trace import Span

from mp_telemetry.observability.errors.classifier import ErrorClassifier
from mp_telemetry.observability.errors.taxonomy import ClassifiedError, ErrorKind, OriginContext
from mp_telemetry.observability.logging.logger import StructuredLogger
from mp_telemetry.observability.metrics.aggregator import TelemetryMetrics
from mp_telemetry.observability.tracing.scope import mark_error, set_attributes

logger = logging.getLogger(__name__)


class ErrorObserver:
    def __init__(
        self,
        log: StructuredLogger,
        metrics: TelemetryMetrics | None = None,
        classifier: ErrorClassifier | None = None,
    ) -> None:
        self._log = log
        self._metrics = metrics
        self._classifier = classifier or ErrorClassifier()

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    def observe(
        self,
        error: Any,
        origin: OriginContext | str = OriginContext.OTHER,
        context_info: Mapping[str, Any] | None = None,
        description: str | None = None,
        span: Span | None = None,
    ) -> ClassifiedError | None:
        try:
            origin = OriginContext(origin)
        except ValueError:
            origin = OriginContext.OTHER
        try:
            classified = self._classifier.extract(error)
        except Exception as exc:  # noqa: BLE001
            logger.debug("error_observer.classify_failed error=%s", exc)
            return None

        self._annotate_span(span or trace.get_current_span(), error, classified)
        if self._metrics is not None:
            self._metrics.record_error(classified.kind.value, origin.value, classified.code)
        self._write_log(classified, origin, context_info, description)
        return classified

    @staticmethod
    def _annotate_span(span: Span, error: Any, classified: ClassifiedError) -> None:
        if isinstance(error, BaseException):
            mark_error(span, error, classified.message)
        attributes: dict[str, Any] = {"error.type": classified.kind.value}
        if classified.kind is ErrorKind.HTTP_CLIENT_ERROR:
            http = classified.detail.get("http", {})
            attributes["http.status_code"] = http.get("status_code")
            attributes["http.method"] = http.get("method")
        elif classified.kind.is_database and classified.code is not None:
            attributes["db.error_code"] = classified.code
        elif classified.code is not None:
            attributes["error.code"] = classified.code
        set_attributes(span, attributes)

    def _write_log(
        self,
        classified: ClassifiedError,
        origin: OriginContext,
        context_info: Mapping[str, Any] | None,
        description: str | None,
    ) -> None:
        meta = classified.to_log_fields()
        meta["origin"] = origin.value
        if context_info:
            meta["origin_context"] = dict(context_info)
        message = f"Error in {description}" if description else f"Error in {origin.value}"
        try:
            self._log.error(message, **meta)
        except Exception as exc:  # noqa: BLE001
            logger.debug("error_observer.log_failed error=%s", exc)


__all__ = ["ErrorObserver"]
