"""Observability – Observability facade.

Assembles the log pipeline, metric aggregator, error observer and the
per-transport hooks from :class:`TelemetrySettings`, honouring the enable
flags: a disabled transport gets a pass-through hook.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from opentelemetry.trace import TracerProvider

from mp_telemetry.config.settings.telemetry import TelemetrySettings
from mp_telemetry.observability.errors import ErrorClassifier, ErrorObserver
from mp_telemetry.observability.logging import (
    ConsoleLogSink,
    LogPipeline,
    LogSink,
    OtlpLogSink,
    StructuredLogger,
)
from mp_telemetry.observability.metrics import Metrics, NoopMetrics, TelemetryMetrics

if TYPE_CHECKING:
    from mp_telemetry.adapters.opentelemetry.bootstrap import TelemetryRuntime
    from mp_telemetry.adapters.rabbitmq import RabbitMQConsumerHook, RabbitMQPublishInstrumentor
    from mp_telemetry.adapters.socketio import SocketIOTraceHook

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Observability:
    """Entry point for a service: one instance per process."""

    def __init__(
        self,
        settings: TelemetrySettings,
        pipeline: LogPipeline,
        metrics: TelemetryMetrics,
        tracer_provider: TracerProvider | None = None,
    ) -> None:
        self.settings = settings
        self.pipeline = pipeline
        self.metrics = metrics
        self.tracer_provider = tracer_provider
        self.classifier = ErrorClassifier(settings.sensitive_fields, settings.max_body_log_size)
        self.observer = ErrorObserver(self.logger("ErrorObserver"), metrics, self.classifier)
        self._publisher: RabbitMQPublishInstrumentor | None = None

    @classmethod
    def from_settings(
        cls,
        settings: TelemetrySettings,
        metrics: Metrics | None = None,
        remote_sink: LogSink | None = None,
        console: ConsoleLogSink | None = None,
        tracer_provider: TracerProvider | None = None,
    ) -> "Observability":
        if settings.enable_otlp_logs and remote_sink is None:
            remote_sink = OtlpLogSink()
        pipeline = LogPipeline.from_settings(settings, remote=remote_sink, console=console)
        return cls(settings, pipeline, cls._metrics_for(settings, metrics), tracer_provider)

    @classmethod
    def from_runtime(cls, runtime: "TelemetryRuntime") -> "Observability":
        from mp_telemetry.adapters.opentelemetry.metrics import OtelMetrics

        backend = OtelMetrics(meter_provider=runtime.meter_provider) if runtime.meter_provider else None
        return cls(
            runtime.settings,
            runtime.pipeline,
            cls._metrics_for(runtime.settings, backend),
            runtime.tracer_provider,
        )

    @staticmethod
    def _metrics_for(settings: TelemetrySettings, backend: Metrics | None) -> TelemetryMetrics:
        if not settings.enable_metrics:
            return TelemetryMetrics(NoopMetrics())
        if backend is None:
            from mp_telemetry.adapters.opentelemetry.metrics import OtelMetrics

            backend = OtelMetrics()
        return TelemetryMetrics(backend)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def logger(self, context: str | None = None) -> StructuredLogger:
        return StructuredLogger(self.pipeline, context)

    def reset_log_sink(self) -> None:
        """Operator action: try the remote log sink again."""
        self.pipeline.reset_remote()

    def mark_log_sink_unavailable(self, reason: str | None = None) -> None:
        self.pipeline.mark_remote_unavailable(reason)

    # ------------------------------------------------------------------
    # Transports
    # ------------------------------------------------------------------

    def instrument_fastapi(self, app: Any) -> bool:
        if not self.settings.enable_http:
            return False
        from mp_telemetry.adapters.fastapi import FastAPITraceMiddleware

        app.add_middleware(
            FastAPITraceMiddleware,
            metrics=self.metrics,
            observer=self.observer,
            service_name=self.settings.service_name,
            tracer_provider=self.tracer_provider,
        )
        return True

    def rabbitmq_consumer(self) -> "RabbitMQConsumerHook | None":
        if not self.settings.enable_broker:
            return None
        from mp_telemetry.adapters.rabbitmq import RabbitMQConsumerHook

        return RabbitMQConsumerHook(
            metrics=self.metrics,
            observer=self.observer,
            tracer_provider=self.tracer_provider,
            service_name=self.settings.service_name,
        )

    def traced_consumer(
        self,
        handler: Callable[[Any], Awaitable[T]],
        queue: str | None = None,
    ) -> Callable[[Any], Awaitable[T]]:
        hook = self.rabbitmq_consumer()
        return hook.wrap(handler, queue) if hook is not None else handler

    def socketio(self, sio: Any = None, namespace: str | None = None) -> "SocketIOTraceHook | None":
        if not self.settings.enable_socket:
            return None
        from mp_telemetry.adapters.socketio import SocketIOTraceHook

        return SocketIOTraceHook(
            sio,
            metrics=self.metrics,
            observer=self.observer,
            tracer_provider=self.tracer_provider,
            service_name=self.settings.service_name,
            namespace=namespace,
        )

    def traced_event(
        self,
        handler: Callable[..., Awaitable[Any]],
        event: str | None = None,
        sio: Any = None,
    ) -> Callable[..., Awaitable[Any]]:
        hook = self.socketio(sio)
        return hook.wrap(handler, event) if hook is not None else handler

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, publish_target: Any = None) -> None:
        """Apply publish interception when broker tracing is on and aio-pika is present."""
        if not self.settings.enable_broker or self._publisher is not None:
            return
        from mp_telemetry.adapters.rabbitmq import RabbitMQPublishInstrumentor

        publisher = RabbitMQPublishInstrumentor(
            metrics=self.metrics,
            tracer_provider=self.tracer_provider,
            service_name=self.settings.service_name,
        )
        if publisher.install(publish_target):
            self._publisher = publisher

    @property
    def publish_instrumented(self) -> bool:
        return self._publisher is not None and self._publisher.is_installed

    def shutdown(self) -> None:
        if self._publisher is not None:
            self._publisher.restore()
            self._publisher = None


__all__ = ["Observability"]
