"""OpenTelemetry adapter – SDK bootstrap and ordered shutdown.

:func:`init_telemetry` wires trace, metric and log providers to OTLP/HTTP
exporters once per process and installs the default log pipeline.  The
OTLP exporters are optional (``mp-telemetry[otlp]``); tests inject
in-memory exporters instead.
"""
from __future__ import annotations

import dataclasses
import logging
import signal
import sys
import threading
from types import FrameType
from typing import Any, Callable

from opentelemetry import _logs, metrics, trace
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, LogRecordExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter, SpanProcessor

from mp_telemetry.adapters.opentelemetry.exporters import HealthReportingLogExporter
from mp_telemetry.config.settings.telemetry import TelemetrySettings
from mp_telemetry.observability.logging import (
    JsonLoggerFactory,
    LogPipeline,
    OtlpLogSink,
    set_default_pipeline,
)

logger = logging.getLogger(__name__)

SPAN_MAX_QUEUE_SIZE = 2048
SPAN_MAX_EXPORT_BATCH_SIZE = 512
SPAN_SCHEDULE_DELAY_MILLIS = 5_000
SPAN_EXPORT_TIMEOUT_MILLIS = 30_000
LOG_EXPORT_TIMEOUT_SECONDS = 5


def _require_otlp() -> None:
    try:
        import opentelemetry.exporter.otlp.proto.http  # noqa: F401
    except ImportError as exc:
        raise ImportError("Install 'mp-telemetry[otlp]' to export over OTLP/HTTP") from exc


def build_resource(settings: TelemetrySettings) -> Resource:
    return Resource.create({
        SERVICE_NAME: settings.service_name,
        SERVICE_VERSION: settings.service_version,
        "deployment.environment": settings.environment,
    })


def _otlp_span_exporter(settings: TelemetrySettings) -> SpanExporter:
    _require_otlp()
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter(endpoint=settings.otlp_traces_endpoint)


def _otlp_metric_reader(settings: TelemetrySettings) -> MetricReader:
    _require_otlp()
    from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter

    return PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=settings.otlp_metrics_endpoint),
        export_interval_millis=settings.metrics_export_interval_ms,
    )


def _otlp_log_exporter(settings: TelemetrySettings) -> LogRecordExporter:
    _require_otlp()
    from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter

    return OTLPLogExporter(endpoint=settings.otlp_logs_endpoint, timeout=LOG_EXPORT_TIMEOUT_SECONDS)


@dataclasses.dataclass
class TelemetryRuntime:
    """Providers built by :func:`init_telemetry` plus the log pipeline."""

    settings: TelemetrySettings
    resource: Resource
    tracer_provider: TracerProvider
    pipeline: LogPipeline
    meter_provider: MeterProvider | None = None
    logger_provider: LoggerProvider | None = None
    _shut_down: bool = dataclasses.field(default=False, repr=False)
    _lock: threading.Lock = dataclasses.field(default_factory=threading.Lock, repr=False)

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def shutdown(self) -> None:
        """Logs first, then traces, then metrics; each step's error is logged and skipped."""
        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True

        steps: list[tuple[str, Callable[[], Any]]] = []
        if self.logger_provider is not None:
            steps.append(("logs", self.logger_provider.shutdown))
        steps.append(("traces", self.tracer_provider.shutdown))
        if self.meter_provider is not None:
            steps.append(("metrics", self.meter_provider.shutdown))

        for step, shutdown in steps:
            try:
                shutdown()
            except Exception as exc:  # noqa: BLE001
                logger.error("telemetry.shutdown_failed step=%s error=%s", step, exc)
            else:
                logger.debug("telemetry.shutdown step=%s", step)


_RUNTIME: TelemetryRuntime | None = None
_INIT_LOCK = threading.Lock()


def _build_logs(
    settings: TelemetrySettings,
    resource: Resource,
    log_exporter: LogRecordExporter | None,
) -> tuple[LogPipeline, LoggerProvider | None]:
    if not settings.enable_otlp_logs:
        return LogPipeline.from_settings(settings), None

    provider = LoggerProvider(resource=resource)
    pipeline = LogPipeline.from_settings(settings, remote=OtlpLogSink(provider))
    try:
        exporter = log_exporter if log_exporter is not None else _otlp_log_exporter(settings)
    except Exception as exc:  # noqa: BLE001
        logger.warning("telemetry.otlp_logs_unavailable error=%s; console logging only", exc)
        return LogPipeline.from_settings(dataclasses.replace(settings, enable_otlp_logs=False)), None

    provider.add_log_record_processor(
        BatchLogRecordProcessor(HealthReportingLogExporter(exporter, pipeline.remote_health))
    )
    return pipeline, provider


def _build_traces(
    resource: Resource,
    span_exporter: SpanExporter | None,
    span_processor: SpanProcessor | None,
    settings: TelemetrySettings,
) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    if span_processor is not None:
        provider.add_span_processor(span_processor)
        return provider
    exporter = span_exporter if span_exporter is not None else _otlp_span_exporter(settings)
    provider.add_span_processor(
        BatchSpanProcessor(
            exporter,
            max_queue_size=SPAN_MAX_QUEUE_SIZE,
            max_export_batch_size=SPAN_MAX_EXPORT_BATCH_SIZE,
            schedule_delay_millis=SPAN_SCHEDULE_DELAY_MILLIS,
            export_timeout_millis=SPAN_EXPORT_TIMEOUT_MILLIS,
        )
    )
    return provider


def init_telemetry(
    settings: TelemetrySettings,
    *,
    install_signal_handlers: bool = True,
    set_global: bool = True,
    configure_structlog: bool = False,
    span_exporter: SpanExporter | None = None,
    span_processor: SpanProcessor | None = None,
    metric_reader: MetricReader | None = None,
    log_exporter: LogRecordExporter | None = None,
) -> TelemetryRuntime:
    """Initialise the SDK once; later calls return the existing runtime."""
    global _RUNTIME
    with _INIT_LOCK:
        if _RUNTIME is not None and not _RUNTIME.is_shut_down:
            logger.debug("telemetry.already_initialised service=%s", _RUNTIME.settings.service_name)
            return _RUNTIME

        if settings.debug:
            otel_logger = logging.getLogger("opentelemetry")
            otel_logger.setLevel(logging.DEBUG)
            if not otel_logger.handlers:
                otel_logger.addHandler(logging.StreamHandler())

        resource = build_resource(settings)
        pipeline, logger_provider = _build_logs(settings, resource, log_exporter)
        tracer_provider = _build_traces(resource, span_exporter, span_processor, settings)

        meter_provider: MeterProvider | None = None
        if settings.enable_metrics:
            reader = metric_reader if metric_reader is not None else _otlp_metric_reader(settings)
            meter_provider = MeterProvider(resource=resource, metric_readers=[reader])

        if set_global:
            trace.set_tracer_provider(tracer_provider)
            if meter_provider is not None:
                metrics.set_meter_provider(meter_provider)
            if logger_provider is not None:
                _logs.set_logger_provider(logger_provider)

        set_default_pipeline(pipeline)
        if configure_structlog:
            JsonLoggerFactory.configure(
                level=logging.DEBUG if settings.log_level == "debug" else logging.INFO,
                sensitive_fields=settings.sensitive_fields,
                service=settings.service_name,
            )

        runtime = TelemetryRuntime(
            settings=settings,
            resource=resource,
            tracer_provider=tracer_provider,
            pipeline=pipeline,
            meter_provider=meter_provider,
            logger_provider=logger_provider,
        )
        if install_signal_handlers:
            install_shutdown_handlers(runtime)
        _RUNTIME = runtime
        logger.info(
            "telemetry.initialised service=%s environment=%s metrics=%s otlp_logs=%s",
            settings.service_name, settings.environment,
            meter_provider is not None, logger_provider is not None,
        )
        return runtime


def install_shutdown_handlers(runtime: TelemetryRuntime) -> bool:
    """SIGTERM/SIGINT run :meth:`TelemetryRuntime.shutdown` then exit with status 0."""
    if threading.current_thread() is not threading.main_thread():
        logger.warning("telemetry.signal_handlers_skipped reason=not_main_thread")
        return False

    def _handle(signum: int, frame: FrameType | None) -> None:  # noqa: ARG001
        logger.info("telemetry.signal_received signal=%s", signal.Signals(signum).name)
        runtime.shutdown()
        sys.exit(0)

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, _handle)
    return True


def get_runtime() -> TelemetryRuntime | None:
    return _RUNTIME


def shutdown_telemetry() -> None:
    global _RUNTIME
    with _INIT_LOCK:
        runtime, _RUNTIME = _RUNTIME, None
    if runtime is not None:
        runtime.shutdown()
    set_default_pipeline(None)


__all__ = [
    "TelemetryRuntime",
    "build_resource",
    "get_runtime",
    "init_telemetry",
    "install_shutdown_handlers",
    "shutdown_telemetry",
]
