"""Observability – resilient log pipeline and StructuredLogger.

Emission for a call at or above the minimum level:

1. build the entry (trace identity, logical context, masked metadata)
2. remote sink enabled and available: export it; a failure marks the
   remote sink degraded
3. console enabled, or the remote export did not happen: write the
   console line, which is the guaranteed local fallback
"""
from __future__ import annotations

import logging
import threading
import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Mapping

from mp_telemetry.kernel.security.pii import MASKING_ERROR, PIIRedactor
from mp_telemetry.observability.correlation.context import current_identity
from mp_telemetry.observability.logging.health import SinkHealth, SinkState
from mp_telemetry.observability.logging.protocol import LogLevel, StructuredLogEntry
from mp_telemetry.observability.logging.sinks import ConsoleLogSink, LogSink
from mp_telemetry.observability.redaction import SensitiveDataMasker

if TYPE_CHECKING:
    from mp_telemetry.config.settings.telemetry import TelemetrySettings

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LogPipeline:
    """Owns both sinks and their health; builds and routes every entry."""

    def __init__(
        self,
        service: str,
        environment: str = "development",
        min_level: LogLevel | str = LogLevel.INFO,
        *,
        console: ConsoleLogSink | None = None,
        console_enabled: bool = True,
        remote: LogSink | None = None,
        masker: PIIRedactor | None = None,
        probe_interval_seconds: float | None = None,
    ) -> None:
        self.service = service
        self.environment = environment
        self.min_level = LogLevel.parse(min_level)
        self._console = console or ConsoleLogSink(pretty=environment == "development")
        self._console_enabled = console_enabled
        self._remote = remote
        self._masker = masker or SensitiveDataMasker()
        self.console_health = SinkHealth("console")
        self.remote_health = SinkHealth("otlp", probe_interval_seconds=probe_interval_seconds)

    @classmethod
    def from_settings(
        cls,
        settings: "TelemetrySettings",
        remote: LogSink | None = None,
        console: ConsoleLogSink | None = None,
    ) -> "LogPipeline":
        return cls(
            settings.service_name,
            settings.environment,
            settings.log_level,
            console=console,
            console_enabled=settings.enable_console_logs,
            remote=remote if settings.enable_otlp_logs else None,
            masker=SensitiveDataMasker(settings.sensitive_fields),
            probe_interval_seconds=settings.log_recovery_probe_seconds,
        )

    @property
    def remote_enabled(self) -> bool:
        return self._remote is not None

    @property
    def console_enabled(self) -> bool:
        return self._console_enabled

    @property
    def remote_sink(self) -> LogSink | None:
        return self._remote

    def is_enabled_for(self, level: LogLevel | str) -> bool:
        return LogLevel.parse(level).severity >= self.min_level.severity

    def build_entry(
        self,
        level: LogLevel | str,
        message: str,
        context: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> StructuredLogEntry:
        identity = current_identity()
        extra: Any = self._masker.mask(dict(meta)) if meta else {}
        if not isinstance(extra, dict):
            extra = {"meta": MASKING_ERROR}
        return StructuredLogEntry(
            timestamp=_timestamp(),
            level=LogLevel.parse(level),
            message=message,
            service=self.service,
            environment=self.environment,
            trace_id=identity.trace_id if identity else None,
            span_id=identity.span_id if identity else None,
            context=context,
            extra=extra,
        )

    def emit(
        self,
        level: LogLevel | str,
        message: str,
        context: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> StructuredLogEntry | None:
        """Route one log call; returns the entry, or ``None`` when filtered."""
        if not self.is_enabled_for(level):
            return None
        if not self._console_enabled and self._remote is None:
            return None

        entry = self.build_entry(level, message, context, meta)
        handled = False
        if self._remote is not None and self.remote_health.should_attempt():
            try:
                self._remote.write(entry)
            except Exception as exc:  # noqa: BLE001
                self.remote_health.mark_degraded(exc)
            else:
                self.remote_health.mark_success()
                handled = True

        if self._console_enabled or (self._remote is not None and not handled):
            try:
                self._console.write(entry)
            except Exception as exc:  # noqa: BLE001
                self.console_health.mark_degraded(exc)
        return entry

    def mark_remote_unavailable(self, error: BaseException | str | None = None) -> None:
        self.remote_health.mark_degraded(error)

    def reset_remote(self) -> None:
        self.remote_health.reset()

    @property
    def remote_state(self) -> SinkState:
        return self.remote_health.state


class StructuredLogger:
    """Logger bound to a logical *context* (component label) and a pipeline.

    Metadata is passed as keyword arguments and masked before it reaches a
    sink::

        log = create_logger("OrdersService")
        log.info("order created", order_id=7)
        log.error("payment failed", stack_trace=tb, provider="stripe")
    """

    def __init__(self, pipeline: LogPipeline, context: str | None = None) -> None:
        self._pipeline = pipeline
        self._context = context

    @property
    def context(self) -> str | None:
        return self._context

    @property
    def pipeline(self) -> LogPipeline:
        return self._pipeline

    def set_context(self, context: str | None) -> None:
        self._context = context

    def child(self, context: str) -> "StructuredLogger":
        return StructuredLogger(self._pipeline, context)

    def debug(self, message: str, **meta: Any) -> None:
        self._pipeline.emit(LogLevel.DEBUG, message, self._context, meta)

    def info(self, message: str, **meta: Any) -> None:
        self._pipeline.emit(LogLevel.INFO, message, self._context, meta)

    def warn(self, message: str, **meta: Any) -> None:
        self._pipeline.emit(LogLevel.WARN, message, self._context, meta)

    def error(self, message: str, stack_trace: str | None = None, **meta: Any) -> None:
        if stack_trace is not None:
            meta["stack_trace"] = stack_trace
        self._pipeline.emit(LogLevel.ERROR, message, self._context, meta)

    log = info
    verbose = debug
    warning = warn
    critical = error

    def log_error(self, error: BaseException, message: str | None = None, **meta: Any) -> None:
        meta.setdefault("error_name", type(error).__name__)
        meta.setdefault(
            "stack_trace",
            "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )
        self._pipeline.emit(LogLevel.ERROR, message or str(error), self._context, meta)


_default_lock = threading.Lock()
_default_pipeline: LogPipeline | None = None


def set_default_pipeline(pipeline: LogPipeline | None) -> None:
    global _default_pipeline
    with _default_lock:
        _default_pipeline = pipeline


def get_default_pipeline() -> LogPipeline:
    """Pipeline installed by bootstrap, or a console-only one until then."""
    global _default_pipeline
    with _default_lock:
        if _default_pipeline is None:
            _default_pipeline = LogPipeline("unknown-service")
        return _default_pipeline


def create_logger(context: str | None = None, pipeline: LogPipeline | None = None) -> StructuredLogger:
    return StructuredLogger(pipeline or get_default_pipeline(), context)


__all__ = [
    "LogPipeline",
    "StructuredLogger",
    "create_logger",
    "get_default_pipeline",
    "set_default_pipeline",
]
