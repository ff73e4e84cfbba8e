"""Observability – log sinks (console and OpenTelemetry logs)."""
from __future__ import annotations

import abc
import json
import sys
import time
from typing import IO, Any

import structlog
from opentelemetry import _logs
from opentelemetry._logs import LoggerProvider, SeverityNumber

from mp_telemetry.kernel.errors import TelemetryExportError
from mp_telemetry.kernel.security.pii import SERIALIZATION_ERROR
from mp_telemetry.observability.logging.protocol import LogLevel, StructuredLogEntry

_SEVERITY = {
    LogLevel.DEBUG: SeverityNumber.DEBUG,
    LogLevel.INFO: SeverityNumber.INFO,
    LogLevel.WARN: SeverityNumber.WARN,
    LogLevel.ERROR: SeverityNumber.ERROR,
}

# Fields rendered positionally in the development line format.
_LINE_FIELDS = ("timestamp", "level", "message", "context", "trace_id")


class LogSink(abc.ABC):
    """Destination for structured log entries."""

    name: str = "sink"

    @abc.abstractmethod
    def write(self, entry: StructuredLogEntry) -> None:
        """Deliver *entry*; raise on failure."""


class ConsoleLogSink(LogSink):
    """Writes one line per entry to stdout (``warn``/``error`` to stderr).

    ``pretty=True`` gives the human-readable development format::

        2024-01-01T00:00:00.000Z INFO  [Orders] created (trace: 4bf92f35...) {"order_id": 7}

    otherwise the full record is rendered as JSON by structlog's
    :class:`~structlog.processors.JSONRenderer`.  Passing *stream* sends
    every level to that stream.
    """

    name = "console"

    def __init__(self, pretty: bool = False, stream: IO[str] | None = None) -> None:
        self._pretty = pretty
        self._stream = stream
        self._renderer = structlog.processors.JSONRenderer(default=str)

    @property
    def pretty(self) -> bool:
        return self._pretty

    def format(self, entry: StructuredLogEntry) -> str:
        record = entry.to_dict()
        if not self._pretty:
            return str(self._renderer(None, entry.level.value, record))
        line = f"{entry.timestamp} {entry.level.value.upper():<5}"
        if entry.context:
            line += f" [{entry.context}]"
        line += f" {entry.message}"
        if entry.trace_id:
            line += f" (trace: {entry.trace_id[:8]}...)"
        rest = {k: v for k, v in record.items() if k not in _LINE_FIELDS}
        if rest:
            line += f" {json.dumps(rest, default=str, ensure_ascii=False)}"
        return line

    def write(self, entry: StructuredLogEntry) -> None:
        stream = self._stream
        if stream is None:
            stream = sys.stderr if entry.level in (LogLevel.WARN, LogLevel.ERROR) else sys.stdout
        stream.write(self.format(entry) + "\n")
        stream.flush()


def _attribute_value(value: Any) -> Any:
    if isinstance(value, (str, bool, int, float)):
        return value
    try:
        return json.dumps(value, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return SERIALIZATION_ERROR


def to_otel_attributes(record: dict[str, Any]) -> dict[str, Any]:
    """Flatten a log record into OTLP-compatible primitive attributes."""
    return {
        key: _attribute_value(value)
        for key, value in record.items()
        if value is not None and key not in ("message", "level", "timestamp")
    }


class OtlpLogSink(LogSink):
    """Emits entries through an OpenTelemetry logs ``Logger``.

    Batching and the wire protocol belong to the SDK processor/exporter the
    provider was configured with.
    """

    name = "otlp"

    def __init__(
        self,
        logger_provider: LoggerProvider | None = None,
        instrumentation_name: str = "mp_telemetry",
    ) -> None:
        self._logger = _logs.get_logger(instrumentation_name, logger_provider=logger_provider)

    def write(self, entry: StructuredLogEntry) -> None:
        record = entry.to_dict()
        try:
            self._logger.emit(
                _logs.LogRecord(
                    timestamp=time.time_ns(),
                    trace_id=int(entry.trace_id, 16) if entry.trace_id else None,
                    span_id=int(entry.span_id, 16) if entry.span_id else None,
                    severity_text=entry.level.value.upper(),
                    severity_number=_SEVERITY[entry.level],
                    body=entry.message,
                    attributes=to_otel_attributes(record),
                )
            )
        except Exception as exc:
            raise TelemetryExportError(self.name, cause=exc) from exc


__all__ = ["ConsoleLogSink", "LogSink", "OtlpLogSink", "to_otel_attributes"]
