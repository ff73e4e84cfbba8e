"""Observability – structured logging with resilient dual-sink export."""
from mp_telemetry.observability.logging.protocol import LogLevel, StructuredLogEntry
from mp_telemetry.observability.logging.health import SinkHealth, SinkState
from mp_telemetry.observability.logging.sinks import (
    ConsoleLogSink,
    LogSink,
    OtlpLogSink,
    to_otel_attributes,
)
from mp_telemetry.observability.logging.logger import (
    LogPipeline,
    StructuredLogger,
    create_logger,
    get_default_pipeline,
    set_default_pipeline,
)
from mp_telemetry.observability.logging.processors import (
    RedactionProcessor,
    TraceContextProcessor,
    get_logger,
)
from mp_telemetry.observability.logging.factory import JsonLoggerFactory

__all__ = [
    "ConsoleLogSink",
    "JsonLoggerFactory",
    "LogLevel",
    "LogPipeline",
    "LogSink",
    "OtlpLogSink",
    "RedactionProcessor",
    "SinkHealth",
    "SinkState",
    "StructuredLogEntry",
    "StructuredLogger",
    "TraceContextProcessor",
    "create_logger",
    "get_default_pipeline",
    "get_logger",
    "set_default_pipeline",
    "to_otel_attributes",
]
