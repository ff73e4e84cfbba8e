"""OpenTelemetry adapter – metrics backend, log exporter wrapper and SDK bootstrap."""
from mp_telemetry.adapters.opentelemetry.metrics import OtelMetrics
from mp_telemetry.adapters.opentelemetry.exporters import HealthReportingLogExporter
from mp_telemetry.adapters.opentelemetry.bootstrap import (
    TelemetryRuntime,
    build_resource,
    get_runtime,
    init_telemetry,
    install_shutdown_handlers,
    shutdown_telemetry,
)

__all__ = [
    "HealthReportingLogExporter",
    "OtelMetrics",
    "TelemetryRuntime",
    "build_resource",
    "get_runtime",
    "init_telemetry",
    "install_shutdown_handlers",
    "shutdown_telemetry",
]
