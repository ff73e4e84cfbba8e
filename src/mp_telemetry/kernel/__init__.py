"""Kernel – framework-agnostic building blocks (errors, redaction defaults)."""

from mp_telemetry.kernel.errors import (
    ApplicationError,
    BaseError,
    InfrastructureError,
    InstrumentationError,
    TelemetryExportError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "InfrastructureError",
    "InstrumentationError",
    "TelemetryExportError",
]
