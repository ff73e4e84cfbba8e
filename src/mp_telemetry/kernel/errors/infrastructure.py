"""Infrastructure errors – collector and exporter failures."""

from __future__ import annotations

from typing import Any

from mp_telemetry.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """I/O failure talking to the collector or an SDK component."""

    default_code = "infrastructure_error"


class TelemetryExportError(InfrastructureError):
    """A sink or exporter rejected a batch of telemetry."""

    default_code = "telemetry_export_error"

    def __init__(
        self,
        sink: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Export to sink '{sink}' failed", **kwargs)
        self.sink = sink


__all__ = [
    "InfrastructureError",
    "TelemetryExportError",
]
