"""OpenTelemetry adapter – HealthReportingLogExporter."""
from __future__ import annotations

import logging
from typing import Sequence

from opentelemetry.sdk._logs.export import LogRecordExporter, LogRecordExportResult

from mp_telemetry.kernel.errors import TelemetryExportError
from mp_telemetry.observability.logging.health import SinkHealth

logger = logging.getLogger(__name__)


class HealthReportingLogExporter(LogRecordExporter):
    """Delegating log exporter that reports background failures.

    The SDK batch processor exports on its own thread, out of reach of the
    log pipeline's try/except.  Wrapping the exporter lets a failed batch
    mark the remote sink degraded so subsequent entries fall back to the
    console.
    """

    def __init__(self, exporter: LogRecordExporter, health: SinkHealth) -> None:
        self._exporter = exporter
        self._health = health

    def export(self, batch: Sequence) -> LogRecordExportResult:  # type: ignore[override]
        try:
            result = self._exporter.export(batch)
        except Exception as exc:  # noqa: BLE001
            logger.debug("otlp_logs.export_raised error=%s", exc)
            self._health.mark_degraded(exc)
            return LogRecordExportResult.FAILURE
        if result is LogRecordExportResult.FAILURE:
            self._health.mark_degraded(TelemetryExportError(self._health.name, "batch export failed"))
        return result

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30_000) -> bool:
        flush = getattr(self._exporter, "force_flush", None)
        return bool(flush(timeout_millis)) if flush is not None else True


__all__ = ["HealthReportingLogExporter"]
