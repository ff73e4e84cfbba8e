"""Config settings – TelemetrySettings and its environment loader."""
from __future__ import annotations

import dataclasses
from typing import Any, ClassVar

from mp_telemetry.config.settings.base import Settings
from mp_telemetry.config.settings.loaders import EnvSettingsLoader
from mp_telemetry.config.validation import InvalidSettingValueError
from mp_telemetry.kernel.security.pii import DEFAULT_SENSITIVE_FIELDS

LOG_LEVELS = ("debug", "info", "warn", "error")

_DEFAULT_COLLECTOR = "http://localhost:4318"

# Flags that stay on unless explicitly set to "false".
_OPT_OUT_FLAGS = frozenset({
    "enable_http",
    "enable_broker",
    "enable_socket",
    "enable_metrics",
    "enable_otlp_logs",
    "enable_console_logs",
})


@dataclasses.dataclass
class TelemetrySettings(Settings):
    """Everything the telemetry layer needs to know about its host service."""

    _env_names: ClassVar[dict[str, str]] = {
        "service_name": "SERVICE_NAME",
        "service_version": "SERVICE_VERSION",
        "environment": "DEPLOYMENT_ENVIRONMENT",
        "otlp_traces_endpoint": "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
        "otlp_metrics_endpoint": "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT",
        "otlp_logs_endpoint": "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
        "enable_http": "OTEL_HTTP_ENABLED",
        "enable_broker": "OTEL_RABBITMQ_ENABLED",
        "enable_socket": "OTEL_WEBSOCKET_ENABLED",
        "enable_metrics": "OTEL_METRICS_ENABLED",
        "enable_otlp_logs": "OTEL_LOGS_ENABLED",
        "enable_console_logs": "OTEL_CONSOLE_LOGS_ENABLED",
        "log_level": "LOG_LEVEL",
        "sensitive_fields": "OTEL_SENSITIVE_FIELDS",
        "max_body_log_size": "OTEL_MAX_BODY_LOG_SIZE",
        "metrics_export_interval_ms": "OTEL_METRICS_EXPORT_INTERVAL_MS",
        "debug": "OTEL_DEBUG",
        "log_recovery_probe_seconds": "OTEL_LOGS_RECOVERY_PROBE_SECONDS",
    }

    service_name: str
    service_version: str = "1.0.0"
    environment: str = "development"
    otlp_traces_endpoint: str = f"{_DEFAULT_COLLECTOR}/v1/traces"
    otlp_metrics_endpoint: str = f"{_DEFAULT_COLLECTOR}/v1/metrics"
    otlp_logs_endpoint: str = f"{_DEFAULT_COLLECTOR}/v1/logs"
    enable_http: bool = True
    enable_broker: bool = True
    enable_socket: bool = True
    enable_metrics: bool = True
    enable_otlp_logs: bool = True
    enable_console_logs: bool = True
    log_level: str = "info"
    sensitive_fields: tuple[str, ...] = DEFAULT_SENSITIVE_FIELDS
    max_body_log_size: int = 10_000
    metrics_export_interval_ms: int = 15_000
    debug: bool = False
    log_recovery_probe_seconds: float | None = None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def _validate(self) -> None:
        if not self.service_name:
            raise InvalidSettingValueError("service_name", self.service_name, "must not be empty")
        self.log_level = self.log_level.lower()
        if self.log_level == "warning":
            self.log_level = "warn"
        if self.log_level not in LOG_LEVELS:
            raise InvalidSettingValueError(
                "log_level", self.log_level, f"expected one of {', '.join(LOG_LEVELS)}"
            )
        if self.max_body_log_size <= 0:
            raise InvalidSettingValueError("max_body_log_size", self.max_body_log_size, "must be positive")
        if self.metrics_export_interval_ms <= 0:
            raise InvalidSettingValueError(
                "metrics_export_interval_ms", self.metrics_export_interval_ms, "must be positive"
            )
        if self.log_recovery_probe_seconds is not None and self.log_recovery_probe_seconds <= 0:
            raise InvalidSettingValueError(
                "log_recovery_probe_seconds", self.log_recovery_probe_seconds, "must be positive or unset"
            )
        self.sensitive_fields = tuple(self.sensitive_fields)


class TelemetrySettingsLoader(EnvSettingsLoader):
    """Environment loader with the conventions of the ``OTEL_*`` variables.

    Enable flags are opt-out: any value other than ``false`` keeps them on.
    ``OTEL_DEBUG`` is opt-in and only ``true`` turns it on.
    """

    def load(self, settings_class: type[Any] = TelemetrySettings) -> Any:
        return super().load(settings_class)

    def _coerce(self, name: str, value: str, type_hint: Any) -> Any:
        if name in _OPT_OUT_FLAGS:
            return value.strip().lower() != "false"
        if name == "debug":
            return value.strip().lower() == "true"
        return super()._coerce(name, value, type_hint)


def load_telemetry_settings(**overrides: Any) -> TelemetrySettings:
    """Environment first, then *overrides*."""
    from mp_telemetry.config.settings.factory import SettingsFactory

    return SettingsFactory.create(
        TelemetrySettings,
        loaders=[TelemetrySettingsLoader()],
        overrides=overrides or None,
    )


__all__ = [
    "LOG_LEVELS",
    "TelemetrySettings",
    "TelemetrySettingsLoader",
    "load_telemetry_settings",
]
