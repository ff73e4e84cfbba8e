"""Unit tests for config settings, loaders and the telemetry settings."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import ClassVar

import pytest

from mp_telemetry.config.settings import (
    EnvSettingsLoader,
    Settings,
    SettingsFactory,
    SettingsLoader,
    TelemetrySettings,
    TelemetrySettingsLoader,
    load_telemetry_settings,
)
from mp_telemetry.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)
from mp_telemetry.kernel.security import DEFAULT_SENSITIVE_FIELDS


# ---------------------------------------------------------------------------
# Generic settings class used by the loader tests
# ---------------------------------------------------------------------------


@dataclass
class AppSettings(Settings):
    _prefix: ClassVar[str] = "APP"

    host: str = "localhost"
    port: int = 8080
    debug: bool = False
    ratio: float | None = None
    allowed_origins: list[str] = field(default_factory=list)


@dataclass
class RequiredSettings(Settings):
    _prefix: ClassVar[str] = "REQ"

    name: str


class _StaticLoader(SettingsLoader):
    def __init__(self, **values: object) -> None:
        self._values = values

    def load(self, settings_class):  # type: ignore[override]
        return settings_class(**self._values)


# ---------------------------------------------------------------------------
# EnvSettingsLoader
# ---------------------------------------------------------------------------


class TestEnvSettingsLoader:
    def test_loads_string_int_and_float(self) -> None:
        env = {"APP_HOST": "example.com", "APP_PORT": "9000", "APP_RATIO": "0.5"}
        settings = EnvSettingsLoader(environ=env).load(AppSettings)
        assert settings.host == "example.com"
        assert settings.port == 9000
        assert settings.ratio == 0.5

    def test_loads_bool(self) -> None:
        for truthy in ("true", "True", "1", "yes", "on"):
            assert EnvSettingsLoader(environ={"APP_DEBUG": truthy}).load(AppSettings).debug is True
        for falsy in ("false", "0", "no", "off"):
            assert EnvSettingsLoader(environ={"APP_DEBUG": falsy}).load(AppSettings).debug is False

    def test_loads_list(self) -> None:
        env = {"APP_ALLOWED_ORIGINS": "http://a.com, http://b.com,"}
        settings = EnvSettingsLoader(environ=env).load(AppSettings)
        assert settings.allowed_origins == ["http://a.com", "http://b.com"]

    def test_defaults_when_absent_or_empty(self) -> None:
        settings = EnvSettingsLoader(environ={"APP_PORT": ""}).load(AppSettings)
        assert settings.host == "localhost"
        assert settings.port == 8080
        assert settings.allowed_origins == []

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_HOST", "from-env")
        assert EnvSettingsLoader().load(AppSettings).host == "from-env"

    def test_missing_required_raises(self) -> None:
        with pytest.raises(MissingRequiredSettingError) as exc_info:
            EnvSettingsLoader(environ={}).load(RequiredSettings)
        assert exc_info.value.setting_name == "REQ_NAME"

    def test_uncoercible_value_raises_invalid(self) -> None:
        with pytest.raises(InvalidSettingValueError) as exc_info:
            EnvSettingsLoader(environ={"APP_PORT": "eighty"}).load(AppSettings)
        assert exc_info.value.setting_name == "APP_PORT"
        assert exc_info.value.value == "eighty"

    def test_env_key_uses_prefix(self) -> None:
        assert EnvSettingsLoader.env_key(AppSettings, "host") == "APP_HOST"

    def test_env_key_uses_fixed_names(self) -> None:
        assert EnvSettingsLoader.env_key(TelemetrySettings, "enable_broker") == "OTEL_RABBITMQ_ENABLED"


# ---------------------------------------------------------------------------
# SettingsFactory
# ---------------------------------------------------------------------------


class TestSettingsFactory:
    def test_later_loader_wins(self) -> None:
        settings = SettingsFactory.create(
            AppSettings,
            loaders=[_StaticLoader(host="first", port=1), _StaticLoader(host="second")],
        )
        assert settings.host == "second"

    def test_overrides_win_over_loaders(self) -> None:
        settings = SettingsFactory.create(
            AppSettings,
            loaders=[_StaticLoader(host="loaded")],
            overrides={"host": "override"},
        )
        assert settings.host == "override"

    def test_failing_loader_is_skipped_when_override_supplies_value(self) -> None:
        settings = SettingsFactory.create(
            RequiredSettings,
            loaders=[EnvSettingsLoader(environ={})],
            overrides={"name": "svc"},
        )
        assert settings.name == "svc"

    def test_missing_required_after_merge(self) -> None:
        with pytest.raises(MissingRequiredSettingError):
            SettingsFactory.create(RequiredSettings, loaders=[EnvSettingsLoader(environ={})])

    def test_construction_failure_wrapped(self) -> None:
        with pytest.raises(ConfigError):
            SettingsFactory.create(AppSettings, overrides={"unknown_field": 1})


# ---------------------------------------------------------------------------
# TelemetrySettings
# ---------------------------------------------------------------------------


class TestTelemetrySettings:
    def test_defaults(self) -> None:
        settings = TelemetrySettings(service_name="orders")
        assert settings.service_version == "1.0.0"
        assert settings.environment == "development"
        assert settings.is_development is True
        assert settings.otlp_traces_endpoint == "http://localhost:4318/v1/traces"
        assert settings.enable_http and settings.enable_broker and settings.enable_socket
        assert settings.enable_metrics and settings.enable_otlp_logs and settings.enable_console_logs
        assert settings.log_level == "info"
        assert settings.sensitive_fields == DEFAULT_SENSITIVE_FIELDS
        assert settings.max_body_log_size == 10_000
        assert settings.log_recovery_probe_seconds is None

    def test_env_name_maps_are_not_fields(self) -> None:
        names = {f.name for f in fields(TelemetrySettings)}
        assert "_prefix" not in names and "_env_names" not in names
        assert Settings._env_names == {}
        assert TelemetrySettings._env_names["service_name"] == "SERVICE_NAME"

    def test_warning_is_normalised(self) -> None:
        assert TelemetrySettings(service_name="s", log_level="WARNING").log_level == "warn"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"service_name": ""},
            {"service_name": "s", "log_level": "loud"},
            {"service_name": "s", "max_body_log_size": 0},
            {"service_name": "s", "metrics_export_interval_ms": -1},
            {"service_name": "s", "log_recovery_probe_seconds": 0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        with pytest.raises(InvalidSettingValueError):
            TelemetrySettings(**kwargs)


class TestTelemetrySettingsLoader:
    def _load(self, **env: str) -> TelemetrySettings:
        return TelemetrySettingsLoader(environ={"SERVICE_NAME": "orders", **env}).load()

    def test_reads_well_known_variables(self) -> None:
        settings = self._load(
            SERVICE_VERSION="2.3.1",
            DEPLOYMENT_ENVIRONMENT="production",
            OTEL_EXPORTER_OTLP_LOGS_ENDPOINT="http://collector:4318/v1/logs",
            LOG_LEVEL="debug",
            OTEL_MAX_BODY_LOG_SIZE="2048",
            OTEL_METRICS_EXPORT_INTERVAL_MS="5000",
        )
        assert settings.service_name == "orders"
        assert settings.service_version == "2.3.1"
        assert settings.is_development is False
        assert settings.otlp_logs_endpoint == "http://collector:4318/v1/logs"
        assert settings.log_level == "debug"
        assert settings.max_body_log_size == 2048
        assert settings.metrics_export_interval_ms == 5000

    def test_enable_flags_are_opt_out(self) -> None:
        assert self._load(OTEL_HTTP_ENABLED="false").enable_http is False
        assert self._load(OTEL_HTTP_ENABLED="FALSE").enable_http is False
        assert self._load(OTEL_HTTP_ENABLED="no").enable_http is True
        assert self._load(OTEL_LOGS_ENABLED="0").enable_otlp_logs is True

    def test_debug_is_opt_in(self) -> None:
        assert self._load(OTEL_DEBUG="1").debug is False
        assert self._load(OTEL_DEBUG="true").debug is True

    def test_sensitive_fields_list(self) -> None:
        settings = self._load(OTEL_SENSITIVE_FIELDS="password, session ,")
        assert settings.sensitive_fields == ("password", "session")

    def test_probe_interval(self) -> None:
        assert self._load(OTEL_LOGS_RECOVERY_PROBE_SECONDS="30").log_recovery_probe_seconds == 30.0

    def test_missing_service_name(self) -> None:
        with pytest.raises(MissingRequiredSettingError):
            TelemetrySettingsLoader(environ={}).load()

    def test_invalid_number(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            self._load(OTEL_MAX_BODY_LOG_SIZE="big")


class TestLoadTelemetrySettings:
    def test_environment_then_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SERVICE_NAME", "from-env")
        monkeypatch.setenv("OTEL_METRICS_ENABLED", "false")
        settings = load_telemetry_settings(environment="staging")
        assert settings.service_name == "from-env"
        assert settings.enable_metrics is False
        assert settings.environment == "staging"

    def test_override_supplies_missing_service_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SERVICE_NAME", raising=False)
        assert load_telemetry_settings(service_name="svc").service_name == "svc"
