"""Config – 12-factor settings and loaders for the telemetry layer."""

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

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsFactory",
    "SettingsLoader",
    "TelemetrySettings",
    "TelemetrySettingsLoader",
    "load_telemetry_settings",
]
