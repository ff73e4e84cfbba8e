"""Config settings – 12-factor env-based configuration."""
from mp_telemetry.config.settings.base import Settings
from mp_telemetry.config.settings.factory import SettingsFactory
from mp_telemetry.config.settings.loaders import EnvSettingsLoader, SettingsLoader
from mp_telemetry.config.settings.telemetry import (
    LOG_LEVELS,
    TelemetrySettings,
    TelemetrySettingsLoader,
    load_telemetry_settings,
)

__all__ = [
    "EnvSettingsLoader",
    "LOG_LEVELS",
    "Settings",
    "SettingsFactory",
    "SettingsLoader",
    "TelemetrySettings",
    "TelemetrySettingsLoader",
    "load_telemetry_settings",
]
