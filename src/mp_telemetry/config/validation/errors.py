"""Config validation – errors raised while loading telemetry settings."""
from mp_telemetry.kernel.errors import ApplicationError


class ConfigError(ApplicationError):
    """Telemetry settings could not be loaded or failed validation."""
    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """No loader or override supplied a value (e.g. ``SERVICE_NAME``)."""
    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(
            f"Required setting '{setting_name}' is missing",
            detail={"setting": setting_name},
        )
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A value was found but cannot be coerced or is out of range.

    The offending value is kept on the instance but left out of ``detail``
    so that ``to_dict()`` never copies exporter headers into a log record.
    """
    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Setting '{setting_name}' has invalid value {value!r}: {reason}",
            detail={"setting": setting_name, "reason": reason},
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
