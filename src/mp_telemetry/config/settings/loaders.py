"""Config settings – SettingsLoader port and EnvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
from typing import Any, Mapping, TypeVar

from mp_telemetry.config.settings.base import Settings
from mp_telemetry.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

T = TypeVar("T", bound=Settings)


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Load settings from OS environment variables.

    ``environ`` defaults to :data:`os.environ`; tests pass a plain dict.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def load(self, settings_class: type[T]) -> T:
        environ = os.environ if self._environ is None else self._environ
        kwargs: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            env_key = self.env_key(settings_class, field.name)
            raw = environ.get(env_key)

            if raw is None or raw == "":
                if (
                    field.default is dataclasses.MISSING
                    and field.default_factory is dataclasses.MISSING  # type: ignore[misc]
                ):
                    raise MissingRequiredSettingError(env_key)
                continue

            try:
                kwargs[field.name] = self._coerce(field.name, raw, field.type)
            except ValueError as exc:
                raise InvalidSettingValueError(env_key, raw, str(exc)) from exc

        try:
            return settings_class(**kwargs)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to load settings: {exc}") from exc

    @staticmethod
    def env_key(settings_class: type[Settings], field_name: str) -> str:
        names = getattr(settings_class, "_env_names", {})
        if field_name in names:
            return names[field_name]
        prefix = getattr(settings_class, "_prefix", "").upper()
        return f"{prefix}_{field_name}".upper().lstrip("_")

    def _coerce(self, name: str, value: str, type_hint: Any) -> Any:  # noqa: PLR0911
        hint = _strip_optional(type_hint)
        origin = getattr(hint, "__origin__", None)
        if hint is bool or hint == "bool":
            return value.strip().lower() in ("1", "true", "yes", "on")
        if hint is int or hint == "int":
            return int(value)
        if hint is float or hint == "float":
            return float(value)
        if origin in (list, tuple) or (isinstance(hint, str) and hint.startswith(("list[", "tuple["))):
            items = [v.strip() for v in value.split(",") if v.strip()]
            if origin is tuple or (isinstance(hint, str) and hint.startswith("tuple[")):
                return tuple(items)
            return items
        return value


def _strip_optional(type_hint: Any) -> Any:
    if isinstance(type_hint, str):
        parts = [p.strip() for p in type_hint.split("|")]
        parts = [p for p in parts if p != "None"]
        return parts[0] if len(parts) == 1 else type_hint
    return type_hint


__all__ = ["EnvSettingsLoader", "SettingsLoader"]
