"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar


@dataclasses.dataclass
class Settings:
    """Dataclass root for telemetry settings read from the environment.

    ``_prefix`` namespaces the variables of a subclass (``PREFIX_FIELD``).
    ``_env_names`` pins individual fields to fixed names instead, which is
    how the ``OTEL_*`` variables are mapped since they share no prefix.
    Both are class-level and never become dataclass fields.
    """

    _prefix: ClassVar[str] = ""
    _env_names: ClassVar[dict[str, str]] = {}

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Hook for cross-field checks; raise a ``ConfigError`` subclass."""


__all__ = ["Settings"]
