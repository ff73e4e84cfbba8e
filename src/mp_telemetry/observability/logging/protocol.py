"""Observability – log levels and the structured log entry."""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Mapping

_ALIASES = {"warning": "warn", "critical": "error", "fatal": "error", "verbose": "debug"}
_ORDER = {"debug": 10, "info": 20, "warn": 30, "error": 40}


class LogLevel(str, Enum):
    """Total order ``debug < info < warn < error``."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def severity(self) -> int:
        return _ORDER[self.value]

    @classmethod
    def parse(cls, value: "LogLevel | str") -> "LogLevel":
        if isinstance(value, LogLevel):
            return value
        name = str(value).lower()
        return cls(_ALIASES.get(name, name))


RESERVED_FIELDS = (
    "timestamp",
    "level",
    "message",
    "service",
    "environment",
    "trace_id",
    "span_id",
    "context",
)


@dataclasses.dataclass(frozen=True)
class StructuredLogEntry:
    """One log record, built fresh per call and never mutated."""

    timestamp: str
    level: LogLevel
    message: str
    service: str
    environment: str
    trace_id: str | None = None
    span_id: str | None = None
    context: str | None = None
    extra: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Reserved fields first; metadata keys never override them."""
        record: dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
            "service": self.service,
            "environment": self.environment,
        }
        if self.trace_id is not None:
            record["trace_id"] = self.trace_id
        if self.span_id is not None:
            record["span_id"] = self.span_id
        if self.context is not None:
            record["context"] = self.context
        for key, value in self.extra.items():
            if key not in RESERVED_FIELDS:
                record[key] = value
        return record


__all__ = ["LogLevel", "RESERVED_FIELDS", "StructuredLogEntry"]
