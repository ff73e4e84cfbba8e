"""Observability – error taxonomy and the classified error record."""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure categories shared by logs, spans and metrics."""

    HTTP_CLIENT_ERROR = "HTTP_CLIENT_ERROR"
    DB_KNOWN_CONSTRAINT_ERROR = "DB_KNOWN_CONSTRAINT_ERROR"
    DB_UNKNOWN_ERROR = "DB_UNKNOWN_ERROR"
    DB_VALIDATION_ERROR = "DB_VALIDATION_ERROR"
    GENERIC = "GENERIC"

    @property
    def is_database(self) -> bool:
        return self.value.startswith("DB_")


class OriginContext(str, Enum):
    """Where a failure surfaced; used as the ``context`` metric label."""

    REQUEST = "request"
    BROKER = "broker"
    SOCKET = "socket"
    OTHER = "other"


@dataclasses.dataclass(frozen=True)
class ClassifiedError:
    """Normalized, redacted view of one failure.

    ``detail`` holds the kind-specific fields (``http``/``request``/
    ``response`` for HTTP client errors, ``db`` for database errors,
    ``error_name``/``stack_trace`` for generic ones).
    """

    kind: ErrorKind
    message: str
    detail: dict[str, Any] = dataclasses.field(default_factory=dict)
    is_redacted: bool = False
    code: str | None = None

    def to_log_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "error_type": self.kind.value,
            "error_message": self.message,
        }
        if self.code is not None:
            fields["error_code"] = self.code
        fields.update(self.detail)
        return fields


__all__ = ["ClassifiedError", "ErrorKind", "OriginContext"]
