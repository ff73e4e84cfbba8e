"""Kernel errors – BaseError, root of every error mp-telemetry raises."""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Exception carrying a stable ``code`` and a structured ``detail``.

    ``str()`` yields a single JSON line, so an error that reaches a log
    record or a span event stays machine-readable.

    Args:
        message: Human-readable description.
        code: Stable slug; the subclass's ``default_code`` when omitted.
        detail: Extra context, kept JSON-friendly.
        cause: Underlying exception, also chained as ``__cause__``.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = detail or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Plain dict form used as ``extra`` on log entries."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload


__all__ = ["BaseError"]
