"""Application-layer errors raised by the telemetry library itself."""

from __future__ import annotations

from mp_telemetry.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Misuse or misconfiguration of the library by the host application."""

    default_code = "application_error"


class InstrumentationError(ApplicationError):
    """A hook or instrumentor was applied to an unsupported target."""

    default_code = "instrumentation_error"


__all__ = ["ApplicationError", "InstrumentationError"]
