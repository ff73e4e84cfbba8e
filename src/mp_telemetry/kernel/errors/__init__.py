"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── ApplicationError       (application.py)
    │   └── InstrumentationError
    └── InfrastructureError    (infrastructure.py)
        └── TelemetryExportError

Configuration errors (``ConfigError`` and friends) live in
:mod:`mp_telemetry.config.validation` and derive from ``ApplicationError``.
"""

from mp_telemetry.kernel.errors.application import ApplicationError, InstrumentationError
from mp_telemetry.kernel.errors.base import BaseError
from mp_telemetry.kernel.errors.infrastructure import (
    InfrastructureError,
    TelemetryExportError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "InfrastructureError",
    "InstrumentationError",
    "TelemetryExportError",
]
