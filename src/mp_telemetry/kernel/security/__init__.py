"""Kernel security – sensitive-field defaults and redaction sentinels."""
from mp_telemetry.kernel.security.pii import (
    CIRCULAR,
    DEFAULT_SENSITIVE_FIELDS,
    MASKING_ERROR,
    REDACTED,
    SERIALIZATION_ERROR,
    PIIRedactor,
)

__all__ = [
    "CIRCULAR",
    "DEFAULT_SENSITIVE_FIELDS",
    "MASKING_ERROR",
    "PIIRedactor",
    "REDACTED",
    "SERIALIZATION_ERROR",
]
