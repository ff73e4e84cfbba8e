"""Observability – redaction and truncation of logged payloads."""
from mp_telemetry.observability.redaction.masker import (
    SensitiveDataMasker,
    mask_headers,
    mask_sensitive_data,
)
from mp_telemetry.observability.redaction.truncation import TRUNCATION_MARKER, truncate_body

__all__ = [
    "SensitiveDataMasker",
    "TRUNCATION_MARKER",
    "mask_headers",
    "mask_sensitive_data",
    "truncate_body",
]
