"""Kernel security – redaction port, default sensitive fields and sentinels."""
from __future__ import annotations

from typing import Any, Protocol


class PIIRedactor(Protocol):
    """Port: redact sensitive values from a structured record."""

    def mask(self, record: Any) -> Any: ...


# Matched as case-insensitive substrings of a key, so ``key`` also covers
# ``x-api-key`` and ``private`` covers ``private_key``.
DEFAULT_SENSITIVE_FIELDS: tuple[str, ...] = (
    "password",
    "token",
    "authorization",
    "secret",
    "key",
    "apikey",
    "api_key",
    "api-key",
    "bearer",
    "credential",
    "private",
    "cpf",
    "cnpj",
    "ssn",
    "credit_card",
    "card_number",
)

REDACTED = "[REDACTED]"
CIRCULAR = "[CIRCULAR]"
MASKING_ERROR = "[MASKING_ERROR]"
SERIALIZATION_ERROR = "[SERIALIZATION_ERROR]"


__all__ = [
    "CIRCULAR",
    "DEFAULT_SENSITIVE_FIELDS",
    "MASKING_ERROR",
    "PIIRedactor",
    "REDACTED",
    "SERIALIZATION_ERROR",
]
