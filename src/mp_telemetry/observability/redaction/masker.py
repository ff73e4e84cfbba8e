"""Observability – SensitiveDataMasker.

Key-based redaction for log metadata, headers and error details.  A key is
sensitive when any configured field name occurs in it, case-insensitively
(``x-api-key`` matches ``key``, ``userPassword`` matches ``password``).
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from mp_telemetry.kernel.security.pii import (
    CIRCULAR,
    DEFAULT_SENSITIVE_FIELDS,
    MASKING_ERROR,
    REDACTED,
)

logger = logging.getLogger(__name__)


class SensitiveDataMasker:
    """Return redacted copies of nested records; the input is never mutated.

    * mappings are walked key by key; a sensitive key gets :data:`REDACTED`
      regardless of the value's type
    * lists and tuples are walked element-wise, so arrays of objects are
      masked too
    * a container already on the current path is replaced by
      :data:`CIRCULAR`
    * anything unexpected during the walk yields :data:`MASKING_ERROR`
    """

    def __init__(self, sensitive_fields: Iterable[str] | None = None) -> None:
        fields = DEFAULT_SENSITIVE_FIELDS if sensitive_fields is None else sensitive_fields
        self._fields: tuple[str, ...] = tuple(f.lower() for f in fields if f)

    @property
    def sensitive_fields(self) -> tuple[str, ...]:
        return self._fields

    def is_sensitive(self, key: Any) -> bool:
        name = str(key).lower()
        return any(field in name for field in self._fields)

    def mask(self, record: Any) -> Any:
        try:
            return self._walk(record, set())
        except Exception as exc:  # noqa: BLE001
            logger.debug("masker.failed error=%s", type(exc).__name__)
            return MASKING_ERROR

    def mask_headers(self, headers: Mapping[str, Any] | None) -> dict[str, Any] | None:
        """Flat variant for header maps: only top-level keys are inspected."""
        if headers is None:
            return None
        try:
            return {k: (REDACTED if self.is_sensitive(k) else v) for k, v in headers.items()}
        except Exception as exc:  # noqa: BLE001
            logger.debug("masker.headers_failed error=%s", type(exc).__name__)
            return {"headers": MASKING_ERROR}

    def _walk(self, node: Any, path: set[int]) -> Any:
        if isinstance(node, Mapping):
            if id(node) in path:
                return CIRCULAR
            path.add(id(node))
            try:
                return {
                    k: (REDACTED if self.is_sensitive(k) else self._walk(v, path))
                    for k, v in node.items()
                }
            finally:
                path.discard(id(node))
        if isinstance(node, (list, tuple)):
            if id(node) in path:
                return CIRCULAR
            path.add(id(node))
            try:
                return [self._walk(item, path) for item in node]
            finally:
                path.discard(id(node))
        return node


def mask_sensitive_data(record: Any, sensitive_fields: Iterable[str] | None = None) -> Any:
    return SensitiveDataMasker(sensitive_fields).mask(record)


def mask_headers(
    headers: Mapping[str, Any] | None,
    sensitive_fields: Iterable[str] | None = None,
) -> dict[str, Any] | None:
    return SensitiveDataMasker(sensitive_fields).mask_headers(headers)


__all__ = ["SensitiveDataMasker", "mask_headers", "mask_sensitive_data"]
