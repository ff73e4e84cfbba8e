"""Observability – request/response body truncation."""
from __future__ import annotations

import json
import logging
from typing import Any

from mp_telemetry.kernel.security.pii import SERIALIZATION_ERROR

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... [TRUNCATED - total: {total} bytes]"


def truncate_body(value: Any, max_bytes: int) -> Any:
    """Bound a body's serialised size at *max_bytes* UTF-8 bytes.

    * ``None`` stays ``None``
    * bytes are decoded as UTF-8 (invalid sequences replaced) and treated
      as text
    * other non-string values are JSON-encoded first; failing that the
      :data:`SERIALIZATION_ERROR` sentinel is returned
    * within the limit, strings come back unchanged and structured values
      come back as their JSON round-trip
    * over the limit, the first *max_bytes* bytes are kept and the marker
      ``... [TRUNCATED - total: N bytes]`` appended, N being the full size.
      A character straddling the cut is dropped whole, so the head can be up
      to three bytes short of *max_bytes* but is always valid UTF-8
    """
    if value is None:
        return None

    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")

    structured = not isinstance(value, str)
    if structured:
        try:
            serialized = json.dumps(value, default=str, ensure_ascii=False)
        except Exception as exc:  # noqa: BLE001
            logger.debug("truncate_body.serialization_failed error=%s", type(exc).__name__)
            return SERIALIZATION_ERROR
    else:
        serialized = value

    encoded = serialized.encode("utf-8")
    total = len(encoded)
    if total <= max_bytes:
        return json.loads(serialized) if structured else serialized

    head = encoded[:max(max_bytes, 0)].decode("utf-8", errors="ignore")
    return head + TRUNCATION_MARKER.format(total=total)


__all__ = ["TRUNCATION_MARKER", "truncate_body"]
