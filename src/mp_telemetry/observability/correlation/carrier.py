"""Observability – Carrier type and the CarrierCodec port."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol

Carrier = dict[str, str]

TRACEPARENT = "traceparent"
TRACESTATE = "tracestate"
PROPAGATION_KEYS = (TRACEPARENT, TRACESTATE)

# Payload field carrying a carrier in socket messages, both directions.
TRACE_FIELD = "_trace"


class CarrierCodec(Protocol):
    """Port: convert between a transport shape and a :data:`Carrier`."""

    def extract(self, shape: Any) -> Carrier: ...


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    if isinstance(value, (list, tuple)):
        return _text(value[0]) if value else None
    return str(value)


def carrier_from_pairs(pairs: Iterable[tuple[Any, Any]]) -> Carrier:
    """Lowercase keys; the first value seen for a key wins."""
    carrier: Carrier = {}
    for raw_key, raw_value in pairs:
        key = _text(raw_key)
        value = _text(raw_value)
        if not key or value is None:
            continue
        carrier.setdefault(key.lower(), value)
    return carrier


def carrier_from_mapping(mapping: Mapping[Any, Any] | None) -> Carrier:
    if not mapping:
        return {}
    items = mapping.items()
    return carrier_from_pairs(items)


__all__ = [
    "Carrier",
    "CarrierCodec",
    "PROPAGATION_KEYS",
    "TRACEPARENT",
    "TRACESTATE",
    "TRACE_FIELD",
    "carrier_from_mapping",
    "carrier_from_pairs",
]
