"""Observability – label normalization for bounded metric cardinality."""
from __future__ import annotations

import re

MAX_LABEL_LENGTH = 100

_UUID = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
_UUID_RE = re.compile(_UUID)
_UUID_SEGMENT_RE = re.compile(rf"(?<=/){_UUID}(?=/|$)")
_NUMERIC_SEGMENT_RE = re.compile(r"(?<=/)\d+(?=/|$)")
_LONG_NUMERIC_KEY_RE = re.compile(r"(?<![^.])\d{10,}(?![^.])")


def normalize_route(path: str) -> str:
    """``/users/42/orders/<uuid>`` -> ``/users/:id/orders/:id``."""
    route = path.split("?", 1)[0]
    route = _UUID_SEGMENT_RE.sub(":id", route)
    route = _NUMERIC_SEGMENT_RE.sub(":id", route)
    return route[:MAX_LABEL_LENGTH]


def normalize_routing_key(routing_key: str) -> str:
    """``order.<uuid>.created`` -> ``order.*.created``; long ids become ``*`` too."""
    key = _UUID_RE.sub("*", routing_key)
    key = _LONG_NUMERIC_KEY_RE.sub("*", key)
    return key[:MAX_LABEL_LENGTH]


__all__ = ["MAX_LABEL_LENGTH", "normalize_route", "normalize_routing_key"]
