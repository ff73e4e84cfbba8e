"""Observability – per-transport carrier codecs.

Extraction never raises: malformed input is logged at debug level and
yields an empty (or partial) carrier, which simply means "no parent".
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, Mapping
from urllib.parse import parse_qs

from opentelemetry.context import Context

from mp_telemetry.observability.correlation.carrier import (
    PROPAGATION_KEYS,
    TRACE_FIELD,
    Carrier,
    carrier_from_mapping,
    carrier_from_pairs,
)
from mp_telemetry.observability.correlation.context import inject_current

logger = logging.getLogger(__name__)


class HttpCarrierCodec:
    """Request headers -> carrier.

    Accepts a mapping, a sequence of ``(name, value)`` pairs or raw ASGI
    ``(bytes, bytes)`` header pairs.
    """

    def extract(self, headers: Mapping[Any, Any] | Iterable[tuple[Any, Any]] | None) -> Carrier:
        if headers is None:
            return {}
        try:
            if isinstance(headers, Mapping) or hasattr(headers, "items"):
                return carrier_from_mapping(headers)  # type: ignore[arg-type]
            return carrier_from_pairs(headers)
        except Exception as exc:  # noqa: BLE001
            logger.debug("carrier.http_extract_failed error=%s", exc)
            return {}


class BrokerCarrierCodec:
    """Message header map <-> carrier."""

    def extract(self, headers: Mapping[str, Any] | None) -> Carrier:
        try:
            return carrier_from_mapping(headers)
        except Exception as exc:  # noqa: BLE001
            logger.debug("carrier.broker_extract_failed error=%s", exc)
            return {}

    def inject(self, carrier: Carrier, headers: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """New header map: caller headers plus the carrier's keys."""
        merged: dict[str, Any] = dict(headers or {})
        merged.update(carrier)
        return merged

    def inject_current(
        self,
        headers: Mapping[str, Any] | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return self.inject(inject_current(context=context), headers)


@dataclasses.dataclass(frozen=True)
class SocketHandshake:
    """What a socket server knows about the connection that sent an event."""

    headers: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    query: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    address: str | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any] | None) -> "SocketHandshake":
        """Build from a WSGI-style environ (what python-socketio exposes).

        ``HTTP_X_FOO`` keys become ``x-foo`` headers and ``QUERY_STRING``
        is parsed into lists of values.
        """
        if not environ:
            return cls()
        headers: dict[str, str] = {}
        for key, value in environ.items():
            if isinstance(key, str) and key.startswith("HTTP_"):
                headers[key[5:].replace("_", "-").lower()] = value
        query_string = environ.get("QUERY_STRING") or ""
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        return cls(
            headers=headers,
            query=parse_qs(query_string),
            address=environ.get("REMOTE_ADDR"),
        )


class SocketCarrierCodec:
    """Socket handshake + event payload -> carrier.

    Sources are merged in order, later ones overriding earlier ones only for
    the keys they define:

    1. handshake headers
    2. the payload's ``_trace`` sub-map
    3. the ``traceparent`` / ``tracestate`` handshake query parameters
    """

    def extract(self, handshake: SocketHandshake | None, payload: Any = None) -> Carrier:
        carrier: Carrier = {}
        for source in (self._from_headers, self._from_payload, self._from_query):
            try:
                carrier.update(source(handshake, payload))
            except Exception as exc:  # noqa: BLE001
                logger.debug("carrier.socket_extract_failed source=%s error=%s", source.__name__, exc)
        return carrier

    @staticmethod
    def _from_headers(handshake: SocketHandshake | None, payload: Any) -> Carrier:  # noqa: ARG004
        return carrier_from_mapping(handshake.headers) if handshake else {}

    @staticmethod
    def _from_payload(handshake: SocketHandshake | None, payload: Any) -> Carrier:  # noqa: ARG004
        if not isinstance(payload, Mapping):
            return {}
        trace_map = payload.get(TRACE_FIELD)
        if not isinstance(trace_map, Mapping):
            return {}
        return carrier_from_mapping(trace_map)

    @staticmethod
    def _from_query(handshake: SocketHandshake | None, payload: Any) -> Carrier:  # noqa: ARG004
        if handshake is None or not handshake.query:
            return {}
        query = carrier_from_mapping(handshake.query)
        return {key: query[key] for key in PROPAGATION_KEYS if key in query}


def inject_trace_context(payload: Any, context: Context | None = None) -> dict[str, Any]:
    """Copy of *payload* with the active context under ``_trace``.

    Non-mapping payloads are wrapped as ``{"data": payload}``.  The input is
    left untouched.
    """
    body = dict(payload) if isinstance(payload, Mapping) else {"data": payload}
    body[TRACE_FIELD] = inject_current(context=context)
    return body


__all__ = [
    "BrokerCarrierCodec",
    "HttpCarrierCodec",
    "SocketCarrierCodec",
    "SocketHandshake",
    "inject_trace_context",
]
