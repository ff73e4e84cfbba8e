"""Socket.IO adapter – SocketIOTraceHook (python-socketio).

Each event handler runs inside a ``SERVER`` span named ``ws.<event>``.  The
parent trace is looked up in the connection's handshake headers, then in
the payload's ``_trace`` field, then in the ``traceparent``/``tracestate``
query parameters of the handshake URL.  Replies can carry the context back
to the client with
:func:`~mp_telemetry.observability.correlation.inject_trace_context`.
"""
from __future__ import annotations

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Mapping

from opentelemetry.trace import SpanKind, TracerProvider

from mp_telemetry.kernel.errors import InstrumentationError
from mp_telemetry.observability.correlation import (
    SocketCarrierCodec,
    SocketHandshake,
    extract_context,
)
from mp_telemetry.observability.errors import ErrorObserver, OriginContext
from mp_telemetry.observability.metrics import TelemetryMetrics
from mp_telemetry.observability.tracing import bound_span, get_tracer, mark_ok, set_attributes

logger = logging.getLogger(__name__)

EventHandler = Callable[..., Awaitable[Any]]


def _require_socketio() -> Any:
    try:
        import socketio  # type: ignore[import-untyped]
        return socketio
    except ImportError as exc:
        raise ImportError("Install 'mp-telemetry[socketio]' (python-socketio) to use this adapter") from exc


def _response_type(result: Any) -> str | None:
    if isinstance(result, (list, tuple)):
        return "array"
    if isinstance(result, Mapping):
        return "object"
    return None


class SocketIOTraceHook:
    """Wrap python-socketio ``async def handler(sid, data)`` event handlers.

    Usage::

        sio = socketio.AsyncServer(async_mode="asgi")
        hook = SocketIOTraceHook(sio, metrics=telemetry_metrics, observer=observer)

        @hook.on("chat:message")
        async def on_message(sid, data):
            return inject_trace_context({"ok": True})
    """

    def __init__(
        self,
        sio: Any = None,
        metrics: TelemetryMetrics | None = None,
        observer: ErrorObserver | None = None,
        tracer_provider: TracerProvider | None = None,
        service_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if sio is not None:
            _require_socketio()
        self._sio = sio
        self._metrics = metrics
        self._observer = observer
        self._tracer = get_tracer(tracer_provider)
        self._service_name = service_name
        self._namespace = namespace
        self._codec = SocketCarrierCodec()

    def on(self, event: str, namespace: str | None = None) -> Callable[[EventHandler], EventHandler]:
        """Decorator: wrap the handler and register it on the server."""
        if self._sio is None:
            raise InstrumentationError("SocketIOTraceHook.on() needs the server passed as 'sio'")

        def decorator(handler: EventHandler) -> EventHandler:
            ns = namespace or self._namespace
            traced = self.wrap(handler, event, namespace=ns)
            self._sio.on(event, handler=traced, namespace=ns)
            return traced

        return decorator

    def wrap(
        self, handler: EventHandler, event: str | None = None, namespace: str | None = None,
    ) -> EventHandler:
        event_name = event or handler.__name__

        @functools.wraps(handler)
        async def traced(sid: str, *args: Any) -> Any:
            return await self.run(handler, event_name, sid, *args, namespace=namespace)

        return traced

    def handshake(self, sid: str, namespace: str | None = None) -> SocketHandshake | None:
        """Handshake of *sid* as seen by *namespace* (the hook default if omitted)."""
        if self._sio is None:
            return None
        try:
            environ = self._sio.get_environ(sid, namespace=namespace or self._namespace)
        except Exception as exc:  # noqa: BLE001
            logger.debug("socketio.environ_unavailable sid=%s error=%s", sid, exc)
            return None
        return SocketHandshake.from_environ(environ)

    async def run(
        self, handler: EventHandler, event: str, sid: str, *args: Any, namespace: str | None = None,
    ) -> Any:
        data = args[0] if args else None
        handshake = self.handshake(sid, namespace)
        parent = extract_context(self._codec.extract(handshake, data))
        attributes = {
            "messaging.system": "socket.io",
            "ws.event.name": event,
            "ws.client.id": sid,
            "client.address": handshake.address if handshake else None,
            "user_agent.original": handshake.headers.get("user-agent") if handshake else None,
            "code.function": getattr(handler, "__qualname__", None),
            "service.name": self._service_name,
        }
        start = time.perf_counter()
        with bound_span(
            self._tracer, f"ws.{event}", kind=SpanKind.SERVER,
            attributes=attributes, parent=parent,
        ) as span:
            try:
                result = await handler(sid, *args)
            except Exception as exc:
                if self._observer is not None:
                    self._observer.observe(
                        exc,
                        OriginContext.SOCKET,
                        context_info={
                            "client_id": sid,
                            "event": event,
                            "data_fields": sorted(str(k) for k in data) if isinstance(data, Mapping) else None,
                        },
                        description=f"ws.{event}",
                        span=span,
                    )
                self._record(event, False, start)
                raise
            except BaseException:
                self._record(event, False, start)
                raise
            set_attributes(span, {"ws.response.type": _response_type(result)})
            mark_ok(span)
            self._record(event, True, start)
            return result

    def _record(self, event: str, success: bool, start: float) -> None:
        if self._metrics is not None:
            self._metrics.record_socket_event(event, success, (time.perf_counter() - start) * 1000)


__all__ = ["SocketIOTraceHook"]
