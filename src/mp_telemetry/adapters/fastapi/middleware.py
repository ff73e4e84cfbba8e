"""FastAPI adapter – FastAPITraceMiddleware.

Pure ASGI middleware: it continues the caller's trace from the request
headers, keeps a ``SERVER`` span active while the app handles the request,
and records the request metric with the route template once routing has
resolved it.
"""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Iterable

from opentelemetry.trace import SpanKind, TracerProvider

from mp_telemetry.observability.correlation import HttpCarrierCodec, extract_context
from mp_telemetry.observability.errors import ErrorObserver, OriginContext
from mp_telemetry.observability.metrics import TelemetryMetrics
from mp_telemetry.observability.tracing import (
    bound_span,
    get_tracer,
    mark_ok,
    rename_span,
    set_attributes,
    set_error_status,
)

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

DEFAULT_IGNORED_PATHS: frozenset[str] = frozenset({
    "/health",
    "/healthz",
    "/ready",
    "/metrics",
    "/favicon.ico",
})


def _require_fastapi() -> None:
    try:
        import fastapi  # noqa: F401
    except ImportError as exc:
        raise ImportError(
            "Install 'mp-telemetry[fastapi]' to use the FastAPI adapter"
        ) from exc


def _header(scope: "Scope", name: bytes) -> str | None:
    for key, value in scope.get("headers") or []:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def _status_of(error: BaseException) -> int:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 500


def route_of(scope: "Scope") -> str:
    """Route template chosen by the router, or the raw path before routing."""
    route = scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    return template if isinstance(template, str) and template else scope.get("path", "/")


class FastAPITraceMiddleware:
    """Continue the inbound trace and record ``http_*`` metrics per request.

    Usage::

        app.add_middleware(
            FastAPITraceMiddleware,
            metrics=telemetry_metrics,
            observer=error_observer,
            service_name="orders",
        )
    """

    def __init__(
        self,
        app: "ASGIApp",
        metrics: TelemetryMetrics | None = None,
        observer: ErrorObserver | None = None,
        service_name: str | None = None,
        tracer_provider: TracerProvider | None = None,
        ignored_paths: Iterable[str] = DEFAULT_IGNORED_PATHS,
    ) -> None:
        _require_fastapi()
        self.app = app
        self._metrics = metrics
        self._observer = observer
        self._service_name = service_name
        self._tracer = get_tracer(tracer_provider)
        self._codec = HttpCarrierCodec()
        self._ignored = frozenset(ignored_paths)

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        if scope["type"] != "http" or scope.get("path") in self._ignored:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path = scope.get("path", "/")
        parent = extract_context(self._codec.extract(scope.get("headers") or []))
        client = scope.get("client")
        attributes: dict[str, Any] = {
            "http.method": method,
            "http.target": path,
            "http.scheme": scope.get("scheme"),
            "service.name": self._service_name,
            "client.address": client[0] if client else None,
            "user_agent.original": _header(scope, b"user-agent"),
        }
        status_code = [200]
        start = time.perf_counter()

        async def send_capturing(message: "Message") -> None:
            if message["type"] == "http.response.start":
                status_code[0] = message.get("status", 200)
            await send(message)

        with bound_span(
            self._tracer, f"{method} {path}", kind=SpanKind.SERVER,
            attributes=attributes, parent=parent,
        ) as span:
            try:
                await self.app(scope, receive, send_capturing)
            except Exception as exc:
                route = route_of(scope)
                if self._observer is not None:
                    self._observer.observe(
                        exc,
                        OriginContext.REQUEST,
                        context_info={
                            "method": method,
                            "url": path + (f"?{scope['query_string'].decode('latin-1')}" if scope.get("query_string") else ""),
                            "path": path,
                            "route": route,
                            "path_params": dict(scope.get("path_params") or {}),
                        },
                        description=f"{method} {route}",
                        span=span,
                    )
                self._finish(span, method, route, _status_of(exc), start)
                raise
            self._finish(span, method, route_of(scope), status_code[0], start)

    def _finish(self, span: Any, method: str, route: str, status: int, start: float) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        rename_span(span, f"{method} {route}")
        set_attributes(span, {"http.route": route, "http.status_code": status})
        if status >= 500:
            set_error_status(span, f"HTTP {status}")
        else:
            mark_ok(span)
        if self._metrics is not None:
            self._metrics.record_request(method, route, status, elapsed_ms)


__all__ = ["DEFAULT_IGNORED_PATHS", "FastAPITraceMiddleware", "route_of"]
