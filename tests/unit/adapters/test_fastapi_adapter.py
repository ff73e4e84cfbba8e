"""Unit / integration tests for the FastAPI trace middleware."""
from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from opentelemetry.trace import SpanKind, StatusCode

from mp_telemetry.adapters.fastapi import FastAPITraceMiddleware, route_of
from mp_telemetry.observability.correlation import current_trace_id
from mp_telemetry.observability.errors import ErrorObserver
from mp_telemetry.observability.logging import LogPipeline, StructuredLogger
from mp_telemetry.observability.metrics import InMemoryMetrics, TelemetryMetrics

TRACE_ID = "0af7651916cd43dd8448eb211c80319c"
TRACEPARENT = f"00-{TRACE_ID}-b7ad6b7169203331-01"
USER_ID = "123e4567-e89b-12d3-a456-426614174000"


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class TestFastAPITraceMiddleware:
    @pytest.fixture(autouse=True)
    def _app(self, tracer_provider, collecting_sink) -> None:
        self.metrics = InMemoryMetrics()
        telemetry = TelemetryMetrics(self.metrics)
        self.sink = collecting_sink
        pipeline = LogPipeline("users-api", "production", console_enabled=False, remote=collecting_sink)
        observer = ErrorObserver(StructuredLogger(pipeline, "ErrorObserver"), telemetry)
        self.seen_trace_ids: list[str | None] = []

        app = FastAPI()
        app.add_middleware(
            FastAPITraceMiddleware,
            metrics=telemetry,
            observer=observer,
            service_name="users-api",
            tracer_provider=tracer_provider,
        )

        @app.get("/users/{user_id}")
        async def get_user(user_id: str) -> dict[str, str]:
            self.seen_trace_ids.append(current_trace_id())
            return {"id": user_id}

        @app.get("/missing-user")
        async def missing_user() -> None:
            raise HTTPException(status_code=404, detail="not found")

        @app.get("/crash/{item_id}")
        async def crash(item_id: int) -> None:
            raise RuntimeError("database on fire")

        @app.get("/health")
        async def health() -> dict[str, str]:
            return {"status": "ok"}

        self.client = TestClient(app, raise_server_exceptions=False)

    def test_span_continues_inbound_trace(self, span_exporter) -> None:
        response = self.client.get(f"/users/{USER_ID}", headers={"traceparent": TRACEPARENT})
        assert response.status_code == 200

        span = span_exporter.get_finished_spans()[-1]
        assert span.kind is SpanKind.SERVER
        assert span.name == "GET /users/{user_id}"
        assert format(span.context.trace_id, "032x") == TRACE_ID
        assert span.parent.span_id == int("b7ad6b7169203331", 16)
        assert span.attributes["http.route"] == "/users/{user_id}"
        assert span.attributes["http.status_code"] == 200
        assert span.attributes["http.target"] == f"/users/{USER_ID}"
        assert span.attributes["service.name"] == "users-api"
        assert span.status.status_code is StatusCode.OK

    def test_handler_sees_active_trace(self) -> None:
        self.client.get(f"/users/{USER_ID}", headers={"traceparent": TRACEPARENT})
        assert self.seen_trace_ids == [TRACE_ID]

    def test_request_without_trace_starts_new_root(self, span_exporter) -> None:
        self.client.get("/users/7")
        span = span_exporter.get_finished_spans()[-1]
        assert span.parent is None
        assert self.seen_trace_ids == [format(span.context.trace_id, "032x")]

    def test_request_metric_uses_route_template(self) -> None:
        self.client.get(f"/users/{USER_ID}")
        self.client.get("/users/42")
        assert self.metrics.counter_value(
            "http_requests_total", method="GET", route="/users/{user_id}", status_code="200",
        ) == 2
        assert len(self.metrics.histogram_values(
            "http_request_duration_seconds", method="GET", route="/users/{user_id}", status_code="200",
        )) == 2

    def test_handled_client_error(self, span_exporter) -> None:
        response = self.client.get("/missing-user")
        assert response.status_code == 404

        span = span_exporter.get_finished_spans()[-1]
        assert span.attributes["http.status_code"] == 404
        assert span.status.status_code is not StatusCode.ERROR
        assert self.metrics.counter_value(
            "http_errors_total", method="GET", route="/missing-user", status_code="404",
        ) == 1
        assert self.sink.entries == []

    def test_unhandled_exception_observed(self, span_exporter) -> None:
        response = self.client.get("/crash/5", headers={"traceparent": TRACEPARENT})
        assert response.status_code == 500

        span = span_exporter.get_finished_spans()[-1]
        assert span.name == "GET /crash/{item_id}"
        assert span.status.status_code is StatusCode.ERROR
        assert span.attributes["error.type"] == "GENERIC"
        assert span.attributes["http.status_code"] == 500

        assert self.metrics.counter_value(
            "http_errors_total", method="GET", route="/crash/{item_id}", status_code="500",
        ) == 1
        assert self.metrics.counter_value(
            "errors_total", error_type="GENERIC", context="request", error_code="unknown",
        ) == 1

        entry = self.sink.entries[0]
        assert entry.message == "Error in GET /crash/{item_id}"
        assert entry.trace_id == TRACE_ID
        assert entry.extra["origin"] == "request"
        assert entry.extra["origin_context"]["path_params"] == {"item_id": "5"}

    def test_ignored_paths_not_traced(self, span_exporter) -> None:
        assert self.client.get("/health").status_code == 200
        assert span_exporter.get_finished_spans() == ()
        assert self.metrics.counter_total("http_requests_total") == 0

    def test_unknown_path_uses_raw_path(self, span_exporter) -> None:
        assert self.client.get("/nope").status_code == 404
        assert span_exporter.get_finished_spans()[-1].attributes["http.route"] == "/nope"

    def test_unrouted_path_ids_collapse_in_metric(self) -> None:
        self.client.get(f"/accounts/{USER_ID}")
        self.client.get("/accounts/42")
        assert self.metrics.counter_value(
            "http_requests_total", method="GET", route="/accounts/:id", status_code="404",
        ) == 2


class TestRouteOf:
    def test_prefers_path_format(self) -> None:
        class Route:
            path_format = "/items/{item_id}"
            path = "/items/{item_id:int}"

        assert route_of({"route": Route(), "path": "/items/3"}) == "/items/{item_id}"

    def test_falls_back_to_path(self) -> None:
        assert route_of({"path": "/raw"}) == "/raw"
        assert route_of({}) == "/"


class TestImportGuard:
    def test_missing_fastapi_raises(self) -> None:
        from unittest.mock import patch

        with patch(
            "mp_telemetry.adapters.fastapi.middleware._require_fastapi",
            side_effect=ImportError("mp-telemetry[fastapi]"),
        ):
            with pytest.raises(ImportError, match="fastapi"):
                FastAPITraceMiddleware(app=None)
