"""Unit tests for metric label normalization and the TelemetryMetrics aggregator."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from mp_telemetry.observability.metrics import (
    MAX_LABEL_LENGTH,
    InMemoryMetrics,
    NoopMetrics,
    TelemetryMetrics,
    normalize_route,
    normalize_routing_key,
)

USER_ID = "123e4567-e89b-12d3-a456-426614174000"


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalizeRoute:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            (f"/users/{USER_ID}", "/users/:id"),
            (f"/users/{USER_ID}/orders/42", "/users/:id/orders/:id"),
            ("/orders/42?expand=items", "/orders/:id"),
            ("/v2/health", "/v2/health"),
            ("/users/{user_id}", "/users/{user_id}"),
            ("/", "/"),
        ],
    )
    def test_high_cardinality_segments(self, path: str, expected: str) -> None:
        assert normalize_route(path) == expected

    def test_mixed_segment_kept(self) -> None:
        assert normalize_route("/files/v42") == "/files/v42"

    def test_length_capped(self) -> None:
        assert len(normalize_route("/" + "a" * 300)) == MAX_LABEL_LENGTH


class TestNormalizeRoutingKey:
    def test_uuid_replaced(self) -> None:
        assert normalize_routing_key(f"user.{USER_ID}.created") == "user.*.created"

    def test_long_numeric_segment_replaced(self) -> None:
        assert normalize_routing_key("order.1234567890.paid") == "order.*.paid"

    def test_short_numeric_segment_kept(self) -> None:
        assert normalize_routing_key("order.v1.paid") == "order.v1.paid"
        assert normalize_routing_key("shard.123.rebalance") == "shard.123.rebalance"

    def test_empty(self) -> None:
        assert normalize_routing_key("") == ""


# ---------------------------------------------------------------------------
# InMemoryMetrics
# ---------------------------------------------------------------------------


class TestInMemoryMetrics:
    def test_counter_series_by_labels(self) -> None:
        metrics = InMemoryMetrics()
        counter = metrics.counter("jobs_total")
        counter.add(1, {"queue": "a"})
        counter.add(2, {"queue": "a"})
        counter.add(1, {"queue": "b"})
        assert metrics.counter_value("jobs_total", queue="a") == 3
        assert metrics.counter_total("jobs_total") == 4
        assert metrics.counter_value("missing") == 0

    def test_same_instrument_returned(self) -> None:
        metrics = InMemoryMetrics()
        assert metrics.counter("x") is metrics.counter("x")

    def test_concurrent_increments_not_lost(self) -> None:
        metrics = InMemoryMetrics()

        def work() -> None:
            for _ in range(1000):
                metrics.counter("hits").add(1, {"k": "v"})

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert metrics.counter_value("hits", k="v") == 8000

    def test_reset(self) -> None:
        metrics = InMemoryMetrics()
        metrics.counter("x").add(1)
        metrics.histogram("y").record(0.1)
        assert list(metrics.names()) == ["x", "y"]
        metrics.reset()
        assert list(metrics.names()) == []


# ---------------------------------------------------------------------------
# TelemetryMetrics
# ---------------------------------------------------------------------------


class TestTelemetryMetrics:
    def setup_method(self) -> None:
        self.metrics = InMemoryMetrics()
        self.telemetry = TelemetryMetrics(self.metrics)

    def test_request_with_uuid_path(self) -> None:
        self.telemetry.record_request("get", f"/users/{USER_ID}", 200, 12.5)

        labels = {"method": "GET", "route": "/users/:id", "status_code": "200"}
        assert self.metrics.counter_value("http_requests_total", **labels) == 1
        assert self.metrics.counter_value("http_errors_total", **labels) == 0
        assert self.metrics.histogram_values("http_request_duration_seconds", **labels) == [0.0125]

    def test_failed_request_counts_error(self) -> None:
        self.telemetry.record_request("POST", "/orders", 404, 3.0)
        self.telemetry.record_request("POST", "/orders", 500, 3.0)
        assert self.metrics.counter_total("http_errors_total") == 2
        assert self.metrics.counter_value(
            "http_errors_total", method="POST", route="/orders", status_code="500",
        ) == 1

    def test_broker_message(self) -> None:
        self.telemetry.record_broker_message("orders", f"order.{USER_ID}.created", "consume", True, 250)
        labels = {"exchange": "orders", "routing_key": "order.*.created", "operation": "consume"}
        assert self.metrics.counter_value("rabbitmq_messages_total", **labels) == 1
        assert self.metrics.histogram_values("rabbitmq_processing_duration_seconds", **labels) == [0.25]

    def test_broker_failure_without_duration(self) -> None:
        self.telemetry.record_broker_message("orders", "order.created", "publish", False)
        labels = {"exchange": "orders", "routing_key": "order.created", "operation": "publish"}
        assert self.metrics.counter_value("rabbitmq_errors_total", **labels) == 1
        assert self.metrics.histogram_values("rabbitmq_processing_duration_seconds", **labels) == []

    def test_socket_event(self) -> None:
        self.telemetry.record_socket_event("chat:message", False, 5)
        assert self.metrics.counter_value("websocket_events_total", event="chat:message") == 1
        assert self.metrics.counter_value("websocket_errors_total", event="chat:message") == 1
        assert self.metrics.histogram_values("websocket_event_duration_seconds", event="chat:message") == [0.005]

    def test_error_code_defaults_to_unknown(self) -> None:
        self.telemetry.record_error("GENERIC", "request")
        self.telemetry.record_error("DB_KNOWN_CONSTRAINT_ERROR", "broker", "23505")
        assert self.metrics.counter_value(
            "errors_total", error_type="GENERIC", context="request", error_code="unknown",
        ) == 1
        assert self.metrics.counter_value(
            "errors_total", error_type="DB_KNOWN_CONSTRAINT_ERROR", context="broker", error_code="23505",
        ) == 1

    def test_label_values_capped(self) -> None:
        self.telemetry.record_socket_event("e" * 500, True)
        assert self.metrics.counter_value("websocket_events_total", event="e" * MAX_LABEL_LENGTH) == 1

    def test_custom_instruments(self) -> None:
        self.telemetry.create_counter("orders_created_total").add(1, {"plan": "pro"})
        self.telemetry.create_histogram("checkout_seconds").record(1.5)
        assert self.metrics.counter_value("orders_created_total", plan="pro") == 1
        assert self.metrics.histogram_values("checkout_seconds") == [1.5]

    def test_backend_failure_is_swallowed(self) -> None:
        backend = MagicMock()
        backend.counter.return_value.add.side_effect = RuntimeError("exporter gone")
        telemetry = TelemetryMetrics(backend)
        telemetry.record_request("GET", "/", 200, 1)
        telemetry.record_error("GENERIC", "request")

    def test_noop_backend(self) -> None:
        telemetry = TelemetryMetrics(NoopMetrics())
        telemetry.record_request("GET", "/", 200, 1)
        telemetry.record_socket_event("x", True)
