"""Shared fixtures: an isolated SDK tracer provider and log capture sinks."""
from __future__ import annotations

from typing import Iterator

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from mp_telemetry.observability.logging import LogSink, StructuredLogEntry, set_default_pipeline
from mp_telemetry.observability.tracing import get_tracer

TRACE_ID = "0af7651916cd43dd8448eb211c80319c"
PARENT_SPAN_ID = "b7ad6b7169203331"
TRACEPARENT = f"00-{TRACE_ID}-{PARENT_SPAN_ID}-01"


class CollectingSink(LogSink):
    """Keeps every entry it is given."""

    name = "collecting"

    def __init__(self) -> None:
        self.entries: list[StructuredLogEntry] = []

    def write(self, entry: StructuredLogEntry) -> None:
        self.entries.append(entry)

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.entries]


class FailingSink(LogSink):
    """Raises on every write and counts the attempts."""

    name = "failing"

    def __init__(self) -> None:
        self.attempts = 0

    def write(self, entry: StructuredLogEntry) -> None:
        self.attempts += 1
        raise ConnectionError("collector unreachable")


@pytest.fixture()
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture()
def tracer_provider(span_exporter: InMemorySpanExporter) -> Iterator[TracerProvider]:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture()
def tracer(tracer_provider: TracerProvider):
    return get_tracer(tracer_provider)


@pytest.fixture(autouse=True)
def _reset_default_pipeline() -> Iterator[None]:
    yield
    set_default_pipeline(None)


@pytest.fixture()
def collecting_sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture()
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture()
def traceparent() -> str:
    return TRACEPARENT
