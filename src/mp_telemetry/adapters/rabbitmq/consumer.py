"""RabbitMQ adapter – RabbitMQConsumerHook."""
from __future__ import annotations

import functools
import json
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from opentelemetry.trace import SpanKind, TracerProvider

from mp_telemetry.adapters.rabbitmq._support import exchange_label
from mp_telemetry.observability.correlation import BrokerCarrierCodec, extract_context
from mp_telemetry.observability.errors import ErrorObserver, OriginContext
from mp_telemetry.observability.metrics import TelemetryMetrics
from mp_telemetry.observability.tracing import bound_span, get_tracer, mark_ok

logger = logging.getLogger(__name__)

T = TypeVar("T")
MessageHandler = Callable[[Any], Awaitable[T]]


def queue_from_consumer_tag(consumer_tag: Any) -> str:
    """``orders-ctag-1`` -> ``orders``; ``unknown`` when there is no tag."""
    if not consumer_tag:
        return "unknown"
    return str(consumer_tag).split("-", 1)[0] or "unknown"


def _message_fields(body: Any) -> list[str] | None:
    try:
        payload = json.loads(body) if isinstance(body, (bytes, bytearray, str)) else body
    except (TypeError, ValueError):
        return None
    return sorted(str(k) for k in payload) if isinstance(payload, dict) else None


class RabbitMQConsumerHook:
    """Run aio-pika message handlers inside a ``CONSUMER`` span.

    The span continues the trace found in the message headers and is active
    for the whole handler, so nested logs and publishes join it::

        hook = RabbitMQConsumerHook(metrics=telemetry_metrics, observer=observer)

        @hook.wrap
        async def on_order(message: aio_pika.abc.AbstractIncomingMessage) -> None:
            ...

        await queue.consume(on_order)
    """

    def __init__(
        self,
        metrics: TelemetryMetrics | None = None,
        observer: ErrorObserver | None = None,
        tracer_provider: TracerProvider | None = None,
        service_name: str | None = None,
    ) -> None:
        self._metrics = metrics
        self._observer = observer
        self._tracer = get_tracer(tracer_provider)
        self._service_name = service_name
        self._codec = BrokerCarrierCodec()

    def wrap(self, handler: MessageHandler[T], queue: str | None = None) -> MessageHandler[T]:
        @functools.wraps(handler)
        async def traced(message: Any) -> T:
            return await self.run(handler, message, queue)

        return traced

    async def run(self, handler: MessageHandler[T], message: Any, queue: str | None = None) -> T:
        exchange = exchange_label(getattr(message, "exchange", None))
        routing_key = str(getattr(message, "routing_key", None) or "")
        consumer_tag = getattr(message, "consumer_tag", None)
        queue_name = queue or queue_from_consumer_tag(consumer_tag)
        parent = extract_context(self._codec.extract(getattr(message, "headers", None)))
        attributes = {
            "messaging.system": "rabbitmq",
            "messaging.operation": "process",
            "messaging.destination": exchange,
            "messaging.rabbitmq.exchange": exchange,
            "messaging.rabbitmq.routing_key": routing_key,
            "messaging.rabbitmq.queue": queue_name,
            "code.function": getattr(handler, "__qualname__", None),
            "code.namespace": getattr(handler, "__module__", None),
            "service.name": self._service_name,
        }
        start = time.perf_counter()
        with bound_span(
            self._tracer, f"{exchange} process", kind=SpanKind.CONSUMER,
            attributes=attributes, parent=parent,
        ) as span:
            try:
                result = await handler(message)
            except Exception as exc:
                if self._observer is not None:
                    self._observer.observe(
                        exc,
                        OriginContext.BROKER,
                        context_info={
                            "exchange": exchange,
                            "topic": routing_key,
                            "queue": queue_name,
                            "consumer_tag": consumer_tag,
                            "delivery_tag": getattr(message, "delivery_tag", None),
                            "message_fields": _message_fields(getattr(message, "body", None)),
                        },
                        description=f"{queue_name}/{getattr(handler, '__name__', 'handler')}",
                        span=span,
                    )
                self._record(exchange, routing_key, False, start)
                raise
            except BaseException:
                self._record(exchange, routing_key, False, start)
                raise
            mark_ok(span)
            self._record(exchange, routing_key, True, start)
            return result

    def _record(self, exchange: str, routing_key: str, success: bool, start: float) -> None:
        if self._metrics is not None:
            self._metrics.record_broker_message(
                exchange, routing_key, "consume", success, (time.perf_counter() - start) * 1000
            )


__all__ = ["RabbitMQConsumerHook", "queue_from_consumer_tag"]
