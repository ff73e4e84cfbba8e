"""RabbitMQ adapter – transparent trace propagation on publish.

:class:`RabbitMQPublishInstrumentor` wraps ``aio_pika.Exchange.publish``
(or the ``publish`` of any class or object handed to it) so that every
publish runs inside a ``PRODUCER`` span and carries ``traceparent`` in its
message headers, without touching call sites.  The wrap is applied at most
once per target and :meth:`restore` puts the original back.
"""
from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Any, Awaitable, Callable

from opentelemetry.trace import SpanKind, TracerProvider

from mp_telemetry.adapters.rabbitmq._support import _require_aio_pika, exchange_label
from mp_telemetry.kernel.errors import InstrumentationError
from mp_telemetry.observability.correlation import BrokerCarrierCodec
from mp_telemetry.observability.metrics import TelemetryMetrics
from mp_telemetry.observability.tracing import bound_span, get_tracer, mark_ok

logger = logging.getLogger(__name__)

_WRAPPED_MARKER = "__mp_telemetry_wrapped__"
_PATCH_LOCK = threading.Lock()


class RabbitMQPublishInstrumentor:
    """Install/restore the publish wrap; safe to call from concurrent startups."""

    def __init__(
        self,
        metrics: TelemetryMetrics | None = None,
        tracer_provider: TracerProvider | None = None,
        service_name: str | None = None,
    ) -> None:
        self._metrics = metrics
        self._tracer = get_tracer(tracer_provider)
        self._service_name = service_name
        self._codec = BrokerCarrierCodec()
        self._target: Any = None
        self._original: Any = None
        self._target_had_own_attr = False

    @property
    def is_installed(self) -> bool:
        return self._target is not None

    def install(self, target: Any = None) -> bool:
        """Wrap ``target.publish``; returns ``False`` when nothing was wrapped.

        With no *target*, ``aio_pika.Exchange`` is used; when aio-pika is not
        installed this only logs a warning.
        """
        if target is None:
            try:
                target = _require_aio_pika().Exchange
            except ImportError:
                logger.warning("rabbitmq.publish_instrumentation_skipped reason=aio_pika_missing")
                return False

        with _PATCH_LOCK:
            if self._target is not None:
                return False
            current = getattr(target, "publish", None)
            if current is None:
                raise InstrumentationError(f"{target!r} has no 'publish' to instrument")
            if getattr(current, _WRAPPED_MARKER, False):
                logger.debug("rabbitmq.publish_already_instrumented target=%r", target)
                return False

            self._target_had_own_attr = "publish" in vars(target)
            self._original = vars(target)["publish"] if self._target_had_own_attr else current
            wrapper = self._wrap_class(current) if isinstance(target, type) else self._wrap_instance(target, current)
            setattr(wrapper, _WRAPPED_MARKER, True)
            setattr(target, "publish", wrapper)
            self._target = target
            logger.info("rabbitmq.publish_instrumented target=%s", getattr(target, "__name__", repr(target)))
            return True

    def restore(self) -> None:
        with _PATCH_LOCK:
            if self._target is None:
                return
            if self._target_had_own_attr:
                setattr(self._target, "publish", self._original)
            else:
                delattr(self._target, "publish")
            logger.info("rabbitmq.publish_restored")
            self._target = None
            self._original = None

    def _wrap_class(self, original: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(original)
        async def publish(exchange: Any, message: Any, routing_key: str, *args: Any, **kwargs: Any) -> Any:
            call = functools.partial(original, exchange)
            return await self._traced_publish(exchange, call, message, routing_key, args, kwargs)

        return publish

    def _wrap_instance(self, exchange: Any, original: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(original)
        async def publish(message: Any, routing_key: str, *args: Any, **kwargs: Any) -> Any:
            return await self._traced_publish(exchange, original, message, routing_key, args, kwargs)

        return publish

    async def _traced_publish(
        self,
        exchange: Any,
        call: Callable[..., Awaitable[Any]],
        message: Any,
        routing_key: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        name = exchange_label(getattr(exchange, "name", None))
        attributes = {
            "messaging.system": "rabbitmq",
            "messaging.operation": "publish",
            "messaging.destination": name,
            "messaging.rabbitmq.exchange": name,
            "messaging.rabbitmq.routing_key": routing_key,
            "service.name": self._service_name,
        }
        start = time.perf_counter()
        with bound_span(self._tracer, f"{name} publish", kind=SpanKind.PRODUCER, attributes=attributes) as span:
            try:
                message.headers = self._codec.inject_current(getattr(message, "headers", None))
            except Exception as exc:  # noqa: BLE001
                logger.debug("rabbitmq.header_injection_failed error=%s", exc)
            try:
                result = await call(message, routing_key, *args, **kwargs)
            except BaseException:
                self._record(name, routing_key, False, start)
                raise
            mark_ok(span)
            self._record(name, routing_key, True, start)
            return result

    def _record(self, exchange: str, routing_key: str, success: bool, start: float) -> None:
        if self._metrics is not None:
            self._metrics.record_broker_message(
                exchange, routing_key, "publish", success, (time.perf_counter() - start) * 1000
            )


__all__ = ["RabbitMQPublishInstrumentor"]
