"""RabbitMQ adapter – shared helpers."""
from __future__ import annotations

from typing import Any


def _require_aio_pika() -> Any:
    try:
        import aio_pika  # type: ignore[import-untyped]
        return aio_pika
    except ImportError as exc:
        raise ImportError("Install 'mp-telemetry[rabbitmq]' (aio-pika) to use this adapter") from exc


def exchange_label(name: Any) -> str:
    """The nameless default exchange is reported as ``default``."""
    return str(name) if name else "default"


__all__ = ["_require_aio_pika", "exchange_label"]
