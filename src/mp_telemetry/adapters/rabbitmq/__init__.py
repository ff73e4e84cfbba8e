"""RabbitMQ adapter – consume hook and transparent publish instrumentation (aio-pika)."""
from mp_telemetry.adapters.rabbitmq.consumer import RabbitMQConsumerHook, queue_from_consumer_tag
from mp_telemetry.adapters.rabbitmq.publish import RabbitMQPublishInstrumentor

__all__ = ["RabbitMQConsumerHook", "RabbitMQPublishInstrumentor", "queue_from_consumer_tag"]
