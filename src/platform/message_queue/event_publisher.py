"""
Kafka Message Publisher

Publishing through confluent-kafka's experimental AsyncIO Producer.
Payloads are JSON (orjson) so downstream consumers in any stack can read them.

Unlike a fire-and-forget publish, ``publish_message`` waits for the broker's
delivery report: the caller needs to know whether to fall back to the
notification service.
"""

from typing import Any

import anyio
from confluent_kafka.experimental.aio import AIOProducer
from opentelemetry import trace
import orjson

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import inject_trace_context


# Global async producer instance
_global_producer: AIOProducer | None = None


async def _get_global_producer() -> AIOProducer:
    """Get global async producer instance - avoid creating new producer on every publish"""
    global _global_producer
    if _global_producer is None:
        _global_producer = AIOProducer(settings.KAFKA_PRODUCER_CONFIG)
    return _global_producer


async def publish_message(*, topic: str, key: str, payload: dict[str, Any]) -> None:
    """
    Publish a JSON payload and wait for the delivery report.

    Raises:
        KafkaException / TimeoutError: broker rejected or did not acknowledge in time
    """
    tracer = trace.get_tracer(__name__)

    with tracer.start_as_current_span(
        'kafka.publish',
        attributes={
            'messaging.system': 'kafka',
            'messaging.destination': topic,
            'messaging.destination_kind': 'topic',
            'messaging.kafka.message_key': key,
        },
    ):
        headers = list(inject_trace_context().items())
        producer = await _get_global_producer()
        delivery_future = await producer.produce(
            topic=topic,
            key=key.encode(),
            value=orjson.dumps(payload),
            headers=headers,
        )
        with anyio.fail_after(settings.KAFKA_DELIVERY_TIMEOUT_SECONDS):
            await delivery_future

        Logger.base.info(f'📤 [KAFKA] Published to {topic} (key={key})')


async def flush_all_messages() -> None:
    if _global_producer is not None:
        await _global_producer.flush()
        Logger.base.info('Flushed async producer')


async def close_producer() -> None:
    global _global_producer
    if _global_producer is not None:
        await _global_producer.flush()
        await _global_producer.close()
        _global_producer = None
        Logger.base.info('Closed async producer')
