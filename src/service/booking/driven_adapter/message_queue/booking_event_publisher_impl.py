"""
Booking Event Publisher Implementation

Kafka channel for booking outcomes. Keyed by booking id so every event of one
booking lands on the same partition.
"""

from typing import Any, Awaitable, Callable

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_publisher import publish_message
from src.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from src.service.booking.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingOutcomeEvent,
    BookingSuccessEvent,
)


class BookingEventPublisherImpl(IBookingEventPublisher):
    def __init__(
        self, *, publish: Callable[..., Awaitable[None]] = publish_message
    ) -> None:
        self._publish = publish
        self.tracer = trace.get_tracer(__name__)

    async def _send(self, *, topic: str, event: BookingOutcomeEvent) -> None:
        payload: dict[str, Any] = event.to_payload()
        with self.tracer.start_as_current_span(
            'publisher.booking_outcome',
            attributes={
                'booking.id': str(event.booking_id),
                'event.type': event.event_type.value,
            },
        ):
            await self._publish(topic=topic, key=str(event.booking_id), payload=payload)

    @Logger.io
    async def publish_booking_success(self, *, event: BookingSuccessEvent) -> None:
        await self._send(topic=KafkaTopicBuilder.booking_success(), event=event)

    @Logger.io
    async def publish_booking_failed(self, *, event: BookingFailedEvent) -> None:
        await self._send(topic=KafkaTopicBuilder.booking_failed(), event=event)
