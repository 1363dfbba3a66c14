from typing import Any

import pytest
from uuid_utils.compat import uuid7

from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)
from src.service.booking.driven_adapter.message_queue.booking_event_publisher_impl import (
    BookingEventPublisherImpl,
)


class RecordingPublish:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, *, topic: str, key: str, payload: dict[str, Any]) -> None:
        self.calls.append({'topic': topic, 'key': key, 'payload': payload})
        if self.error is not None:
            raise self.error


@pytest.mark.unit
class TestBookingEventPublisher:
    @pytest.mark.asyncio
    async def test_success_event_keyed_by_booking(self) -> None:
        publish = RecordingPublish()
        publisher = BookingEventPublisherImpl(publish=publish)
        event = BookingSuccessEvent(booking_id=uuid7(), user_id=1, show_id=2, total_amount='8.5')

        await publisher.publish_booking_success(event=event)

        assert publish.calls == [
            {
                'topic': 'booking_success',
                'key': str(event.booking_id),
                'payload': event.to_payload(),
            }
        ]

    @pytest.mark.asyncio
    async def test_failed_event_goes_to_failed_topic(self) -> None:
        publish = RecordingPublish()
        publisher = BookingEventPublisherImpl(publish=publish)
        event = BookingFailedEvent(
            booking_id=uuid7(), user_id=1, show_id=2, total_amount='8.5', reason='timeout'
        )

        await publisher.publish_booking_failed(event=event)

        [call] = publish.calls
        assert call['topic'] == 'booking_failed'
        assert call['payload']['reason'] == 'timeout'

    @pytest.mark.asyncio
    async def test_broker_errors_propagate(self) -> None:
        publisher = BookingEventPublisherImpl(publish=RecordingPublish(TimeoutError('no ack')))
        event = BookingSuccessEvent(booking_id=uuid7(), user_id=1, show_id=2, total_amount='1')

        with pytest.raises(TimeoutError):
            await publisher.publish_booking_success(event=event)
