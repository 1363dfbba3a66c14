"""
Unit tests for EventDispatcher

Delivery channels (Kafka -> notification), retry -> dead letter, and the
bounded worker pool with run-on-caller overflow.
"""

from decimal import Decimal
from typing import Any

import anyio
import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import UpstreamServiceError
from src.service.booking.app.service.dead_letter_store import DeadLetterStore
from src.service.booking.app.service.event_dispatcher import EventDispatcher
from src.service.booking.app.service.retry_policy import RetryPolicy
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)
from src.service.booking.domain.entity.failed_event_entity import FailedEventStatus
from test.service.booking.fakes import (
    InMemoryFailedEventRepo,
    RecordingEventPublisher,
    RecordingNotificationClient,
    SleepRecorder,
)


def success_event(**overrides: Any) -> BookingSuccessEvent:
    fields: dict[str, Any] = {
        'booking_id': uuid7(),
        'user_id': 1,
        'show_id': 7,
        'total_amount': Decimal('25.00'),
    }
    return BookingSuccessEvent(**(fields | overrides))


@pytest.fixture
def failed_event_repo() -> InMemoryFailedEventRepo:
    return InMemoryFailedEventRepo()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


def make_dispatcher(
    *,
    publisher: Any,
    notification_client: RecordingNotificationClient,
    failed_event_repo: InMemoryFailedEventRepo,
    sleep: SleepRecorder,
    **kwargs: Any,
) -> EventDispatcher:
    return EventDispatcher(
        event_publisher=publisher,
        notification_client=notification_client,
        dead_letter_store=DeadLetterStore(failed_event_repo=failed_event_repo, max_retries=3),
        retry_policy=RetryPolicy(max_attempts=3, initial_backoff_seconds=1.0, multiplier=2.0),
        sleep=sleep,
        **kwargs,
    )


@pytest.mark.unit
class TestDeliver:
    @pytest.mark.asyncio
    async def test_kafka_success_skips_fallback(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        # Arrange
        publisher = RecordingEventPublisher()
        notification_client = RecordingNotificationClient()
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=notification_client,
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )
        event = success_event()

        # Act
        channel = await dispatcher.deliver(event=event)

        # Assert
        assert channel == 'kafka'
        assert publisher.published == [event]
        assert notification_client.attempts == 0

    @pytest.mark.asyncio
    async def test_kafka_failure_falls_back_to_notification(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        publisher = RecordingEventPublisher(failures=-1)
        notification_client = RecordingNotificationClient()
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=notification_client,
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )
        event = BookingFailedEvent(
            booking_id=uuid7(),
            user_id=1,
            show_id=7,
            total_amount='10',
            reason='Seats no longer available',
        )

        channel = await dispatcher.deliver(event=event)

        assert channel == 'notification'
        assert notification_client.posted == [event]

    @pytest.mark.asyncio
    async def test_both_channels_failing_propagates(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        dispatcher = make_dispatcher(
            publisher=RecordingEventPublisher(failures=-1),
            notification_client=RecordingNotificationClient(fail=True),
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )

        with pytest.raises(UpstreamServiceError, match='kafka=kafka broker unavailable'):
            await dispatcher.deliver(event=success_event())


@pytest.mark.unit
class TestDispatch:
    @pytest.mark.asyncio
    async def test_recovers_within_retry_budget(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        # Arrange - Kafka down twice, notification down throughout
        publisher = RecordingEventPublisher(failures=2)
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=RecordingNotificationClient(fail=True),
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )

        # Act
        channel = await dispatcher.dispatch(event=success_event())

        # Assert
        assert channel == 'kafka'
        assert publisher.attempts == 3
        assert sleep.delays == [1.0, 2.0]
        assert failed_event_repo.events == {}

    @pytest.mark.asyncio
    async def test_exhausted_retries_write_dead_letter(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        # Arrange
        publisher = RecordingEventPublisher(failures=-1)
        notification_client = RecordingNotificationClient(fail=True)
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=notification_client,
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )
        event = success_event()

        # Act
        channel = await dispatcher.dispatch(event=event)

        # Assert
        assert channel is None
        assert publisher.attempts == 3
        assert notification_client.attempts == 3
        assert sleep.delays == [1.0, 2.0]

        [dead_letter] = failed_event_repo.events.values()
        assert dead_letter.booking_id == event.booking_id
        assert dead_letter.status == FailedEventStatus.PENDING
        assert dead_letter.retry_count == 0
        assert 'notification service returned 500' in dead_letter.last_error
        assert dead_letter.event_payload['totalAmount'] == 25.0


@pytest.mark.unit
class TestWorkerPool:
    @pytest.mark.asyncio
    async def test_submit_without_running_pool_dispatches_inline(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        publisher = RecordingEventPublisher()
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=RecordingNotificationClient(),
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )
        event = success_event()

        await dispatcher.submit(event=event)

        assert publisher.published == [event]

    @pytest.mark.asyncio
    async def test_running_pool_delivers_queued_events_before_stop_returns(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        publisher = RecordingEventPublisher()
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=RecordingNotificationClient(),
            failed_event_repo=failed_event_repo,
            sleep=sleep,
            workers=2,
            queue_size=10,
        )
        events = [success_event() for _ in range(5)]

        async with anyio.create_task_group() as tg:
            await tg.start(dispatcher.run)
            assert dispatcher.is_running
            for event in events:
                await dispatcher.submit(event=event)
            await dispatcher.stop()

        assert not dispatcher.is_running
        assert sorted(e.booking_id for e in publisher.published) == sorted(
            e.booking_id for e in events
        )

    @pytest.mark.asyncio
    async def test_full_queue_runs_on_caller(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        # Arrange - the single worker blocks on the first event
        first, second, third = success_event(), success_event(), success_event()
        worker_busy = anyio.Event()
        release_worker = anyio.Event()
        published: list[BookingSuccessEvent] = []

        class BlockingPublisher(RecordingEventPublisher):
            async def publish_booking_success(self, *, event: BookingSuccessEvent) -> None:
                if event is first:
                    worker_busy.set()
                    await release_worker.wait()
                published.append(event)

        dispatcher = make_dispatcher(
            publisher=BlockingPublisher(),
            notification_client=RecordingNotificationClient(),
            failed_event_repo=failed_event_repo,
            sleep=sleep,
            workers=1,
            queue_size=1,
        )

        async with anyio.create_task_group() as tg:
            await tg.start(dispatcher.run)

            # Act
            await dispatcher.submit(event=first)
            await worker_busy.wait()
            await dispatcher.submit(event=second)  # buffered
            await dispatcher.submit(event=third)  # queue full -> inline

            # Assert - third delivered by the caller while the worker is still stuck
            assert published == [third]

            release_worker.set()
            await dispatcher.stop()

        assert published == [third, first, second]

    @pytest.mark.asyncio
    async def test_submit_after_stop_dispatches_inline(
        self, failed_event_repo: InMemoryFailedEventRepo, sleep: SleepRecorder
    ) -> None:
        publisher = RecordingEventPublisher()
        dispatcher = make_dispatcher(
            publisher=publisher,
            notification_client=RecordingNotificationClient(),
            failed_event_repo=failed_event_repo,
            sleep=sleep,
        )

        async with anyio.create_task_group() as tg:
            await tg.start(dispatcher.run)
            await dispatcher.stop()

        event = success_event()
        await dispatcher.submit(event=event)

        assert publisher.published == [event]
