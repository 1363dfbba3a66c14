"""
Event Dispatcher

Delivers booking outcome events off the request path.

Delivery of one event:
1. Kafka (primary channel)
2. Notification service, only if Kafka failed
3. Steps 1-2 are retried per ``RetryPolicy``; when every attempt failed the
   event goes to the dead letter store

Execution:
- ``run`` owns a bounded in-memory queue drained by a fixed number of workers
- ``submit`` never blocks and never raises; when the queue is full or the
  pool is not running the event is dispatched on the caller's task instead
"""

from typing import Awaitable, Callable, Optional

import anyio
from anyio.abc import TaskStatus
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import UpstreamServiceError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.booking.app.interface.i_notification_client import INotificationClient
from src.service.booking.app.service.dead_letter_store import DeadLetterStore
from src.service.booking.app.service.retry_policy import RetryPolicy, execute_with_retry
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingOutcomeEvent,
    BookingSuccessEvent,
)


CHANNEL_KAFKA = 'kafka'
CHANNEL_NOTIFICATION = 'notification'


class EventDispatcher:
    def __init__(
        self,
        *,
        event_publisher: IBookingEventPublisher,
        notification_client: INotificationClient,
        dead_letter_store: DeadLetterStore,
        retry_policy: Optional[RetryPolicy] = None,
        workers: int = settings.EVENT_DISPATCH_WORKERS,
        queue_size: int = settings.EVENT_DISPATCH_QUEUE_SIZE,
        drain_timeout_seconds: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        self.event_publisher = event_publisher
        self.notification_client = notification_client
        self.dead_letter_store = dead_letter_store
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.workers = workers
        self.queue_size = queue_size
        self.drain_timeout_seconds = drain_timeout_seconds
        self._sleep = sleep

        self._send_stream: Optional[MemoryObjectSendStream[BookingOutcomeEvent]] = None
        self._drained: Optional[anyio.Event] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ========== Delivery ==========

    async def deliver(self, *, event: BookingOutcomeEvent) -> str:
        """
        Single delivery attempt: Kafka, then the notification fallback.

        Returns:
            Channel that accepted the event

        Raises:
            UpstreamServiceError: both channels failed
        """
        try:
            await self._publish(event=event)
            metrics.record_event_delivery(channel=CHANNEL_KAFKA, result='success')
            return CHANNEL_KAFKA
        except Exception as kafka_error:
            metrics.record_event_delivery(channel=CHANNEL_KAFKA, result='failure')
            Logger.base.warning(
                f'⚠️ [DISPATCH] Kafka publish of {event.event_type} for booking '
                f'{event.booking_id} failed, falling back to notification service: {kafka_error}'
            )
            try:
                await self._notify(event=event)
            except Exception as notify_error:
                metrics.record_event_delivery(channel=CHANNEL_NOTIFICATION, result='failure')
                raise UpstreamServiceError(
                    f'Event delivery failed on every channel: kafka={kafka_error}; '
                    f'notification={notify_error}',
                    service='event-delivery',
                ) from notify_error

        metrics.record_event_delivery(channel=CHANNEL_NOTIFICATION, result='success')
        Logger.base.info(
            f'📨 [DISPATCH] {event.event_type} for booking {event.booking_id} '
            'delivered via notification service'
        )
        return CHANNEL_NOTIFICATION

    async def _publish(self, *, event: BookingOutcomeEvent) -> None:
        if isinstance(event, BookingSuccessEvent):
            await self.event_publisher.publish_booking_success(event=event)
        else:
            await self.event_publisher.publish_booking_failed(event=event)

    async def _notify(self, *, event: BookingOutcomeEvent) -> None:
        if isinstance(event, BookingSuccessEvent):
            await self.notification_client.post_booking_success(event=event)
        else:
            await self.notification_client.post_booking_failure(event=event)

    async def dispatch(self, *, event: BookingOutcomeEvent) -> Optional[str]:
        """
        Deliver with retries; dead-letter the event once attempts run out.

        Returns the accepting channel, or None when the event was dead-lettered.
        """

        async def attempt() -> Optional[str]:
            return await self.deliver(event=event)

        async def dead_letter(error: Exception) -> None:
            await self.dead_letter_store.store_failed_event(event=event, error=str(error))
            return None

        return await execute_with_retry(
            attempt,
            policy=self.retry_policy,
            recover=dead_letter,
            sleep=self._sleep,
            operation_name=f'deliver {event.event_type} for booking {event.booking_id}',
        )

    async def _dispatch_safely(self, *, event: BookingOutcomeEvent) -> None:
        try:
            await self.dispatch(event=event)
        except Exception as e:
            Logger.base.critical(
                f'🚨 [DISPATCH] Unhandled error dispatching {event.event_type} for booking '
                f'{event.booking_id}: {e} | payload={event.to_payload()}'
            )

    # ========== Worker pool ==========

    async def submit(self, *, event: BookingOutcomeEvent) -> None:
        """Hand an event to the pool; runs it inline when the pool cannot take it."""
        if self._running and self._send_stream is not None:
            try:
                self._send_stream.send_nowait(event)
                return
            except anyio.WouldBlock:
                Logger.base.warning(
                    f'⚠️ [DISPATCH] Queue full ({self.queue_size}), dispatching '
                    f'{event.event_type} for booking {event.booking_id} on caller'
                )
            except (anyio.ClosedResourceError, anyio.BrokenResourceError):
                Logger.base.warning(
                    f'⚠️ [DISPATCH] Pool closed, dispatching {event.event_type} '
                    f'for booking {event.booking_id} on caller'
                )

        await self._dispatch_safely(event=event)

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """Run the worker pool until ``stop`` closes the queue and it drains."""
        send_stream, receive_stream = anyio.create_memory_object_stream[BookingOutcomeEvent](
            max_buffer_size=self.queue_size
        )
        self._send_stream = send_stream
        self._drained = anyio.Event()

        try:
            async with anyio.create_task_group() as tg:
                async with receive_stream:
                    for worker_id in range(self.workers):
                        tg.start_soon(self._worker, receive_stream.clone(), worker_id)
                self._running = True
                Logger.base.info(
                    f'🧵 [DISPATCH] Started {self.workers} worker(s), queue size {self.queue_size}'
                )
                task_status.started()
        finally:
            self._running = False
            self._send_stream = None
            self._drained.set()
            Logger.base.info('🧵 [DISPATCH] Worker pool stopped')

    async def _worker(
        self, receive_stream: MemoryObjectReceiveStream[BookingOutcomeEvent], worker_id: int
    ) -> None:
        async with receive_stream:
            async for event in receive_stream:
                Logger.base.debug(
                    f'🧵 [DISPATCH-{worker_id}] {event.event_type} for booking {event.booking_id}'
                )
                await self._dispatch_safely(event=event)

    async def stop(self) -> None:
        """Stop accepting work and wait (bounded) for queued events to finish."""
        send_stream = self._send_stream
        if send_stream is None:
            return

        self._running = False
        await send_stream.aclose()

        if self._drained is not None:
            with anyio.move_on_after(self.drain_timeout_seconds) as scope:
                await self._drained.wait()
            if scope.cancelled_caught:
                Logger.base.warning(
                    f'⚠️ [DISPATCH] Queue not drained within {self.drain_timeout_seconds}s'
                )
