"""
Dead Letter Store

Durable home for booking outcome events that exhausted dispatch retries, and
the only place their retry bookkeeping changes.
"""

from typing import List
from uuid import UUID

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.dlq_stats import BookingDlqStats, DlqOverallStats
from src.service.booking.app.interface.i_failed_event_repo import IFailedEventRepo
from src.service.booking.domain.domain_event.booking_outcome_event import BookingOutcomeEvent
from src.service.booking.domain.entity.failed_event_entity import FailedEvent, FailedEventStatus


class DeadLetterStore:
    def __init__(
        self,
        *,
        failed_event_repo: IFailedEventRepo,
        max_retries: int = settings.DLQ_MAX_RETRIES,
    ) -> None:
        self.failed_event_repo = failed_event_repo
        self.max_retries = max_retries

    async def store_failed_event(
        self, *, event: BookingOutcomeEvent, error: str
    ) -> FailedEvent | None:
        """
        Record an undeliverable event as PENDING with retry count 0.

        Runs as the dispatcher's recovery step, so it never raises: a failure
        here is logged as critical and the event is lost to the logs only.
        """
        failed_event = FailedEvent.from_outcome_event(
            event=event, error=error, max_retries=self.max_retries
        )
        try:
            saved = await self.failed_event_repo.create(failed_event=failed_event)
        except Exception as e:
            Logger.base.critical(
                f'🚨 [DLQ] Could not persist {event.event_type} for booking {event.booking_id}: '
                f'{e} | payload={event.to_payload()}'
            )
            return None

        metrics.record_dead_lettered(event_type=event.event_type.value)
        Logger.base.warning(
            f'📥 [DLQ] Stored {event.event_type} for booking {event.booking_id} '
            f'(id={saved.id}, error={saved.last_error})'
        )
        return saved

    @Logger.io
    async def get_pending_events(self) -> List[FailedEvent]:
        return await self.failed_event_repo.list_retryable()

    @Logger.io
    async def get_failed_events(self) -> List[FailedEvent]:
        return await self.failed_event_repo.list_by_status(status=FailedEventStatus.FAILED)

    @Logger.io
    async def get_events_by_booking_id(self, *, booking_id: UUID) -> List[FailedEvent]:
        return await self.failed_event_repo.list_by_booking_id(booking_id=booking_id)

    async def mark_as_retrying(self, *, failed_event: FailedEvent) -> FailedEvent:
        return await self.failed_event_repo.update(failed_event=failed_event.mark_retrying())

    async def release_retrying(self, *, failed_event: FailedEvent) -> FailedEvent:
        return await self.failed_event_repo.update(failed_event=failed_event.release_retry())

    async def mark_as_processed(self, *, failed_event: FailedEvent) -> FailedEvent:
        processed = await self.failed_event_repo.update(failed_event=failed_event.mark_processed())
        Logger.base.info(f'✅ [DLQ] Event {processed.id} marked PROCESSED')
        return processed

    @Logger.io
    async def mark_as_processed_by_id(self, *, event_id: int) -> FailedEvent:
        """Manual resolution: forces PROCESSED whatever the current status."""
        failed_event = await self.failed_event_repo.get_by_id(event_id=event_id)
        if failed_event is None:
            raise NotFoundError(f'Failed event {event_id} not found')
        return await self.mark_as_processed(failed_event=failed_event)

    async def increment_retry_count(self, *, failed_event: FailedEvent, error: str) -> FailedEvent:
        updated = await self.failed_event_repo.update(
            failed_event=failed_event.record_failed_retry(error=error)
        )
        if updated.status == FailedEventStatus.FAILED:
            Logger.base.error(
                f'💀 [DLQ] Event {updated.id} for booking {updated.booking_id} permanently '
                f'FAILED after {updated.retry_count} retries: {updated.last_error}'
            )
        return updated

    @Logger.io
    async def get_booking_stats(self, *, booking_id: UUID) -> BookingDlqStats:
        events = await self.failed_event_repo.list_by_booking_id(booking_id=booking_id)

        def count(status: FailedEventStatus) -> int:
            return sum(1 for event in events if event.status == status)

        return BookingDlqStats(
            booking_id=str(booking_id),
            pending=count(FailedEventStatus.PENDING),
            retrying=count(FailedEventStatus.RETRYING),
            failed=count(FailedEventStatus.FAILED),
            processed=count(FailedEventStatus.PROCESSED),
            events=events,
        )

    @Logger.io
    async def get_overall_stats(self) -> DlqOverallStats:
        counts = await self.failed_event_repo.count_by_status()
        return DlqOverallStats(
            pending=counts.get(FailedEventStatus.PENDING, 0),
            retrying=counts.get(FailedEventStatus.RETRYING, 0),
            failed=counts.get(FailedEventStatus.FAILED, 0),
            processed=counts.get(FailedEventStatus.PROCESSED, 0),
        )
