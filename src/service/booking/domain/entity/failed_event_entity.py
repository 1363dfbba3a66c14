from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Any, Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingOutcomeEvent,
    BookingSuccessEvent,
)
from src.service.booking.domain.entity.booking_entity import to_money
from src.service.booking.domain.enum.booking_event_type import BookingEventType


MAX_ERROR_LENGTH = 2000


def truncate_error(error: Optional[str]) -> Optional[str]:
    if error is None or len(error) <= MAX_ERROR_LENGTH:
        return error
    return error[:MAX_ERROR_LENGTH]


class FailedEventStatus(StrEnum):
    PENDING = 'PENDING'
    RETRYING = 'RETRYING'
    PROCESSED = 'PROCESSED'
    FAILED = 'FAILED'


@attrs.define
class FailedEvent:
    """
    Dead-lettered booking outcome event.

    State machine::

        PENDING ──reconcile──> RETRYING ──ok──> PROCESSED
           ^                      │
           └──── retry failed ────┤
                                  └── retry_count >= max_retries ──> FAILED

    PROCESSED and FAILED are terminal, but an operator may force PROCESSED
    from any state. Rows are never deleted.
    """

    event_type: BookingEventType
    booking_id: UUID
    user_id: int
    show_id: int
    total_amount: Decimal = attrs.field(converter=to_money)
    event_payload: dict[str, Any] = attrs.field(factory=dict)
    reason: Optional[str] = None
    status: FailedEventStatus = FailedEventStatus.PENDING
    retry_count: int = 0
    max_retries: int = 3
    last_error: Optional[str] = attrs.field(default=None, converter=truncate_error)
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    last_retry_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @classmethod
    def from_outcome_event(
        cls, *, event: BookingOutcomeEvent, error: str, max_retries: int = 3
    ) -> 'FailedEvent':
        return cls(
            event_type=event.event_type,
            booking_id=event.booking_id,
            user_id=event.user_id,
            show_id=event.show_id,
            total_amount=event.total_amount,
            reason=event.reason,
            event_payload=event.to_payload(),
            status=FailedEventStatus.PENDING,
            retry_count=0,
            max_retries=max_retries,
            last_error=error,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def is_retryable(self) -> bool:
        return self.status == FailedEventStatus.PENDING and self.retry_count < self.max_retries

    def to_outcome_event(self) -> BookingOutcomeEvent:
        """Rebuild the original event from the denormalized columns."""
        if self.event_type == BookingEventType.BOOKING_SUCCESS:
            return BookingSuccessEvent(
                booking_id=self.booking_id,
                user_id=self.user_id,
                show_id=self.show_id,
                total_amount=self.total_amount,
            )
        return BookingFailedEvent(
            booking_id=self.booking_id,
            user_id=self.user_id,
            show_id=self.show_id,
            total_amount=self.total_amount,
            reason=self.reason or 'Unknown failure',
        )

    def mark_retrying(self) -> 'FailedEvent':
        if self.status != FailedEventStatus.PENDING:
            raise DomainError(f'Failed event {self.id} is {self.status}, only PENDING can retry')
        return attrs.evolve(self, status=FailedEventStatus.RETRYING)

    def release_retry(self) -> 'FailedEvent':
        # The attempt's outcome could not be recorded: hand the row back to the next pass
        if self.status != FailedEventStatus.RETRYING:
            raise DomainError(f'Failed event {self.id} is {self.status}, not RETRYING')
        return attrs.evolve(self, status=FailedEventStatus.PENDING)

    def mark_processed(self) -> 'FailedEvent':
        # Allowed from any state: operators resolve events by hand
        return attrs.evolve(
            self, status=FailedEventStatus.PROCESSED, processed_at=datetime.now(timezone.utc)
        )

    def record_failed_retry(self, *, error: str) -> 'FailedEvent':
        if self.status in (FailedEventStatus.PROCESSED, FailedEventStatus.FAILED):
            raise DomainError(f'Failed event {self.id} is already {self.status}')
        retry_count = min(self.retry_count + 1, self.max_retries)
        status = (
            FailedEventStatus.FAILED
            if retry_count >= self.max_retries
            else FailedEventStatus.PENDING
        )
        return attrs.evolve(
            self,
            retry_count=retry_count,
            status=status,
            last_error=error,
            last_retry_at=datetime.now(timezone.utc),
        )
