from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel

from src.service.booking.app.dto.dlq_stats import BookingDlqStats, DlqOverallStats
from src.service.booking.domain.entity.failed_event_entity import FailedEvent


class FailedEventResponse(BaseModel):
    id: int
    event_type: str
    booking_id: UUID
    user_id: int
    show_id: int
    total_amount: Decimal
    reason: Optional[str] = None
    event_payload: dict[str, Any]
    status: str
    retry_count: int
    max_retries: int
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    last_retry_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, event: FailedEvent) -> 'FailedEventResponse':
        return cls(
            id=event.id or 0,
            event_type=event.event_type.value,
            booking_id=event.booking_id,
            user_id=event.user_id,
            show_id=event.show_id,
            total_amount=event.total_amount,
            reason=event.reason,
            event_payload=event.event_payload,
            status=event.status.value,
            retry_count=event.retry_count,
            max_retries=event.max_retries,
            last_error=event.last_error,
            created_at=event.created_at,
            last_retry_at=event.last_retry_at,
            processed_at=event.processed_at,
        )


class DlqOverallStatsResponse(BaseModel):
    pending: int
    retrying: int
    failed: int
    processed: int
    total: int

    @classmethod
    def from_dto(cls, stats: DlqOverallStats) -> 'DlqOverallStatsResponse':
        return cls(
            pending=stats.pending,
            retrying=stats.retrying,
            failed=stats.failed,
            processed=stats.processed,
            total=stats.total,
        )


class BookingDlqStatsResponse(BaseModel):
    booking_id: str
    pending: int
    retrying: int
    failed: int
    processed: int
    total: int
    events: List[FailedEventResponse]

    @classmethod
    def from_dto(cls, stats: BookingDlqStats) -> 'BookingDlqStatsResponse':
        return cls(
            booking_id=stats.booking_id,
            pending=stats.pending,
            retrying=stats.retrying,
            failed=stats.failed,
            processed=stats.processed,
            total=stats.total,
            events=[FailedEventResponse.from_entity(event) for event in stats.events],
        )
