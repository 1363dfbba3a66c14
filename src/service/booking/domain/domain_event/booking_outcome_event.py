"""
Booking Outcome Events

Emitted on every terminal saga transition. The same payload goes to the Kafka
topic and, when Kafka is unavailable, to the notification service.
"""

from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID

import attrs

from src.service.booking.domain.entity.booking_entity import Booking, to_money
from src.service.booking.domain.enum.booking_event_type import BookingEventType


@attrs.define(frozen=True)
class BookingSuccessEvent:
    event_type: ClassVar[BookingEventType] = BookingEventType.BOOKING_SUCCESS

    booking_id: UUID
    user_id: int
    show_id: int
    total_amount: Decimal = attrs.field(converter=to_money)

    @classmethod
    def from_booking(cls, *, booking: Booking) -> 'BookingSuccessEvent':
        return cls(
            booking_id=booking.id,
            user_id=booking.user_id,
            show_id=booking.show_id,
            total_amount=booking.total_amount,
        )

    @property
    def reason(self) -> str | None:
        return None

    def to_payload(self) -> dict[str, Any]:
        return {
            'bookingId': str(self.booking_id),
            'userId': self.user_id,
            'showId': self.show_id,
            'totalAmount': float(self.total_amount),
        }


@attrs.define(frozen=True)
class BookingFailedEvent:
    event_type: ClassVar[BookingEventType] = BookingEventType.BOOKING_FAILED

    booking_id: UUID
    user_id: int
    show_id: int
    total_amount: Decimal = attrs.field(converter=to_money)
    reason: str = 'Unknown failure'

    @classmethod
    def from_booking(cls, *, booking: Booking, reason: str) -> 'BookingFailedEvent':
        return cls(
            booking_id=booking.id,
            user_id=booking.user_id,
            show_id=booking.show_id,
            total_amount=booking.total_amount,
            reason=reason,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            'bookingId': str(self.booking_id),
            'userId': self.user_id,
            'showId': self.show_id,
            'totalAmount': float(self.total_amount),
            'reason': self.reason,
        }


BookingOutcomeEvent = BookingSuccessEvent | BookingFailedEvent
