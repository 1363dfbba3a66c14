from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Iterable, Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import DomainError
from src.service.booking.domain.value_object.seat_quote import SeatQuote


_CENTS = Decimal('0.01')


def to_money(value: Decimal | int | float | str) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


class BookingStatus(StrEnum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    FAILED = 'FAILED'
    CANCELLED = 'CANCELLED'


TERMINAL_BOOKING_STATUSES = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.FAILED, BookingStatus.CANCELLED}
)


@attrs.define
class Booking:
    id: UUID
    user_id: int
    show_id: int
    total_amount: Decimal = attrs.field(converter=to_money)
    status: BookingStatus = BookingStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, *, user_id: int, show_id: int, quotes: Iterable[SeatQuote]) -> 'Booking':
        """New PENDING booking; the total is always the sum of inventory prices."""
        now = datetime.now(timezone.utc)
        return cls(
            id=uuid7(),
            user_id=user_id,
            show_id=show_id,
            total_amount=sum((quote.price for quote in quotes), Decimal('0')),
            status=BookingStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == BookingStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    def _transition(self, target: BookingStatus) -> 'Booking':
        if self.status != BookingStatus.PENDING:
            raise DomainError(
                f'Booking {self.id} is {self.status} and cannot move to {target}', 409
            )
        return attrs.evolve(self, status=target, updated_at=datetime.now(timezone.utc))

    def confirm(self) -> 'Booking':
        return self._transition(BookingStatus.CONFIRMED)

    def fail(self) -> 'Booking':
        return self._transition(BookingStatus.FAILED)


@attrs.define(frozen=True)
class BookingSeat:
    """One seat line of a booking. Price is frozen at lock time."""

    booking_id: UUID
    seat_id: int
    price: Decimal = attrs.field(converter=to_money)
    seat_label: Optional[str] = None
    seat_category: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_quote(cls, *, booking_id: UUID, quote: SeatQuote) -> 'BookingSeat':
        return cls(
            booking_id=booking_id,
            seat_id=quote.seat_id,
            price=quote.price,
            seat_label=quote.label,
            seat_category=quote.category,
        )
