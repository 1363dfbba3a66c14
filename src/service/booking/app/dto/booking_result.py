"""Saga results handed back to the HTTP layer."""

from typing import List, Optional

import attrs

from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat


@attrs.define(frozen=True)
class CreateBookingResult:
    """PENDING booking plus where to send the user to pay."""

    booking: Booking
    seats: List[BookingSeat]
    session_id: str
    payment_url: str
    expires_at: Optional[str] = None


@attrs.define(frozen=True)
class BookingStatusResult:
    booking: Booking
    seats: List[BookingSeat]
    message: str
    transaction_id: Optional[str] = None
