from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.booking.app.dto.booking_result import BookingStatusResult, CreateBookingResult
from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat


class BookingCreateRequest(BaseModel):
    show_id: int
    seat_ids: List[int] = Field(min_length=1)

    model_config = {'json_schema_extra': {'example': {'show_id': 7, 'seat_ids': [101, 102]}}}


class BookingSeatResponse(BaseModel):
    seat_id: int
    seat_label: Optional[str] = None
    seat_category: Optional[str] = None
    price: Decimal

    @classmethod
    def from_entity(cls, seat: BookingSeat) -> 'BookingSeatResponse':
        return cls(
            seat_id=seat.seat_id,
            seat_label=seat.seat_label,
            seat_category=seat.seat_category,
            price=seat.price,
        )


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'user_id': 2,
                'show_id': 7,
                'total_amount': '25.00',
                'status': 'PENDING',
                'created_at': '2025-01-10T10:30:00',
            }
        },
    }

    id: UUID  # UUID7
    user_id: int
    show_id: int
    total_amount: Decimal
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    seats: List[BookingSeatResponse] = []

    @classmethod
    def from_entity(cls, booking: Booking, seats: List[BookingSeat]) -> 'BookingResponse':
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            show_id=booking.show_id,
            total_amount=booking.total_amount,
            status=booking.status.value,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            seats=[BookingSeatResponse.from_entity(seat) for seat in seats],
        )


class CreateBookingResponse(BaseModel):
    booking: BookingResponse
    session_id: str
    payment_url: str
    expires_at: Optional[str] = None

    @classmethod
    def from_result(cls, result: CreateBookingResult) -> 'CreateBookingResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking, result.seats),
            session_id=result.session_id,
            payment_url=result.payment_url,
            expires_at=result.expires_at,
        )


class BookingStatusResponse(BaseModel):
    booking: BookingResponse
    message: str
    transaction_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: BookingStatusResult) -> 'BookingStatusResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking, result.seats),
            message=result.message,
            transaction_id=result.transaction_id,
        )
