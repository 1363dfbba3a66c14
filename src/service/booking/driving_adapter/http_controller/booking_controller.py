from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.booking_saga import BookingSaga
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    BookingCreateRequest,
    BookingSeatResponse,
    BookingStatusResponse,
    CreateBookingResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)

# Set by the API gateway after authentication
UserIdHeader = Annotated[int, Header(alias='X-User-Id')]


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_booking(
    request: BookingCreateRequest,
    user_id: UserIdHeader,
    saga: BookingSaga = Depends(BookingSaga.depends),
) -> CreateBookingResponse:
    with tracer.start_as_current_span('controller.create_booking') as span:
        span.set_attribute('show_id', request.show_id)
        span.set_attribute('user_id', user_id)

        result = await saga.create_booking(
            user_id=user_id, show_id=request.show_id, seat_ids=request.seat_ids
        )
        span.set_attribute('booking.id', str(result.booking.id))
        return CreateBookingResponse.from_result(result)


@router.post('/{booking_id}/verify')
@Logger.io
async def verify_booking_payment(
    booking_id: UUID,
    session_id: Annotated[str, Query(min_length=1)],
    saga: BookingSaga = Depends(BookingSaga.depends),
) -> BookingStatusResponse:
    result = await saga.verify_and_complete(booking_id=booking_id, session_id=session_id)
    return BookingStatusResponse.from_result(result)


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UUID,
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingStatusResponse:
    result = await use_case.get_booking(booking_id=booking_id)
    return BookingStatusResponse.from_result(result)


@router.get('/{booking_id}/seats')
@Logger.io
async def get_booking_seats(
    booking_id: UUID,
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> List[BookingSeatResponse]:
    seats = await use_case.get_seat_details(booking_id=booking_id)
    return [BookingSeatResponse.from_entity(seat) for seat in seats]
