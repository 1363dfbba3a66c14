from typing import List, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_result import BookingStatusResult
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import BookingSeat


class GetBookingUseCase:
    def __init__(self, *, booking_query_repo: IBookingQueryRepo) -> None:
        self.booking_query_repo = booking_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        booking_query_repo: IBookingQueryRepo = Depends(Provide[Container.booking_query_repo]),
    ) -> Self:
        return cls(booking_query_repo=booking_query_repo)

    @Logger.io
    async def get_booking(self, *, booking_id: UUID) -> BookingStatusResult:
        booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
        if not booking:
            raise NotFoundError(f'Booking {booking_id} not found')

        seats = await self.booking_query_repo.get_seats_by_booking_id(booking_id=booking_id)
        return BookingStatusResult(booking=booking, seats=seats, message=f'Booking {booking.status}')

    @Logger.io
    async def get_seat_details(self, *, booking_id: UUID) -> List[BookingSeat]:
        booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
        if not booking:
            raise NotFoundError(f'Booking {booking_id} not found')

        return await self.booking_query_repo.get_seats_by_booking_id(booking_id=booking_id)
