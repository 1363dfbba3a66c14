from typing import AsyncContextManager, Callable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat
from src.service.booking.driven_adapter.model.booking_model import BookingModel, BookingSeatModel
from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
    booking_to_entity,
    seat_to_entity,
)


class BookingQueryRepoImpl(IBookingQueryRepo):
    def __init__(self, *, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        async with self.session_factory() as session:
            result = await session.execute(select(BookingModel).where(BookingModel.id == booking_id))
            db_booking = result.scalar_one_or_none()
            return booking_to_entity(db_booking) if db_booking else None

    async def get_seats_by_booking_id(self, *, booking_id: UUID) -> List[BookingSeat]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(BookingSeatModel)
                .where(BookingSeatModel.booking_id == booking_id)
                .order_by(BookingSeatModel.id)
            )
            return [seat_to_entity(db_seat) for db_seat in result.scalars().all()]
