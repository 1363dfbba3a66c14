from typing import AsyncContextManager, Callable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat, BookingStatus
from src.service.booking.driven_adapter.model.booking_model import BookingModel, BookingSeatModel


def booking_to_entity(db_booking: BookingModel) -> Booking:
    return Booking(
        id=db_booking.id,
        user_id=db_booking.user_id,
        show_id=db_booking.show_id,
        total_amount=db_booking.total_amount,
        status=BookingStatus(db_booking.status),
        created_at=db_booking.created_at,
        updated_at=db_booking.updated_at,
    )


def seat_to_entity(db_seat: BookingSeatModel) -> BookingSeat:
    return BookingSeat(
        id=db_seat.id,
        booking_id=db_seat.booking_id,
        seat_id=db_seat.seat_id,
        price=db_seat.price,
        seat_label=db_seat.seat_label,
        seat_category=db_seat.seat_category,
    )


class BookingCommandRepoImpl(IBookingCommandRepo):
    """Each method commits its own session; nothing stays open between saga steps."""

    def __init__(self, *, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        async with self.session_factory() as session:
            db_booking = BookingModel(
                id=booking.id,
                user_id=booking.user_id,
                show_id=booking.show_id,
                total_amount=booking.total_amount,
                status=booking.status.value,
                created_at=booking.created_at,
                updated_at=booking.updated_at,
            )
            session.add(db_booking)
            await session.commit()
            await session.refresh(db_booking)
            return booking_to_entity(db_booking)

    @Logger.io
    async def add_seats(self, *, seats: List[BookingSeat]) -> List[BookingSeat]:
        if not seats:
            return []

        async with self.session_factory() as session:
            db_seats = [
                BookingSeatModel(
                    booking_id=seat.booking_id,
                    seat_id=seat.seat_id,
                    price=seat.price,
                    seat_label=seat.seat_label,
                    seat_category=seat.seat_category,
                )
                for seat in seats
            ]
            session.add_all(db_seats)
            await session.commit()
            return [seat_to_entity(db_seat) for db_seat in db_seats]

    @Logger.io
    async def update_status(self, *, booking: Booking) -> Booking:
        async with self.session_factory() as session:
            db_booking = await session.get(BookingModel, booking.id)
            if db_booking is None:
                raise ValueError(f'Booking {booking.id} not found')

            db_booking.status = booking.status.value
            if booking.updated_at is not None:
                db_booking.updated_at = booking.updated_at
            await session.commit()
            await session.refresh(db_booking)
            return booking_to_entity(db_booking)

    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        async with self.session_factory() as session:
            db_booking = await session.get(BookingModel, booking_id)
            return booking_to_entity(db_booking) if db_booking else None

    async def get_seats_by_booking_id(self, *, booking_id: UUID) -> List[BookingSeat]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(BookingSeatModel)
                .where(BookingSeatModel.booking_id == booking_id)
                .order_by(BookingSeatModel.id)
            )
            return [seat_to_entity(db_seat) for db_seat in result.scalars().all()]
