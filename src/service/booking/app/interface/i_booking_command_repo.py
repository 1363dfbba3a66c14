from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat


class IBookingCommandRepo(ABC):
    """
    Booking writes for the saga.

    Every method is its own short transaction; none may be held open across
    lock acquisition, remote calls or payment polling.
    """

    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        pass

    @abstractmethod
    async def add_seats(self, *, seats: List[BookingSeat]) -> List[BookingSeat]:
        pass

    @abstractmethod
    async def update_status(self, *, booking: Booking) -> Booking:
        """Persist ``booking.status`` / ``updated_at`` for an existing booking."""
        pass

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def get_seats_by_booking_id(self, *, booking_id: UUID) -> List[BookingSeat]:
        pass
