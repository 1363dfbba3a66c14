from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat


class IBookingQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def get_seats_by_booking_id(self, *, booking_id: UUID) -> List[BookingSeat]:
        pass
