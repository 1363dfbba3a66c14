"""
Inventory Service Client Interface

The theater service owns seat inventory; this service only asks it to verify,
hold, release and finalize seats. Every call fails with ``UpstreamServiceError``
on a non-success status or an empty result.
"""

from abc import ABC, abstractmethod
from typing import List

from src.service.booking.domain.value_object.seat_quote import SeatQuote


class IInventoryClient(ABC):
    @abstractmethod
    async def verify_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        pass

    @abstractmethod
    async def lock_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        pass

    @abstractmethod
    async def release_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        pass

    @abstractmethod
    async def book_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        pass
