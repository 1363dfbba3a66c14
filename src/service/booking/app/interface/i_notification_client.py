from abc import ABC, abstractmethod

from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)


class INotificationClient(ABC):
    """Synchronous fallback channel for booking outcome events."""

    @abstractmethod
    async def post_booking_success(self, *, event: BookingSuccessEvent) -> None:
        pass

    @abstractmethod
    async def post_booking_failure(self, *, event: BookingFailedEvent) -> None:
        pass
