"""
Booking Event Publisher Interface

Primary (message bus) channel for booking outcome events. Implementations must
raise when the broker does not acknowledge, so the dispatcher can fall back.
"""

from abc import ABC, abstractmethod

from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)


class IBookingEventPublisher(ABC):
    @abstractmethod
    async def publish_booking_success(self, *, event: BookingSuccessEvent) -> None:
        pass

    @abstractmethod
    async def publish_booking_failed(self, *, event: BookingFailedEvent) -> None:
        pass
