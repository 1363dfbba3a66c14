"""Read side of the booking dead letter store, for operators."""

from typing import List, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.service.booking.app.dto.dlq_stats import BookingDlqStats, DlqOverallStats
from src.service.booking.app.service.dead_letter_store import DeadLetterStore
from src.service.booking.domain.entity.failed_event_entity import FailedEvent


class GetDeadLetterEventsUseCase:
    def __init__(self, *, dead_letter_store: DeadLetterStore) -> None:
        self.dead_letter_store = dead_letter_store

    @classmethod
    @inject
    def depends(
        cls,
        dead_letter_store: DeadLetterStore = Depends(Provide[Container.dead_letter_store]),
    ) -> Self:
        return cls(dead_letter_store=dead_letter_store)

    async def list_pending(self) -> List[FailedEvent]:
        return await self.dead_letter_store.get_pending_events()

    async def list_failed(self) -> List[FailedEvent]:
        return await self.dead_letter_store.get_failed_events()

    async def get_booking_stats(self, *, booking_id: UUID) -> BookingDlqStats:
        return await self.dead_letter_store.get_booking_stats(booking_id=booking_id)

    async def get_overall_stats(self) -> DlqOverallStats:
        return await self.dead_letter_store.get_overall_stats()
