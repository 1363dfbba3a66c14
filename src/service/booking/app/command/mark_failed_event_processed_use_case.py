from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.service.dead_letter_store import DeadLetterStore
from src.service.booking.domain.entity.failed_event_entity import FailedEvent


class MarkFailedEventProcessedUseCase:
    """Operator override: resolve a dead-lettered event by hand, from any status."""

    def __init__(self, *, dead_letter_store: DeadLetterStore) -> None:
        self.dead_letter_store = dead_letter_store

    @classmethod
    @inject
    def depends(
        cls,
        dead_letter_store: DeadLetterStore = Depends(Provide[Container.dead_letter_store]),
    ) -> Self:
        return cls(dead_letter_store=dead_letter_store)

    @Logger.io
    async def execute(self, *, event_id: int) -> FailedEvent:
        failed_event = await self.dead_letter_store.mark_as_processed_by_id(event_id=event_id)
        Logger.base.info(f'🛠️ [DLQ-ADMIN] Event {event_id} manually marked PROCESSED')
        return failed_event
