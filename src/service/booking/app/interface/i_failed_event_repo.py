from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.service.booking.domain.entity.failed_event_entity import FailedEvent, FailedEventStatus


class IFailedEventRepo(ABC):
    @abstractmethod
    async def create(self, *, failed_event: FailedEvent) -> FailedEvent:
        pass

    @abstractmethod
    async def update(self, *, failed_event: FailedEvent) -> FailedEvent:
        pass

    @abstractmethod
    async def get_by_id(self, *, event_id: int) -> FailedEvent | None:
        pass

    @abstractmethod
    async def list_retryable(self, *, limit: int | None = None) -> List[FailedEvent]:
        """PENDING events whose ``retry_count`` is still below their own ``max_retries``."""
        pass

    @abstractmethod
    async def list_by_status(self, *, status: FailedEventStatus) -> List[FailedEvent]:
        pass

    @abstractmethod
    async def list_by_booking_id(self, *, booking_id: UUID) -> List[FailedEvent]:
        pass

    @abstractmethod
    async def count_by_status(self) -> dict[FailedEventStatus, int]:
        pass
