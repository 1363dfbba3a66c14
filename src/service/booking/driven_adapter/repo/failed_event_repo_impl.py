from typing import AsyncContextManager, Callable, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_failed_event_repo import IFailedEventRepo
from src.service.booking.domain.entity.failed_event_entity import FailedEvent, FailedEventStatus
from src.service.booking.domain.enum.booking_event_type import BookingEventType
from src.service.booking.driven_adapter.model.failed_event_model import FailedEventModel


class FailedEventRepoImpl(IFailedEventRepo):
    def __init__(self, *, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_event: FailedEventModel) -> FailedEvent:
        return FailedEvent(
            id=db_event.id,
            event_type=BookingEventType(db_event.event_type),
            booking_id=db_event.booking_id,
            user_id=db_event.user_id,
            show_id=db_event.show_id,
            total_amount=db_event.total_amount,
            reason=db_event.reason,
            event_payload=db_event.event_payload or {},
            status=FailedEventStatus(db_event.status),
            retry_count=db_event.retry_count,
            max_retries=db_event.max_retries,
            last_error=db_event.last_error,
            created_at=db_event.created_at,
            last_retry_at=db_event.last_retry_at,
            processed_at=db_event.processed_at,
        )

    @Logger.io
    async def create(self, *, failed_event: FailedEvent) -> FailedEvent:
        async with self.session_factory() as session:
            db_event = FailedEventModel(
                event_type=failed_event.event_type.value,
                booking_id=failed_event.booking_id,
                user_id=failed_event.user_id,
                show_id=failed_event.show_id,
                total_amount=failed_event.total_amount,
                reason=failed_event.reason,
                event_payload=failed_event.event_payload,
                status=failed_event.status.value,
                retry_count=failed_event.retry_count,
                max_retries=failed_event.max_retries,
                last_error=failed_event.last_error,
                created_at=failed_event.created_at,
            )
            session.add(db_event)
            await session.commit()
            await session.refresh(db_event)
            return self._to_entity(db_event)

    @Logger.io
    async def update(self, *, failed_event: FailedEvent) -> FailedEvent:
        async with self.session_factory() as session:
            db_event = await session.get(FailedEventModel, failed_event.id)
            if db_event is None:
                raise ValueError(f'Failed event {failed_event.id} not found')

            db_event.status = failed_event.status.value
            db_event.retry_count = failed_event.retry_count
            db_event.last_error = failed_event.last_error
            db_event.last_retry_at = failed_event.last_retry_at
            db_event.processed_at = failed_event.processed_at
            await session.commit()
            await session.refresh(db_event)
            return self._to_entity(db_event)

    async def get_by_id(self, *, event_id: int) -> FailedEvent | None:
        async with self.session_factory() as session:
            db_event = await session.get(FailedEventModel, event_id)
            return self._to_entity(db_event) if db_event else None

    async def list_retryable(self, *, limit: int | None = None) -> List[FailedEvent]:
        stmt = (
            select(FailedEventModel)
            .where(FailedEventModel.status == FailedEventStatus.PENDING.value)
            .where(FailedEventModel.retry_count < FailedEventModel.max_retries)
            .order_by(FailedEventModel.created_at, FailedEventModel.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(db_event) for db_event in result.scalars().all()]

    async def list_by_status(self, *, status: FailedEventStatus) -> List[FailedEvent]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FailedEventModel)
                .where(FailedEventModel.status == status.value)
                .order_by(FailedEventModel.created_at, FailedEventModel.id)
            )
            return [self._to_entity(db_event) for db_event in result.scalars().all()]

    async def list_by_booking_id(self, *, booking_id: UUID) -> List[FailedEvent]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FailedEventModel)
                .where(FailedEventModel.booking_id == booking_id)
                .order_by(FailedEventModel.created_at, FailedEventModel.id)
            )
            return [self._to_entity(db_event) for db_event in result.scalars().all()]

    async def count_by_status(self) -> dict[FailedEventStatus, int]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FailedEventModel.status, func.count()).group_by(FailedEventModel.status)
            )
            return {FailedEventStatus(status): count for status, count in result.all()}
