"""Operator endpoints over the booking dead letter store."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.mark_failed_event_processed_use_case import (
    MarkFailedEventProcessedUseCase,
)
from src.service.booking.app.query.get_dead_letter_events_use_case import (
    GetDeadLetterEventsUseCase,
)
from src.service.booking.driving_adapter.http_controller.schema.dlq_schema import (
    BookingDlqStatsResponse,
    DlqOverallStatsResponse,
    FailedEventResponse,
)


router = APIRouter()


@router.get('/pending')
@Logger.io
async def list_pending_events(
    use_case: GetDeadLetterEventsUseCase = Depends(GetDeadLetterEventsUseCase.depends),
) -> List[FailedEventResponse]:
    return [FailedEventResponse.from_entity(event) for event in await use_case.list_pending()]


@router.get('/failed')
@Logger.io
async def list_failed_events(
    use_case: GetDeadLetterEventsUseCase = Depends(GetDeadLetterEventsUseCase.depends),
) -> List[FailedEventResponse]:
    return [FailedEventResponse.from_entity(event) for event in await use_case.list_failed()]


@router.get('/stats')
@Logger.io
async def get_overall_stats(
    use_case: GetDeadLetterEventsUseCase = Depends(GetDeadLetterEventsUseCase.depends),
) -> DlqOverallStatsResponse:
    return DlqOverallStatsResponse.from_dto(await use_case.get_overall_stats())


@router.get('/booking/{booking_id}')
@Logger.io
async def get_booking_events(
    booking_id: UUID,
    use_case: GetDeadLetterEventsUseCase = Depends(GetDeadLetterEventsUseCase.depends),
) -> BookingDlqStatsResponse:
    return BookingDlqStatsResponse.from_dto(await use_case.get_booking_stats(booking_id=booking_id))


@router.post('/{event_id}/mark-processed')
@Logger.io
async def mark_event_processed(
    event_id: int,
    use_case: MarkFailedEventProcessedUseCase = Depends(MarkFailedEventProcessedUseCase.depends),
) -> FailedEventResponse:
    return FailedEventResponse.from_entity(await use_case.execute(event_id=event_id))
