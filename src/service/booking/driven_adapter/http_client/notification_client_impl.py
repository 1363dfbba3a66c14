from typing import Any

from src.platform.config.core_setting import settings
from src.service.booking.app.interface.i_notification_client import INotificationClient
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)
from src.service.booking.driven_adapter.http_client.base_service_client import BaseServiceClient


NOTIFICATIONS_PATH = '/api/v1/internal/notifications'


class NotificationClientImpl(BaseServiceClient, INotificationClient):
    service_name = 'notification'

    def __init__(self, *, base_url: str = settings.NOTIFICATION_SERVICE_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    async def post_booking_success(self, *, event: BookingSuccessEvent) -> None:
        await self._request('POST', f'{NOTIFICATIONS_PATH}/booking-success', json=event.to_payload())

    async def post_booking_failure(self, *, event: BookingFailedEvent) -> None:
        await self._request('POST', f'{NOTIFICATIONS_PATH}/booking-failure', json=event.to_payload())
