from typing import Any, List

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import UpstreamServiceError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_inventory_client import IInventoryClient
from src.service.booking.domain.value_object.seat_quote import SeatQuote
from src.service.booking.driven_adapter.http_client.base_service_client import BaseServiceClient


SEATS_PATH = '/api/v1/shows/internal/seats'


class InventoryClientImpl(BaseServiceClient, IInventoryClient):
    service_name = 'inventory'

    def __init__(self, *, base_url: str = settings.INVENTORY_SERVICE_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    @staticmethod
    def _to_quote(item: dict[str, Any]) -> SeatQuote:
        # Price and availability are required, never defaulted
        available, price = item['available'], item['price']
        if not isinstance(available, bool) or price is None or isinstance(price, bool):
            raise ValueError(f'seat {item.get("seatId")} has no usable availability or price')
        return SeatQuote(
            seat_id=int(item['seatId']),
            available=available,
            price=price,
            label=item.get('label'),
            category=item.get('category'),
        )

    def _to_quotes(self, *, action: str, body: Any) -> List[SeatQuote]:
        items = body.get('seats') if isinstance(body, dict) else body
        if not items:
            raise UpstreamServiceError(
                f'Inventory {action} returned no seats', service=self.service_name
            )

        try:
            return [self._to_quote(item) for item in items]
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise UpstreamServiceError(
                f'Inventory {action} returned a malformed seat: {e}', service=self.service_name
            ) from e

    async def _seat_call(self, *, action: str, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        body = await self._request(
            'POST', f'{SEATS_PATH}/{action}', json={'showId': show_id, 'seatIds': list(seat_ids)}
        )
        quotes = self._to_quotes(action=action, body=body)
        Logger.base.debug(f'🎭 [INVENTORY] {action} show={show_id} seats={seat_ids} -> {len(quotes)}')
        return quotes

    async def verify_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        return await self._seat_call(action='verify', show_id=show_id, seat_ids=seat_ids)

    async def lock_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        return await self._seat_call(action='lock', show_id=show_id, seat_ids=seat_ids)

    async def release_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        return await self._seat_call(action='release', show_id=show_id, seat_ids=seat_ids)

    async def book_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        return await self._seat_call(action='book', show_id=show_id, seat_ids=seat_ids)
