"""
Unit tests for the internal service clients, driven through httpx.MockTransport.
"""

from decimal import Decimal
from typing import Callable

import httpx
import orjson
import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import UpstreamServiceError
from src.service.booking.domain.domain_event.booking_outcome_event import BookingFailedEvent
from src.service.booking.driven_adapter.http_client.inventory_client_impl import (
    InventoryClientImpl,
)
from src.service.booking.driven_adapter.http_client.notification_client_impl import (
    NotificationClientImpl,
)
from src.service.booking.driven_adapter.http_client.payment_client_impl import PaymentClientImpl


BASE_URL = 'http://upstream.test'


class Recorder:
    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), base_url=BASE_URL)

    def body(self, index: int = -1) -> dict:
        return orjson.loads(self.requests[index].content)


@pytest.mark.unit
class TestInventoryClient:
    @pytest.mark.asyncio
    async def test_verify_parses_seat_list(self) -> None:
        # Arrange
        recorder = Recorder(
            lambda request: httpx.Response(
                200,
                json=[
                    {'seatId': 1, 'available': True, 'price': '10.00', 'label': 'A-1'},
                    {'seatId': 2, 'available': False, 'price': 15},
                ],
            )
        )
        client = InventoryClientImpl(base_url=BASE_URL, client=recorder.client())

        # Act
        quotes = await client.verify_seats(show_id=7, seat_ids=[1, 2])

        # Assert
        request = recorder.requests[0]
        assert request.method == 'POST'
        assert request.url.path == '/api/v1/shows/internal/seats/verify'
        assert recorder.body() == {'showId': 7, 'seatIds': [1, 2]}
        assert [(q.seat_id, q.available, q.price) for q in quotes] == [
            (1, True, Decimal('10.00')),
            (2, False, Decimal('15')),
        ]
        assert quotes[0].label == 'A-1'

    @pytest.mark.asyncio
    @pytest.mark.parametrize('action', ['lock', 'release', 'book'])
    async def test_seat_actions_hit_their_endpoint(self, action: str) -> None:
        recorder = Recorder(
            lambda request: httpx.Response(
                200, json={'seats': [{'seatId': 3, 'available': True, 'price': '5'}]}
            )
        )
        client = InventoryClientImpl(base_url=BASE_URL, client=recorder.client())

        method = getattr(client, f'{action}_seats')
        quotes = await method(show_id=1, seat_ids=[3])

        assert recorder.requests[0].url.path == f'/api/v1/shows/internal/seats/{action}'
        assert quotes[0].seat_id == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'response',
        [
            httpx.Response(200, json=[]),
            httpx.Response(200, json={'seats': []}),
            httpx.Response(200, json=[{'available': True, 'price': '1.00'}]),
            httpx.Response(200, json=[{'seatId': 1, 'available': True}]),
            httpx.Response(200, json=[{'seatId': 1, 'available': True, 'price': None}]),
            httpx.Response(200, json=[{'seatId': 1, 'available': True, 'price': 'n/a'}]),
            httpx.Response(200, json=[{'seatId': 1, 'price': '1.00'}]),
            httpx.Response(200, content=b'not json'),
            httpx.Response(503, json={'error': 'maintenance'}),
        ],
    )
    async def test_bad_answers_are_upstream_errors(self, response: httpx.Response) -> None:
        client = InventoryClientImpl(
            base_url=BASE_URL, client=Recorder(lambda request: response).client()
        )

        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.verify_seats(show_id=1, seat_ids=[1])

        assert exc_info.value.service == 'inventory'

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        client = InventoryClientImpl(base_url=BASE_URL, client=Recorder(refuse).client())

        with pytest.raises(UpstreamServiceError, match='unreachable') as exc_info:
            await client.lock_seats(show_id=1, seat_ids=[1])

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.unit
class TestPaymentClient:
    @pytest.mark.asyncio
    async def test_create_checkout_session(self) -> None:
        recorder = Recorder(
            lambda request: httpx.Response(
                200,
                json={
                    'sessionId': 'cs_123',
                    'paymentUrl': 'https://pay.test/cs_123',
                    'expiresAt': '2030-01-01T00:00:00Z',
                },
            )
        )
        client = PaymentClientImpl(base_url=BASE_URL, client=recorder.client())
        booking_id = uuid7()

        session = await client.create_checkout_session(
            booking_id=booking_id, user_id=4, amount=Decimal('25.00')
        )

        assert recorder.requests[0].url.path == '/api/v1/internal/payments/checkout/create'
        assert recorder.body() == {'bookingId': str(booking_id), 'userId': 4, 'amount': 25.0}
        assert session.session_id == 'cs_123'
        assert session.payment_url == 'https://pay.test/cs_123'
        assert session.expires_at == '2030-01-01T00:00:00Z'

    @pytest.mark.asyncio
    async def test_checkout_without_session_id_is_rejected(self) -> None:
        client = PaymentClientImpl(
            base_url=BASE_URL,
            client=Recorder(lambda request: httpx.Response(200, json={'ok': True})).client(),
        )

        with pytest.raises(UpstreamServiceError, match='no checkout session'):
            await client.create_checkout_session(
                booking_id=uuid7(), user_id=4, amount=Decimal('1')
            )

    @pytest.mark.asyncio
    async def test_session_status(self) -> None:
        recorder = Recorder(
            lambda request: httpx.Response(
                200, json={'status': 'completed', 'transactionId': 'txn_9'}
            )
        )
        client = PaymentClientImpl(base_url=BASE_URL, client=recorder.client())

        result = await client.get_session_status(session_id='cs_123')

        assert recorder.requests[0].method == 'GET'
        assert recorder.requests[0].url.path == '/api/v1/internal/payments/checkout/verify/cs_123'
        assert result.is_completed
        assert result.transaction_id == 'txn_9'

    @pytest.mark.asyncio
    async def test_status_missing_is_rejected(self) -> None:
        client = PaymentClientImpl(
            base_url=BASE_URL,
            client=Recorder(lambda request: httpx.Response(200, json={})).client(),
        )

        with pytest.raises(UpstreamServiceError, match='no status'):
            await client.get_session_status(session_id='cs_1')


@pytest.mark.unit
class TestNotificationClient:
    @pytest.mark.asyncio
    async def test_failure_notification_posts_event_payload(self) -> None:
        recorder = Recorder(lambda request: httpx.Response(202))
        client = NotificationClientImpl(base_url=BASE_URL, client=recorder.client())
        event = BookingFailedEvent(
            booking_id=uuid7(), user_id=1, show_id=2, total_amount='10.00', reason='timeout'
        )

        await client.post_booking_failure(event=event)

        assert recorder.requests[0].url.path == '/api/v1/internal/notifications/booking-failure'
        assert recorder.body() == event.to_payload()

    @pytest.mark.asyncio
    async def test_error_status_propagates(self) -> None:
        client = NotificationClientImpl(
            base_url=BASE_URL,
            client=Recorder(lambda request: httpx.Response(500)).client(),
        )
        event = BookingFailedEvent(
            booking_id=uuid7(), user_id=1, show_id=2, total_amount='10.00', reason='timeout'
        )

        with pytest.raises(UpstreamServiceError, match='returned 500'):
            await client.post_booking_failure(event=event)
