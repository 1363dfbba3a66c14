from decimal import Decimal
from typing import Any
from uuid import UUID

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import UpstreamServiceError
from src.service.booking.app.interface.i_payment_client import IPaymentClient
from src.service.booking.domain.value_object.payment import CheckoutSession, PaymentResult
from src.service.booking.driven_adapter.http_client.base_service_client import BaseServiceClient


CHECKOUT_PATH = '/api/v1/internal/payments/checkout'


class PaymentClientImpl(BaseServiceClient, IPaymentClient):
    service_name = 'payment'

    def __init__(self, *, base_url: str = settings.PAYMENT_SERVICE_URL, **kwargs: Any) -> None:
        super().__init__(base_url=base_url, **kwargs)

    async def create_checkout_session(
        self, *, booking_id: UUID, user_id: int, amount: Decimal
    ) -> CheckoutSession:
        body = await self._request(
            'POST',
            f'{CHECKOUT_PATH}/create',
            json={'bookingId': str(booking_id), 'userId': user_id, 'amount': float(amount)},
        )
        if not isinstance(body, dict) or not body.get('sessionId'):
            raise UpstreamServiceError(
                f'Payment service returned no checkout session for booking {booking_id}',
                service=self.service_name,
            )

        return CheckoutSession(
            session_id=str(body['sessionId']),
            payment_url=body.get('paymentUrl') or '',
            expires_at=body.get('expiresAt'),
        )

    async def get_session_status(self, *, session_id: str) -> PaymentResult:
        body = await self._request('GET', f'{CHECKOUT_PATH}/verify/{session_id}')
        if not isinstance(body, dict) or 'status' not in body:
            raise UpstreamServiceError(
                f'Payment service returned no status for session {session_id}',
                service=self.service_name,
            )

        return PaymentResult(
            status=str(body['status']),
            transaction_id=body.get('transactionId'),
            message=body.get('message'),
        )
