from abc import ABC, abstractmethod
from decimal import Decimal
from uuid import UUID

from src.service.booking.domain.value_object.payment import CheckoutSession, PaymentResult


class IPaymentClient(ABC):
    @abstractmethod
    async def create_checkout_session(
        self, *, booking_id: UUID, user_id: int, amount: Decimal
    ) -> CheckoutSession:
        pass

    @abstractmethod
    async def get_session_status(self, *, session_id: str) -> PaymentResult:
        pass
