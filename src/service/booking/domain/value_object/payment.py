from enum import StrEnum
from typing import Optional

import attrs


class PaymentStatus(StrEnum):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'
    TIMEOUT = 'TIMEOUT'


@attrs.define(frozen=True)
class CheckoutSession:
    session_id: str
    payment_url: str
    expires_at: Optional[str] = None


@attrs.define(frozen=True)
class PaymentResult:
    """Status reported by the payment service; comparison is case-insensitive."""

    status: str
    transaction_id: Optional[str] = None
    message: Optional[str] = None

    @property
    def normalized_status(self) -> str:
        return (self.status or '').upper()

    @property
    def is_completed(self) -> bool:
        return self.normalized_status == PaymentStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.normalized_status == PaymentStatus.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.is_completed or self.is_failed
