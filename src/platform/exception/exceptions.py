class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    error_code: str | None = None

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class SeatLockConflictError(ConflictError):
    error_code = 'SEAT_LOCK_CONFLICT'

    def __init__(self, message: str, *, show_id: int | None = None, seat_id: int | None = None):
        self.show_id = show_id
        self.seat_id = seat_id
        super().__init__(message)


class PaymentFailureError(CustomBaseError):
    error_code = 'PAYMENT_FAILED'

    def __init__(
        self,
        message: str,
        *,
        payment_status: str,
        transaction_id: str | None = None,
    ) -> None:
        self.payment_status = payment_status
        self.transaction_id = transaction_id
        super().__init__(message, 402)


class UpstreamServiceError(CustomBaseError):
    """A remote dependency answered with an error status, an empty or an invalid result."""

    error_code = 'UPSTREAM_ERROR'

    def __init__(self, message: str, *, service: str = 'unknown') -> None:
        self.service = service
        super().__init__(message, 502)


class PollingTimeoutError(CustomBaseError):
    error_code = 'PAYMENT_POLL_TIMEOUT'

    def __init__(self, message: str) -> None:
        super().__init__(message, 504)


class BookingSystemError(CustomBaseError):
    """Wraps anything unanticipated; the cause stays on ``__cause__`` for the logs."""

    error_code = 'BOOKING_SYSTEM_ERROR'
    PUBLIC_MESSAGE = 'An unexpected error occurred while processing your request'

    def __init__(self, message: str = PUBLIC_MESSAGE) -> None:
        super().__init__(message, 500)
