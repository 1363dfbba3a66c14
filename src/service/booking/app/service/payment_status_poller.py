"""
Payment Status Poller

Turns the payment service's PENDING answers into a bounded wait. Two bounds
apply independently: attempt count and wall-clock time, so a short interval
with a generous attempt count cannot stretch the wait indefinitely.

Worst case the loop returns within ``timeout_ms`` plus one interval.
No database session may be held by the caller while this runs.
"""

import time
from typing import Callable

import anyio

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import PollingTimeoutError, UpstreamServiceError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.interface.i_payment_client import IPaymentClient
from src.service.booking.domain.value_object.payment import PaymentResult


class PaymentStatusPoller:
    def __init__(
        self,
        *,
        payment_client: IPaymentClient,
        max_attempts: int = settings.PAYMENT_POLL_MAX_ATTEMPTS,
        interval_ms: int = settings.PAYMENT_POLL_INTERVAL_MS,
        timeout_ms: int = settings.PAYMENT_POLL_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.payment_client = payment_client
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.timeout_ms = timeout_ms
        self._clock = clock

    @Logger.io
    async def poll(self, *, session_id: str) -> PaymentResult:
        """
        Poll until COMPLETED or FAILED.

        Raises:
            PollingTimeoutError: elapsed time or attempt budget exhausted
            UpstreamServiceError: status call still failing on the final attempt
        """
        started = self._clock()
        interval = self.interval_ms / 1000

        for attempt in range(1, self.max_attempts + 1):
            elapsed_ms = (self._clock() - started) * 1000
            if elapsed_ms > self.timeout_ms:
                metrics.record_payment_poll(result='timeout', duration=elapsed_ms / 1000)
                raise PollingTimeoutError(
                    f'Payment polling timeout after {elapsed_ms:.0f}ms ({attempt - 1} attempts)'
                )

            try:
                result = await self.payment_client.get_session_status(session_id=session_id)
            except Exception as e:
                if attempt >= self.max_attempts:
                    metrics.record_payment_poll(
                        result='error', duration=self._clock() - started
                    )
                    raise UpstreamServiceError(
                        f'Payment verification failed after {attempt} attempts: {e}',
                        service='payment',
                    ) from e
                Logger.base.warning(
                    f'⚠️ [POLL] Status check {attempt}/{self.max_attempts} for session '
                    f'{session_id} failed: {e}'
                )
                await anyio.sleep(interval)
                continue

            if result.is_terminal:
                Logger.base.info(
                    f'💳 [POLL] Session {session_id} is {result.normalized_status} '
                    f'after {attempt} attempt(s)'
                )
                metrics.record_payment_poll(
                    result=result.normalized_status.lower(), duration=self._clock() - started
                )
                return result

            Logger.base.debug(
                f'⏳ [POLL] Session {session_id} still {result.normalized_status or "UNKNOWN"} '
                f'({attempt}/{self.max_attempts})'
            )
            if attempt < self.max_attempts:
                await anyio.sleep(interval)

        metrics.record_payment_poll(result='timeout', duration=self._clock() - started)
        raise PollingTimeoutError(
            f'Payment polling timeout: max polling attempts ({self.max_attempts}) reached'
        )
