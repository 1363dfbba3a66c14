"""
Bounded retry with exponential backoff, plus an explicit recovery hook.

``execute_with_retry`` runs ``operation`` up to ``policy.max_attempts`` times.
Only when every attempt failed does it call ``recover`` with the last error;
without ``recover`` the last error is re-raised.
"""

from typing import Awaitable, Callable, List, Optional, TypeVar

import anyio
import attrs

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


T = TypeVar('T')
R = TypeVar('R')


@attrs.define(frozen=True)
class RetryPolicy:
    max_attempts: int = attrs.field(default=3, validator=attrs.validators.ge(1))
    initial_backoff_seconds: float = 1.0
    multiplier: float = 2.0
    max_backoff_seconds: Optional[float] = None

    @classmethod
    def from_settings(cls) -> 'RetryPolicy':
        return cls(
            max_attempts=settings.EVENT_DISPATCH_MAX_ATTEMPTS,
            initial_backoff_seconds=settings.EVENT_DISPATCH_INITIAL_BACKOFF_SECONDS,
            multiplier=settings.EVENT_DISPATCH_BACKOFF_MULTIPLIER,
        )

    def backoff_after(self, attempt: int) -> float:
        """Wait after failed attempt ``attempt`` (1-based)."""
        delay = self.initial_backoff_seconds * (self.multiplier ** (attempt - 1))
        if self.max_backoff_seconds is not None:
            delay = min(delay, self.max_backoff_seconds)
        return delay

    def backoff_schedule(self) -> List[float]:
        return [self.backoff_after(attempt) for attempt in range(1, self.max_attempts)]


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    recover: Optional[Callable[[Exception], Awaitable[R]]] = None,
    sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    operation_name: str = 'operation',
) -> T | R:
    last_error: Optional[Exception] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt < policy.max_attempts:
                delay = policy.backoff_after(attempt)
                Logger.base.warning(
                    f'🔁 [RETRY] {operation_name} attempt {attempt}/{policy.max_attempts} '
                    f'failed: {e} (next in {delay:.1f}s)'
                )
                await sleep(delay)

    assert last_error is not None
    Logger.base.error(
        f'❌ [RETRY] {operation_name} exhausted {policy.max_attempts} attempts: {last_error}'
    )
    if recover is None:
        raise last_error
    return await recover(last_error)
