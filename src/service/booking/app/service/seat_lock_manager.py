"""
Seat Lock Manager

Holds a set of per-seat locks as one unit on top of a store that only offers
per-key atomicity:

- Acquire in the order seats were supplied, ``SET NX`` with TTL per seat
- On the first seat already held, release everything taken in this call
- The store never blocks, so overlapping requests in different orders fail
  fast instead of deadlocking

TTL expiry is the safety net for crashed processes; every saga exit path
still releases explicitly.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import SeatLockConflictError, UpstreamServiceError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.interface.i_seat_lock_store import ISeatLockStore


class SeatLockManager:
    def __init__(
        self,
        *,
        lock_store: ISeatLockStore,
        key_prefix: str = settings.SEAT_LOCK_KEY_PREFIX,
        value_prefix: str = settings.SEAT_LOCK_VALUE_PREFIX,
        ttl_seconds: int = settings.SEAT_LOCK_TTL_SECONDS,
    ) -> None:
        self.lock_store = lock_store
        self.key_prefix = key_prefix
        self.value_prefix = value_prefix
        self.ttl_seconds = ttl_seconds

    def lock_key(self, *, show_id: int, seat_id: int) -> str:
        return f'{self.key_prefix}:{show_id}:{seat_id}'

    def lock_value(self, *, booking_id: UUID | str) -> str:
        return f'{self.value_prefix}:{booking_id}'

    @Logger.io
    async def acquire(
        self, *, show_id: int, seat_ids: Iterable[int], booking_id: UUID | str
    ) -> List[str]:
        """
        Lock every seat for ``booking_id`` or none of them.

        Returns:
            Lock keys in acquisition order

        Raises:
            SeatLockConflictError: a seat is already held by someone
            UpstreamServiceError: the lock store failed mid-acquisition
        """
        value = self.lock_value(booking_id=booking_id)
        acquired: List[str] = []

        # Duplicates would collide with our own lock
        for seat_id in dict.fromkeys(seat_ids):
            key = self.lock_key(show_id=show_id, seat_id=seat_id)
            try:
                locked = await self.lock_store.set_if_absent(
                    key=key, value=value, ttl_seconds=self.ttl_seconds
                )
            except Exception as e:
                Logger.base.error(f'❌ [LOCK] Lock store error on {key}: {e}')
                await self.release(lock_keys=acquired, booking_id=booking_id)
                raise UpstreamServiceError(
                    f'Lock store unavailable while locking seat {seat_id} in show {show_id}',
                    service='lock-store',
                ) from e

            if not locked:
                Logger.base.info(
                    f'⏳ [LOCK] Seat {seat_id} in show {show_id} already held, '
                    f'rolling back {len(acquired)} lock(s) for booking {booking_id}'
                )
                await self.release(lock_keys=acquired, booking_id=booking_id)
                metrics.record_seat_lock_conflict()
                raise SeatLockConflictError(
                    f'Seats no longer available. Seat {seat_id} in show {show_id} '
                    'is already locked.',
                    show_id=show_id,
                    seat_id=seat_id,
                )

            acquired.append(key)

        Logger.base.info(
            f'🔒 [LOCK] Acquired {len(acquired)} seat lock(s) for booking {booking_id} '
            f'(ttl={self.ttl_seconds}s)'
        )
        return acquired

    async def release(
        self, *, lock_keys: Iterable[str], booking_id: Optional[UUID | str] = None
    ) -> int:
        """
        Best-effort release; never raises.

        With ``booking_id`` only keys still owned by that booking are deleted, so a
        lock that expired and was re-taken by another booking survives.
        """
        keys = list(lock_keys)
        if not keys:
            return 0

        released = 0
        if booking_id is None:
            try:
                released = await self.lock_store.delete(keys=keys)
            except Exception as e:
                Logger.base.error(f'❌ [LOCK] Failed to release {keys}: {e}')
        else:
            value = self.lock_value(booking_id=booking_id)
            for key in keys:
                try:
                    if await self.lock_store.delete_if_value(key=key, value=value):
                        released += 1
                    else:
                        Logger.base.warning(f'⚠️ [LOCK] {key} not owned by {value} (expired?)')
                except Exception as e:
                    Logger.base.error(f'❌ [LOCK] Failed to release {key}: {e}')

        Logger.base.info(f'🔓 [LOCK] Released {released}/{len(keys)} seat lock(s)')
        return released

    async def release_by_ids(
        self,
        *,
        show_id: int,
        seat_ids: Iterable[int],
        booking_id: Optional[UUID | str] = None,
    ) -> int:
        keys = [self.lock_key(show_id=show_id, seat_id=seat_id) for seat_id in seat_ids]
        return await self.release(lock_keys=keys, booking_id=booking_id)

    async def is_seat_locked(self, *, show_id: int, seat_id: int) -> bool:
        return await self.lock_store.exists(key=self.lock_key(show_id=show_id, seat_id=seat_id))

    async def get_seat_lock_owner(self, *, show_id: int, seat_id: int) -> Optional[str]:
        """Booking id currently holding the seat, if any."""
        value = await self.lock_store.get(key=self.lock_key(show_id=show_id, seat_id=seat_id))
        if value is None:
            return None
        prefix = f'{self.value_prefix}:'
        return value[len(prefix) :] if value.startswith(prefix) else value
