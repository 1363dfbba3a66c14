"""
Kvrocks Seat Lock Store

``SET NX EX`` for acquisition and a Lua compare-and-delete for ownership-checked
release. Kvrocks speaks the Redis protocol, so ``redis.asyncio`` drives it.
"""

from typing import Callable, Optional

from redis.asyncio import Redis as AsyncRedis

from src.platform.state.kvrocks_client import kvrocks_client
from src.service.booking.app.interface.i_seat_lock_store import ISeatLockStore


# Only delete the key while it still holds our value
COMPARE_AND_DELETE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class KvrocksSeatLockStoreImpl(ISeatLockStore):
    def __init__(
        self, *, client_provider: Callable[[], AsyncRedis] = kvrocks_client.get_client
    ) -> None:
        # Resolved per call: the pool only exists after application startup
        self._client_provider = client_provider

    @property
    def client(self) -> AsyncRedis:
        return self._client_provider()

    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        result = await self.client.set(key, value, nx=True, ex=ttl_seconds)
        return bool(result)

    async def get(self, *, key: str) -> Optional[str]:
        value = await self.client.get(key)
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def exists(self, *, key: str) -> bool:
        return bool(await self.client.exists(key))

    async def delete(self, *, keys: list[str]) -> int:
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    async def delete_if_value(self, *, key: str, value: str) -> bool:
        result = await self.client.eval(COMPARE_AND_DELETE_SCRIPT, 1, key, value)  # type: ignore
        return bool(result)
