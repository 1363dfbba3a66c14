"""
Seat Lock Store Interface

Thin port over an atomic key-value store. No seat or booking semantics live
here; ``SeatLockManager`` owns those.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ISeatLockStore(ABC):
    @abstractmethod
    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        """Atomically set ``key`` with expiry only if it does not exist yet."""
        pass

    @abstractmethod
    async def get(self, *, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def exists(self, *, key: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, *, keys: list[str]) -> int:
        """Delete keys unconditionally, returning how many existed."""
        pass

    @abstractmethod
    async def delete_if_value(self, *, key: str, value: str) -> bool:
        """Delete ``key`` only while it still holds ``value`` (ownership check)."""
        pass
