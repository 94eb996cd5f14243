"""
Cache Store Interface

Abstract contract for the key-value store the cache layer reads through
and invalidates. Implementations live in ``infrastructure.store``.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CacheStore(ABC):
    """
    Abstract key-value store with TTL support.

    Operations raise ``StoreOperationException`` on I/O failure. The
    resolver owns the store; executors only borrow it per call and never
    close it.
    """

    store_type: str = "abstract"

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend connection."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get the stored value, or None when absent or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key with an expiry."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key; deleting a missing key is not an error."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Liveness probe used to decide whether the handle is reusable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the backend connection."""
        pass

    async def ping(self) -> bool:
        """Round-trip health probe."""
        return self.is_connected()
