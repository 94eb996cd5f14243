"""
In-Memory Cache Store

Process-local store with per-key expiry. Used as the default backend and
in tests. Expired entries are dropped on access and by a periodic sweep
during writes, so keys never read again do not accumulate.
"""

import logging
import time
from typing import Dict, Optional, Tuple

from ...domain.cache.repository_interfaces import CacheStore
from .exceptions import StoreOperationException

logger = logging.getLogger(__name__)

# Writes between sweeps of expired entries
SWEEP_INTERVAL = 100


class MemoryStore(CacheStore):
    """
    Dictionary-backed store with TTL support.

    Every operation completes without suspending, so a single event loop
    never observes a half-applied write.
    """

    store_type = "memory"

    def __init__(self, key_prefix: str = ""):
        self._key_prefix = key_prefix
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._connected = False
        self._writes_since_sweep = 0

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _require_connection(self, operation: str, key: str) -> None:
        if not self._connected:
            raise StoreOperationException(
                operation=operation,
                key=key,
                original_error=ConnectionError("Memory store is closed"),
            )

    async def connect(self) -> None:
        self._connected = True
        logger.debug("Memory cache store connected")

    async def get(self, key: str) -> Optional[str]:
        self._require_connection("get", key)
        full_key = self._make_key(key)
        entry = self._entries.get(full_key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._entries[full_key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._require_connection("set", key)
        self._entries[self._make_key(key)] = (value, time.monotonic() + ttl_seconds)

        self._writes_since_sweep += 1
        if self._writes_since_sweep >= SWEEP_INTERVAL:
            self.sweep()

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        self._writes_since_sweep = 0
        now = time.monotonic()
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for full_key in expired:
            del self._entries[full_key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    async def delete(self, key: str) -> None:
        self._require_connection("delete", key)
        self._entries.pop(self._make_key(key), None)

    def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime of key in seconds, or None when absent."""
        entry = self._entries.get(self._make_key(key))
        if entry is None:
            return None
        remaining = entry[1] - time.monotonic()
        return remaining if remaining > 0 else None

    def is_connected(self) -> bool:
        return self._connected

    async def close(self) -> None:
        self._entries.clear()
        self._connected = False
        logger.debug("Memory cache store closed")

    def __len__(self) -> int:
        return len(self._entries)
