"""
Main pytest configuration for cache layer tests.

Fixtures, fake stores and logging setup shared by unit tests.
"""

import os
from typing import Optional

import pytest
import pytest_asyncio

# Set test environment variables before importing package modules
os.environ["CACHE_STORE_TYPE"] = "memory"
os.environ["LOG_LEVEL"] = "DEBUG"

from cacheable.core.logging import configure_logging
from cacheable.domain.cache.repository_interfaces import CacheStore
from cacheable.domain.cache.value_objects import StoreOptions
from cacheable.infrastructure.store.exceptions import StoreOperationException
from cacheable.infrastructure.store.memory_store import MemoryStore
from cacheable.services.cache.cache_manager import CacheManager

configure_logging("DEBUG")


class CountingMemoryStore(MemoryStore):
    """Memory store that records every operation it serves."""

    def __init__(self, key_prefix: str = ""):
        super().__init__(key_prefix)
        self.calls = []
        self.connect_count = 0

    async def connect(self) -> None:
        self.connect_count += 1
        await super().connect()

    async def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        return await super().get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.calls.append(("set", key, value, ttl_seconds))
        await super().set(key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        await super().delete(key)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)


class FailingStore(CacheStore):
    """Connected store whose every data operation fails."""

    store_type = "failing"

    def __init__(self):
        self.attempts = 0

    async def connect(self) -> None:
        pass

    async def get(self, key: str) -> Optional[str]:
        self.attempts += 1
        raise StoreOperationException("get", key, ConnectionResetError("boom"))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.attempts += 1
        raise StoreOperationException("set", key, ConnectionResetError("boom"))

    async def delete(self, key: str) -> None:
        self.attempts += 1
        raise StoreOperationException("delete", key, ConnectionResetError("boom"))

    def is_connected(self) -> bool:
        return True

    async def close(self) -> None:
        raise RuntimeError("close failed")


@pytest.fixture
def memory_store():
    """Shared memory store handed out by the manager's store factory."""
    return CountingMemoryStore()


@pytest_asyncio.fixture
async def manager(memory_store):
    """Cache manager backed by the shared memory store."""
    cache_manager = CacheManager(
        store_options=StoreOptions(type="memory"),
        store_factory=lambda options: memory_store,
    )
    yield cache_manager
    await cache_manager.on_shutdown()


@pytest_asyncio.fixture
async def failing_manager():
    """Cache manager whose store fails every get/set/delete."""
    store = FailingStore()
    cache_manager = CacheManager(
        store_options=StoreOptions(type="memory"),
        store_factory=lambda options: store,
    )
    cache_manager.failing_store = store
    yield cache_manager
    await cache_manager.on_shutdown()


# Test markers and configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "redis: marks tests as Redis-related")
    config.addinivalue_line("markers", "concurrency: marks tests exercising concurrent callers")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        if "redis" in item.nodeid:
            item.add_marker(pytest.mark.redis)
