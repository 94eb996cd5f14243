"""
Cache Store Infrastructure Module

Store backends and single-flight store resolution.

This module provides:
- MemoryStore: Process-local TTL store
- RedisStore: Redis-backed store over redis.asyncio
- StoreResolver: Shared store handle with single-flight initialization
- Cache exception taxonomy
"""

from .memory_store import MemoryStore
from .redis_store import RedisStore
from .resolver import StoreResolver, ResolverState, create_store
from .exceptions import (
    CacheException,
    StoreUnavailableException,
    StoreOperationException,
    CacheDecodeException,
    CacheConfigurationException,
)

__all__ = [
    # Stores
    "MemoryStore",
    "RedisStore",
    "create_store",
    # Resolution
    "StoreResolver",
    "ResolverState",
    # Exceptions
    "CacheException",
    "StoreUnavailableException",
    "StoreOperationException",
    "CacheDecodeException",
    "CacheConfigurationException",
]
