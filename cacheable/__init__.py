"""
Cacheable - method-level cache-aside layer

Read-through caching and delayed double-deletion invalidation for
arbitrary operations, over a pluggable key-value store.

Example usage:
    from cacheable import cacheable, cache_evict

    @cacheable("user", params=["user_id"], timeout=60)
    async def get_user(user_id: int) -> dict:
        ...

    @cache_evict("user", params=["user_id"])
    async def update_user(user_id: int, data: dict) -> None:
        ...
"""

from typing import Any, Callable, Optional, Sequence

from .constants import APP_VERSION
from .domain.cache.repository_interfaces import CacheStore
from .domain.cache.value_objects import (
    CacheAbleOptions,
    CacheEvictOptions,
    CacheKey,
    ParamBinding,
    StoreOptions,
    TTL,
    derive_key,
)
from .infrastructure.store import (
    CacheConfigurationException,
    CacheDecodeException,
    CacheException,
    MemoryStore,
    RedisStore,
    ResolverState,
    StoreOperationException,
    StoreResolver,
    StoreUnavailableException,
    create_store,
)
from .services.cache.cache_manager import CacheManager, cache_manager
from .services.cache.decorators import cache_evict, cacheable
from .services.cache.executors import CacheDefaults
from .services.cache.lifecycle import cache_lifespan
from .services.cache.scheduler import DeferredTaskScheduler

__version__ = APP_VERSION


def wrap_read_through(
    operation: Callable[..., Any],
    base_name: str,
    declared_params: Sequence[str] = (),
    timeout_seconds: Optional[int] = None,
) -> Callable[..., Any]:
    """Wrap ``operation`` with CacheAble behavior on the default manager."""
    return cache_manager.wrap_read_through(
        operation, base_name, declared_params, timeout_seconds
    )


def wrap_invalidation(
    operation: Callable[..., Any],
    base_name: str,
    declared_params: Sequence[str] = (),
    delayed_double_deletion: Optional[bool] = None,
    delay_ms: Optional[int] = None,
) -> Callable[..., Any]:
    """Wrap ``operation`` with CacheEvict behavior on the default manager."""
    return cache_manager.wrap_invalidation(
        operation, base_name, declared_params, delayed_double_deletion, delay_ms
    )


__all__ = [
    # Decorators and wrapping
    "cacheable",
    "cache_evict",
    "wrap_read_through",
    "wrap_invalidation",
    # Service
    "CacheManager",
    "cache_manager",
    "CacheDefaults",
    "DeferredTaskScheduler",
    "cache_lifespan",
    # Domain
    "CacheStore",
    "CacheKey",
    "ParamBinding",
    "TTL",
    "CacheAbleOptions",
    "CacheEvictOptions",
    "StoreOptions",
    "derive_key",
    # Stores
    "MemoryStore",
    "RedisStore",
    "StoreResolver",
    "ResolverState",
    "create_store",
    # Exceptions
    "CacheException",
    "StoreUnavailableException",
    "StoreOperationException",
    "CacheDecodeException",
    "CacheConfigurationException",
]
