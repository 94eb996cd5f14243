"""
Cache Decorators

Decorator front-end for the read-through and invalidation executors.
Parameter binding is resolved once, when the function is decorated.
"""

from typing import Any, Callable, Optional, Sequence

from .cache_manager import CacheManager, cache_manager


def cacheable(
    cache_name: str,
    params: Sequence[str] = (),
    timeout: Optional[int] = None,
    manager: Optional[CacheManager] = None,
):
    """Decorator to serve repeated calls from the cache.

    The decorated function always becomes a coroutine function. Its key is
    ``cache_name`` plus ``:<param>:<value>`` for each name in ``params``
    that the call actually passes.

    Args:
        cache_name: Cache name, the first key component
        params: Cache-relevant parameter names, in key order
        timeout: TTL in seconds (manager default when None)
        manager: Cache manager to use (process-wide instance when None)

    Example:
        @cacheable("user", params=["user_id"], timeout=60)
        async def get_user(self, user_id: int) -> dict:
            return await self.repository.fetch(user_id)
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        active_manager = manager or cache_manager
        return active_manager.wrap_read_through(func, cache_name, params, timeout)

    return decorator


def cache_evict(
    cache_name: str,
    params: Sequence[str] = (),
    delayed_double_deletion: Optional[bool] = None,
    delay_ms: Optional[int] = None,
    manager: Optional[CacheManager] = None,
):
    """Decorator to invalidate a cached result after a write.

    Use the same ``cache_name`` and ``params`` as the matching
    ``@cacheable`` so both derive the same key.

    Example:
        @cache_evict("user", params=["user_id"])
        async def update_user(self, user_id: int, data: dict) -> bool:
            return await self.repository.update(user_id, data)
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        active_manager = manager or cache_manager
        return active_manager.wrap_invalidation(
            func, cache_name, params, delayed_double_deletion, delay_ms
        )

    return decorator
