"""
Cache-Aside Executors

Read-through (CacheAble) and invalidation (CacheEvict) wrappers around
arbitrary operations. Every cache-layer failure degrades to calling the
operation as if the cache did not exist; only errors raised by the
operation itself reach the caller.
"""

import functools
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ...constants import (
    DEFAULT_CACHE_TIMEOUT,
    DEFAULT_DELAYED_DOUBLE_DELETION,
    DEFAULT_DOUBLE_DELETION_DELAY_MS,
    PENETRATION_TTL,
)
from ...core.config import Settings
from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import (
    CacheAbleOptions,
    CacheEvictOptions,
    CacheKey,
    ParamBinding,
)
from ...infrastructure.store.exceptions import CacheDecodeException, CacheException
from ...infrastructure.store.resolver import StoreResolver
from .scheduler import DeferredTaskScheduler
from .serializer import decode, encode, is_empty_result

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

_MISS = object()


@dataclass
class CacheDefaults:
    """Manager-wide fallbacks for options left unset at registration."""

    timeout: int = DEFAULT_CACHE_TIMEOUT
    delayed_double_deletion: bool = DEFAULT_DELAYED_DOUBLE_DELETION
    delay_ms: int = DEFAULT_DOUBLE_DELETION_DELAY_MS
    penetration_ttl: int = PENETRATION_TTL

    @classmethod
    def from_settings(cls, config: Settings) -> "CacheDefaults":
        return cls(
            timeout=config.CACHE_DEFAULT_TIMEOUT,
            delayed_double_deletion=config.CACHE_DELAYED_DOUBLE_DELETION,
            delay_ms=config.CACHE_DOUBLE_DELETION_DELAY_MS,
            penetration_ttl=config.CACHE_PENETRATION_TTL,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "timeout": self.timeout,
            "delayed_double_deletion": self.delayed_double_deletion,
            "delay_ms": self.delay_ms,
            "penetration_ttl": self.penetration_ttl,
        }


async def _invoke(operation: Callable, args: tuple, kwargs: dict) -> Any:
    result = operation(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class _CacheExecutor:
    """Shared store access for both executors."""

    def __init__(
        self,
        resolver: StoreResolver,
        scheduler: DeferredTaskScheduler,
        defaults: CacheDefaults,
    ):
        self._resolver = resolver
        self._scheduler = scheduler
        self._defaults = defaults

    async def _resolve_store(self, cache_name: str) -> Optional[CacheStore]:
        try:
            return await self._resolver.resolve()
        except CacheException as e:
            logger.warning(
                "Cache store unavailable, executing operation directly",
                cache_name=cache_name,
                error=e.message,
            )
            return None

    async def _delete_quietly(self, store: CacheStore, key: str, reason: str) -> None:
        try:
            await store.delete(key)
        except Exception as e:
            logger.warning("Cache delete error", key=key, reason=reason, error=str(e))


class ReadThroughExecutor(_CacheExecutor):
    """
    CacheAble behavior.

    Serves a stored result when present; otherwise runs the operation and
    stores its result before returning it.
    """

    def wrap(
        self,
        operation: Callable[..., Any],
        options: CacheAbleOptions,
        binding: ParamBinding,
    ) -> Callable[..., Awaitable[Any]]:
        cache_name = options.cache_name

        @functools.wraps(operation)
        async def read_through(*args, **kwargs):
            store = await self._resolve_store(cache_name)
            if store is None:
                return await _invoke(operation, args, kwargs)

            key = CacheKey.derive(cache_name, binding, args, kwargs).value

            with tracer.start_as_current_span("cacheable.read_through") as span:
                span.set_attribute("cache.name", cache_name)
                span.set_attribute("cache.key", key)

                cached = await self._read(store, key)
                if cached is not _MISS:
                    span.set_attribute("cache.hit", True)
                    logger.debug("Cache hit", cache_name=cache_name, key=key)
                    return cached
                span.set_attribute("cache.hit", False)

                try:
                    result = await _invoke(operation, args, kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

                await self._write(store, key, result, options.timeout)
                return result

        return read_through

    async def _read(self, store: CacheStore, key: str) -> Any:
        try:
            raw = await store.get(key)
        except Exception as e:
            logger.warning("Cache get error", key=key, error=str(e))
            return _MISS

        if raw is None or raw == "":
            return _MISS

        try:
            return decode(key, raw)
        except CacheDecodeException as e:
            logger.warning("Discarding undecodable cache entry", key=key, error=e.message)
            await self._delete_quietly(store, key, "corrupt entry")
            return _MISS

    async def _write(
        self, store: CacheStore, key: str, result: Any, timeout: Optional[int]
    ) -> None:
        """Store the result before the caller sees it; failures are logged only.

        Empty results get the penetration TTL, kept below the operation TTL
        so "nothing" always expires first. A one-second operation TTL is the
        exception: whole seconds leave no shorter value.
        """
        ttl = timeout or self._defaults.timeout
        if is_empty_result(result):
            ttl = max(1, min(self._defaults.penetration_ttl, ttl - 1))

        try:
            payload = encode(result)
        except (TypeError, ValueError) as e:
            logger.warning("Cache encode error, result not cached", key=key, error=str(e))
            return

        try:
            await store.set(key, payload, ttl)
        except Exception as e:
            logger.warning("Cache set error", key=key, error=str(e))


class InvalidationExecutor(_CacheExecutor):
    """
    CacheEvict behavior.

    Runs the operation, deletes its key immediately and, when enabled,
    deletes it once more after a delay to clear values repopulated by
    readers that raced the write.
    """

    def wrap(
        self,
        operation: Callable[..., Any],
        options: CacheEvictOptions,
        binding: ParamBinding,
    ) -> Callable[..., Awaitable[Any]]:
        cache_name = options.cache_name

        @functools.wraps(operation)
        async def invalidate(*args, **kwargs):
            store = await self._resolve_store(cache_name)
            if store is None:
                return await _invoke(operation, args, kwargs)

            key = CacheKey.derive(cache_name, binding, args, kwargs).value

            with tracer.start_as_current_span("cacheable.invalidate") as span:
                span.set_attribute("cache.name", cache_name)
                span.set_attribute("cache.key", key)

                try:
                    result = await _invoke(operation, args, kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

                await self._delete_quietly(store, key, "evict")

                double_deletion = options.delayed_double_deletion
                if double_deletion is None:
                    double_deletion = self._defaults.delayed_double_deletion
                if double_deletion:
                    delay_ms = options.delay_ms
                    if delay_ms is None:
                        delay_ms = self._defaults.delay_ms
                    self._schedule_second_delete(key, delay_ms)

                return result

        return invalidate

    def _schedule_second_delete(self, key: str, delay_ms: int) -> None:
        async def second_delete() -> None:
            # Re-resolve: the handle may have been replaced during the delay
            try:
                store = await self._resolver.resolve()
            except CacheException as e:
                logger.warning("Cache double delete skipped", key=key, error=e.message)
                return
            await self._delete_quietly(store, key, "double delete")

        self._scheduler.schedule(second_delete, delay_ms)
        logger.debug("Scheduled cache double delete", key=key, delay_ms=delay_ms)
