"""
Cache Manager Service

High-level cache service that owns the store resolver, the deferred task
scheduler and the manager-wide defaults, and builds read-through and
invalidation wrappers on top of them.
"""

import inspect
import time
from typing import Any, Callable, Dict, Optional, Sequence

import structlog
from pydantic import ValidationError

from ...constants import APP_NAME, APP_VERSION
from ...core.config import Settings, settings
from ...domain.cache.value_objects import (
    CacheAbleOptions,
    CacheEvictOptions,
    ParamBinding,
    StoreOptions,
    TTL,
)
from ...infrastructure.store.exceptions import (
    CacheConfigurationException,
    CacheException,
)
from ...infrastructure.store.resolver import StoreFactory, StoreResolver, create_store
from .executors import CacheDefaults, InvalidationExecutor, ReadThroughExecutor
from .scheduler import DeferredTaskScheduler

logger = structlog.get_logger(__name__)


class CacheManager:
    """
    Cache-aside service.

    One instance per process is the normal setup; pass an instance
    explicitly wherever a separate store is needed (tests, multiple
    backends).
    """

    def __init__(
        self,
        store_options: Optional[StoreOptions] = None,
        config: Optional[Settings] = None,
        store_factory: StoreFactory = create_store,
    ):
        config = config or settings
        self.resolver = StoreResolver(
            store_options or StoreOptions.from_settings(config), store_factory
        )
        self.scheduler = DeferredTaskScheduler()
        self.defaults = CacheDefaults.from_settings(config)
        self._read_through = ReadThroughExecutor(
            self.resolver, self.scheduler, self.defaults
        )
        self._invalidation = InvalidationExecutor(
            self.resolver, self.scheduler, self.defaults
        )

    def set_default_config(
        self,
        timeout: Optional[int] = None,
        delayed_double_deletion: Optional[bool] = None,
        delay_ms: Optional[int] = None,
        penetration_ttl: Optional[int] = None,
    ) -> None:
        """Update manager-wide defaults; unset arguments keep their value."""
        if timeout is not None:
            self.defaults.timeout = self._validated_ttl("timeout", timeout).seconds
        if delayed_double_deletion is not None:
            self.defaults.delayed_double_deletion = delayed_double_deletion
        if delay_ms is not None:
            if delay_ms < 0:
                raise CacheConfigurationException(
                    "Double deletion delay cannot be negative", "delay_ms", delay_ms
                )
            self.defaults.delay_ms = delay_ms
        if penetration_ttl is not None:
            self.defaults.penetration_ttl = self._validated_ttl(
                "penetration_ttl", penetration_ttl
            ).seconds

    @staticmethod
    def _validated_ttl(name: str, seconds: int) -> TTL:
        try:
            return TTL(seconds)
        except ValueError as e:
            raise CacheConfigurationException(str(e), name, seconds)

    # Registration

    def wrap_read_through(
        self,
        operation: Callable[..., Any],
        base_name: str,
        declared_params: Sequence[str] = (),
        timeout_seconds: Optional[int] = None,
        signature_params: Optional[Sequence[str]] = None,
    ) -> Callable[..., Any]:
        """
        Wrap ``operation`` with CacheAble behavior.

        Args:
            operation: Function or coroutine function to cache
            base_name: Cache name, the first key component
            declared_params: Cache-relevant parameter names, in key order
            timeout_seconds: TTL for cached results (manager default if None)
            signature_params: Ordered parameter names of ``operation``;
                read from its signature when omitted

        Returns:
            Coroutine function with the same call signature

        Raises:
            CacheConfigurationException: If the registration is invalid
        """
        try:
            options = CacheAbleOptions(
                cache_name=base_name,
                params=list(declared_params),
                timeout=timeout_seconds,
            )
        except ValidationError as e:
            raise CacheConfigurationException(
                f"Invalid cacheable registration for '{base_name}': {e}",
                config_key="cache_name",
                config_value=base_name,
            )
        binding = self._bind(operation, options.cache_name, options.params, signature_params)
        return self._read_through.wrap(operation, options, binding)

    def wrap_invalidation(
        self,
        operation: Callable[..., Any],
        base_name: str,
        declared_params: Sequence[str] = (),
        delayed_double_deletion: Optional[bool] = None,
        delay_ms: Optional[int] = None,
        signature_params: Optional[Sequence[str]] = None,
    ) -> Callable[..., Any]:
        """
        Wrap ``operation`` with CacheEvict behavior.

        Args:
            operation: Mutating function or coroutine function
            base_name: Cache name, the first key component
            declared_params: Cache-relevant parameter names, in key order
            delayed_double_deletion: Schedule a second delete (manager default if None)
            delay_ms: Second delete delay (manager default if None)
            signature_params: Ordered parameter names of ``operation``

        Returns:
            Coroutine function with the same call signature

        Raises:
            CacheConfigurationException: If the registration is invalid
        """
        try:
            options = CacheEvictOptions(
                cache_name=base_name,
                params=list(declared_params),
                delayed_double_deletion=delayed_double_deletion,
                delay_ms=delay_ms,
            )
        except ValidationError as e:
            raise CacheConfigurationException(
                f"Invalid cache evict registration for '{base_name}': {e}",
                config_key="cache_name",
                config_value=base_name,
            )
        binding = self._bind(operation, options.cache_name, options.params, signature_params)
        return self._invalidation.wrap(operation, options, binding)

    def _bind(
        self,
        operation: Callable[..., Any],
        cache_name: str,
        params: Sequence[str],
        signature_params: Optional[Sequence[str]],
    ) -> ParamBinding:
        if not callable(operation):
            raise CacheConfigurationException(
                f"Cache operation for '{cache_name}' is not callable",
                config_key="operation",
                config_value=operation,
            )

        try:
            if signature_params is not None:
                binding = ParamBinding.from_signature_names(params, signature_params)
                known = set(signature_params)
            else:
                binding = ParamBinding.from_callable(params, operation)
                known = set(inspect.signature(operation).parameters)
        except (TypeError, ValueError) as e:
            raise CacheConfigurationException(
                f"Cannot bind cache parameters for '{cache_name}': {e}",
                config_key="params",
                config_value=list(params),
            )

        missing = [name for name in binding.unbound if name not in known]
        if missing:
            logger.warning(
                "Cache parameters not found in operation signature, ignored in key",
                cache_name=cache_name,
                operation=getattr(operation, "__qualname__", repr(operation)),
                params=missing,
            )
        return binding

    # Lifecycle

    async def on_ready(self, options: Optional[StoreOptions] = None) -> bool:
        """
        Resolve the store with final configuration at application start.

        Returns:
            True if the store is ready; False if it is unavailable, in
            which case wrapped operations run uncached
        """
        if options is not None:
            self.resolver.configure(options)

        try:
            await self.resolver.resolve()
            logger.info("Cache store ready", **self.resolver.get_metrics())
            return True
        except CacheException as e:
            logger.error(
                "Cache store unavailable at startup, caching disabled until it recovers",
                error=e.message,
                details=e.details,
            )
            return False

    async def on_shutdown(self) -> None:
        """Drop pending deferred work and close the store."""
        dropped = await self.scheduler.shutdown()
        await self.resolver.close()
        logger.info("Cache manager shut down", dropped_tasks=dropped)

    async def health_check(self) -> Dict[str, Any]:
        """Report store connectivity, pending work and effective defaults."""
        store = self.resolver.store
        reachable = False
        if store is not None:
            try:
                reachable = await store.ping()
            except Exception as e:
                logger.warning("Cache store ping failed", error=str(e))

        resolver_status = self.resolver.get_metrics()
        if reachable:
            status = "healthy"
        elif resolver_status["state"] == "uninitialized" and not resolver_status["last_error"]:
            status = "idle"
        else:
            status = "unhealthy"

        return {
            "status": status,
            "service": APP_NAME,
            "version": APP_VERSION,
            "timestamp": time.time(),
            "resolver": resolver_status,
            "pending_deferred_tasks": self.scheduler.pending,
            "defaults": self.defaults.as_dict(),
        }


# Global cache manager instance
cache_manager = CacheManager()
