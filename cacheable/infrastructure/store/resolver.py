"""
Cache Store Resolver

Owns the single live store handle for the process. Concurrent first-use
callers attach to one in-flight initialization task instead of each
opening their own backend connection.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import StoreOptions
from .exceptions import CacheConfigurationException, StoreUnavailableException
from .memory_store import MemoryStore
from .redis_store import RedisStore

logger = logging.getLogger(__name__)

StoreFactory = Callable[[StoreOptions], CacheStore]


class ResolverState(str, Enum):
    """Store resolver lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


def create_store(options: StoreOptions) -> CacheStore:
    """Build an unconnected store for the configured backend."""
    if options.type == "memory":
        return MemoryStore(key_prefix=options.key_prefix)
    if options.type == "redis":
        return RedisStore(options)
    raise CacheConfigurationException(
        message=f"Unsupported cache store type: {options.type}",
        config_key="type",
        config_value=options.type,
    )


def _consume_task_result(task: asyncio.Task) -> None:
    # Waiters may all have gone away; keep asyncio from reporting the error
    if not task.cancelled():
        task.exception()


class StoreResolver:
    """
    Lazily resolves and holds the store handle.

    Uninitialized -> Initializing -> Ready, returning to Uninitialized when
    initialization fails or the resolver is closed. A Ready handle that
    reports itself disconnected is re-initialized on the next resolve.
    """

    def __init__(
        self,
        options: Optional[StoreOptions] = None,
        store_factory: StoreFactory = create_store,
    ):
        self._default_options = options
        self._store_factory = store_factory
        self._store: Optional[CacheStore] = None
        self._init_task: Optional[asyncio.Task] = None
        # Bumped on close so a discarded in-flight attempt cannot install its handle
        self._generation = 0
        self._last_error: Optional[str] = None

    @property
    def state(self) -> ResolverState:
        if self._init_task is not None:
            return ResolverState.INITIALIZING
        if self._store is not None:
            return ResolverState.READY
        return ResolverState.UNINITIALIZED

    @property
    def store(self) -> Optional[CacheStore]:
        """Current handle, without triggering resolution."""
        return self._store

    @property
    def default_options(self) -> StoreOptions:
        return self._default_options or StoreOptions.from_settings()

    def configure(self, options: StoreOptions) -> None:
        """Replace the options used by later resolutions."""
        self._default_options = options

    async def resolve(self, options: Optional[StoreOptions] = None) -> CacheStore:
        """
        Get the live store handle, initializing it on first use.

        Args:
            options: Connection options; resolver defaults when omitted.
                Ignored when an initialization is already in flight.

        Returns:
            The shared store handle

        Raises:
            StoreUnavailableException: If initialization failed
        """
        store = self._store
        if store is not None and store.is_connected():
            return store

        # No await between the check and the assignment: callers on this
        # loop either start the attempt or attach to it
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(
                self._initialize(options or self.default_options)
            )
            self._init_task.add_done_callback(_consume_task_result)

        return await asyncio.shield(self._init_task)

    async def _initialize(self, options: StoreOptions) -> CacheStore:
        generation = self._generation
        stale, self._store = self._store, None
        try:
            if stale is not None:
                logger.info("Cache store disconnected, reconnecting")
                await self._close_quietly(stale)

            store = self._store_factory(options)
            await store.connect()

            if generation != self._generation:
                await self._close_quietly(store)
                raise StoreUnavailableException(
                    message="Cache store resolver was closed during initialization",
                    store_type=options.type,
                )

            self._store = store
            self._last_error = None
            logger.info("Cache store initialized", extra=options.describe())
            return store

        except StoreUnavailableException as e:
            self._last_error = e.message
            logger.error(f"Failed to initialize cache store: {e.message}")
            raise
        except Exception as e:
            self._last_error = str(e)
            logger.error(f"Failed to initialize cache store: {e}")
            raise StoreUnavailableException(
                message=f"Cache store initialization failed: {str(e)}",
                store_type=options.type,
                original_error=e,
            )
        finally:
            if self._init_task is asyncio.current_task():
                self._init_task = None

    async def _close_quietly(self, store: CacheStore) -> None:
        try:
            await store.close()
        except Exception as e:
            logger.warning(f"Error closing cache store: {e}")

    async def close(self) -> None:
        """Close the handle and return to Uninitialized."""
        self._generation += 1
        self._init_task = None
        store, self._store = self._store, None
        if store is not None:
            await self._close_quietly(store)
            logger.info("Cache store resolver closed")

    def get_metrics(self) -> Dict[str, Any]:
        """Get resolver status."""
        return {
            "state": self.state.value,
            "store_type": self._store.store_type if self._store else None,
            "connected": bool(self._store and self._store.is_connected()),
            "last_error": self._last_error,
        }
