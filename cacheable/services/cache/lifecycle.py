"""
Application lifecycle integration.

Connects host start/stop signals to the cache manager: the store is
resolved once the application is ready and closed on shutdown.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import structlog

from ...domain.cache.value_objects import StoreOptions
from .cache_manager import CacheManager, cache_manager

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def cache_lifespan(
    app: Any = None,
    *,
    manager: Optional[CacheManager] = None,
    options: Optional[StoreOptions] = None,
) -> AsyncIterator[CacheManager]:
    """
    Bracket an application run with cache store startup and teardown.

    Usable directly as an ASGI ``lifespan`` (``FastAPI(lifespan=cache_lifespan)``)
    or nested inside an existing one.

    Yields:
        The active cache manager
    """
    active = manager or cache_manager
    logger.info("Starting cache layer", app=type(app).__name__ if app else None)
    await active.on_ready(options)
    try:
        yield active
    finally:
        logger.info("Stopping cache layer")
        await active.on_shutdown()
