"""
Redis Cache Store

Redis-backed store over ``redis.asyncio`` with a shared connection pool.
Backend errors are translated into cache-layer exceptions; connection
errors also mark the store disconnected so the resolver reconnects.
"""

import logging
from typing import Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import (
    AuthenticationError as RedisAuthError,
    ConnectionError as RedisConnectionError,
    RedisError,
)

from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import StoreOptions
from .exceptions import StoreOperationException, StoreUnavailableException

logger = logging.getLogger(__name__)


class RedisStore(CacheStore):
    """
    Cache store backed by a Redis server.

    Keys are optionally prefixed; values are stored as strings with
    ``SET key value EX ttl``.
    """

    store_type = "redis"

    def __init__(self, options: StoreOptions, client: Optional[Redis] = None):
        self.options = options
        self._key_prefix = options.key_prefix
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = client
        self._connected = False

    def _make_key(self, key: str) -> str:
        """Create prefixed key."""
        return f"{self._key_prefix}{key}"

    async def connect(self) -> None:
        """Create the connection pool and verify it with a ping."""
        if self._redis is None:
            self._pool = ConnectionPool.from_url(
                self.options.url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=self.options.max_connections,
                socket_connect_timeout=self.options.connection_timeout,
                socket_timeout=self.options.operation_timeout,
            )
            self._redis = Redis(connection_pool=self._pool)

        try:
            await self._redis.ping()
        except RedisAuthError as e:
            raise StoreUnavailableException(
                message="Redis authentication failed during initialization",
                store_type=self.store_type,
                original_error=e,
            )
        except (RedisError, OSError) as e:
            raise StoreUnavailableException(
                message="Redis connection test failed",
                store_type=self.store_type,
                original_error=e,
            )

        self._connected = True
        logger.info(
            "Redis cache store connected",
            extra={
                "url": self.options.describe()["url"],
                "max_connections": self.options.max_connections,
            },
        )

    def _translate(self, operation: str, key: str, error: Exception) -> StoreOperationException:
        if isinstance(error, (RedisConnectionError, ConnectionError)):
            self._connected = False
            logger.warning(f"Redis connection lost during {operation}: {error}")
        return StoreOperationException(operation=operation, key=key, original_error=error)

    def _client(self, operation: str, key: str) -> Redis:
        if self._redis is None or not self._connected:
            raise StoreOperationException(
                operation=operation,
                key=key,
                original_error=ConnectionError("Redis store is not connected"),
            )
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        client = self._client("get", key)
        try:
            return await client.get(self._make_key(key))
        except (RedisError, OSError) as e:
            raise self._translate("get", key, e)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        client = self._client("set", key)
        try:
            await client.set(self._make_key(key), value, ex=ttl_seconds)
        except (RedisError, OSError) as e:
            raise self._translate("set", key, e)

    async def delete(self, key: str) -> None:
        client = self._client("delete", key)
        try:
            await client.delete(self._make_key(key))
        except (RedisError, OSError) as e:
            raise self._translate("delete", key, e)

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds as reported by Redis."""
        client = self._client("ttl", key)
        try:
            return await client.ttl(self._make_key(key))
        except (RedisError, OSError) as e:
            raise self._translate("ttl", key, e)

    async def ping(self) -> bool:
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except (RedisError, OSError) as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    def is_connected(self) -> bool:
        return self._connected

    async def close(self) -> None:
        """Close client and pool; errors are logged, never raised."""
        self._connected = False
        client, self._redis = self._redis, None
        if client is not None:
            try:
                closer = getattr(client, "aclose", None) or client.close
                await closer()
            except Exception as e:
                logger.warning(f"Error closing Redis client: {e}")

        pool, self._pool = self._pool, None
        if pool is not None:
            try:
                await pool.disconnect()
            except Exception as e:
                logger.warning(f"Error closing Redis pool: {e}")

        logger.info("Redis cache store closed")
