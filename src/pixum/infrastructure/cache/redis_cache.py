"""Redis-backed cache store.

Hey future me - this is the production BaseCache! One redis.asyncio client sits on
top of a ConnectionPool created once at startup (see lifecycle.py). Every command
leases its own connection from the pool and hands it back afterwards, so many
concurrent requests can use it without any locking on our side.

All redis-py errors are translated to CacheUnavailableError at this boundary. The
artwork URL cache decides which of those are fatal (ping at request start) and which
are just logged (individual reads and writes).
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from pixum.application.cache.base_cache import BaseCache, CacheUnavailableError
from pixum.config import CacheSettings
from pixum.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class RedisCache(BaseCache[str, str]):
    """String-to-string cache stored in Redis with per-key expiry."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "RedisCache":
        """Build the store and its connection pool from settings.

        No connection is opened here - the pool connects lazily on first use, so
        the app can start while Redis is still booting.

        Raises:
            ConfigurationError: If the Redis URL can't be parsed
        """
        try:
            pool = redis.ConnectionPool.from_url(
                settings.url,
                max_connections=settings.max_connections,
                socket_timeout=settings.socket_timeout_seconds,
                socket_connect_timeout=settings.socket_timeout_seconds,
                decode_responses=True,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid cache URL '{settings.url}': {e}") from e

        logger.info(
            "Redis cache pool created (max_connections=%d)", settings.max_connections
        )
        return cls(redis.Redis(connection_pool=pool))

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis unreachable: {e}") from e

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis GET {key} failed: {e}") from e
        return value

    async def set(self, key: str, value: str, ttl_seconds: int = 3600) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis SET {key} failed: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            deleted = await self._client.delete(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis DEL {key} failed: {e}") from e
        return bool(deleted)

    async def close(self) -> None:
        """Close the client and disconnect every pooled connection."""
        await self._client.aclose(close_connection_pool=True)
        logger.info("Redis cache pool closed")
