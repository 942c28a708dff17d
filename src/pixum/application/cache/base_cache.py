"""Cache store interface and in-memory implementation.

Hey future me - BaseCache is the CAPABILITY the rest of the app sees: get, set with
a TTL, delete, plus ping() to check the store can be reached at all. Every call can
fail on its own (network, store restart, ...), and it's the caller's job to decide
which failures matter. The artwork URL cache (artwork_url_cache.py) decides that.

Implementations:
- InMemoryCache (below): development and tests, single process only
- RedisCache (infrastructure/cache/redis_cache.py): production
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass


class CacheUnavailableError(Exception):
    """Raised by a cache store when it cannot be reached."""


@dataclass(frozen=True)
class CacheEntry[V]:
    """A stored value and the monotonic deadline after which it is gone."""

    value: V
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        return (time.monotonic() if now is None else now) >= self.expires_at


class BaseCache[K, V](ABC):
    """Key-value store with per-entry expiry."""

    @abstractmethod
    async def ping(self) -> None:
        """Check the store is reachable.

        Raises:
            CacheUnavailableError: If no connection to the store can be established
        """

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Return the live value under key, or None.

        Raises:
            CacheUnavailableError: The store could not be asked
        """

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: int = 3600) -> None:
        """Store value under key for ttl_seconds, replacing any previous value.

        Raises:
            CacheUnavailableError: The store could not be written
        """

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Remove key. True if something was removed.

        Raises:
            CacheUnavailableError: The store could not be written
        """

    async def close(self) -> None:
        """Release any resources held by the store."""
        return None


class InMemoryCache[K, V](BaseCache[K, V]):
    """Process-local store backed by a dict.

    Nothing survives a restart and nothing is shared between workers, so this is for
    development and tests only. Expiry uses the monotonic clock, wall clock jumps
    don't resurrect or kill entries.
    """

    def __init__(self) -> None:
        self._entries: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        """Number of stored entries, expired ones included until they are purged."""
        return len(self._entries)

    async def ping(self) -> None:
        return None

    # Expired entries are dropped lazily, on the read that finds them.
    async def get(self, key: K) -> V | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                self._entries.pop(key, None)
                return None
            return entry.value

    async def set(self, key: K, value: V, ttl_seconds: int = 3600) -> None:
        async with self._lock:
            self._entries[key] = CacheEntry(
                value=value, expires_at=time.monotonic() + ttl_seconds
            )

    async def delete(self, key: K) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None
