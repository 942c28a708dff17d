"""Resolved-asset URL cache.

Hey future me - this wraps a BaseCache with the artwork-specific policy! The rules:

- ensure_available() at the START of a request: if the store can't be reached at
  all, that's an infrastructure problem and the request fails with InternalError.
- lookup(): a failed read is just a miss. A flaky store degrades to always-fresh
  resolution, never to failed requests.
- store() / invalidate(): best-effort. Errors get logged, never raised. Caching is an
  optimization, not a correctness dependency.
- schedule_store(): fire-and-forget version of store() so the response doesn't
  wait on Redis. We keep a reference to every pending task until it finishes
  (asyncio only holds weak references to tasks!).

Only URLs that just returned a successful fetch get stored. The one write path is
ArtworkRetrievalService after a successful fetch.
"""

import asyncio
import logging

from pixum.application.cache.base_cache import BaseCache, CacheUnavailableError
from pixum.config.settings import DEFAULT_CACHE_TTL_SECONDS
from pixum.domain.exceptions import InternalError
from pixum.domain.value_objects import cache_key

logger = logging.getLogger(__name__)


class ArtworkUrlCache:
    """(artwork_id, index) -> resolved asset URL, with invalidation on stale hits."""

    def __init__(
        self,
        store: BaseCache[str, str],
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def ensure_available(self) -> None:
        """Check the store is reachable.

        Raises:
            InternalError: If no connection to the store can be established
        """
        try:
            await self._store.ping()
        except CacheUnavailableError as e:
            logger.error("Cache store unavailable: %s", e)
            raise InternalError() from e

    async def lookup(self, artwork_id: int, index: int) -> str | None:
        """Return the cached URL for one image, or None on miss or read failure."""
        key = cache_key(artwork_id, index)
        try:
            url = await self._store.get(key)
        except CacheUnavailableError as e:
            logger.warning("Cache lookup for %s failed, treating as miss: %s", key, e)
            return None

        if url is None:
            logger.debug("Cache miss for %s", key)
        else:
            logger.debug("Cache hit for %s: %s", key, url)
        return url

    async def store(self, artwork_id: int, index: int, url: str) -> None:
        """Store a verified URL. Never raises on store failures."""
        key = cache_key(artwork_id, index)
        try:
            await self._store.set(key, url, ttl_seconds=self._ttl_seconds)
        except CacheUnavailableError as e:
            logger.warning("Cache write for %s failed: %s", key, e)
            return
        logger.debug("Cached %s -> %s", key, url)

    def schedule_store(self, artwork_id: int, index: int, url: str) -> None:
        """Store a URL in the background without blocking the caller."""
        task = asyncio.create_task(
            self.store(artwork_id, index, url),
            name=f"cache-store-{cache_key(artwork_id, index)}",
        )
        self._pending.add(task)
        task.add_done_callback(self._on_store_done)

    def _on_store_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.debug("Background cache write %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background cache write %s crashed",
                task.get_name(),
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def invalidate(self, artwork_id: int, index: int) -> None:
        """Delete a stale entry. Never raises on store failures."""
        key = cache_key(artwork_id, index)
        try:
            deleted = await self._store.delete(key)
        except CacheUnavailableError as e:
            logger.warning("Cache invalidation for %s failed: %s", key, e)
            return
        logger.info("Invalidated stale cache entry %s (existed=%s)", key, deleted)

    async def drain(self) -> None:
        """Wait for all pending background writes (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
