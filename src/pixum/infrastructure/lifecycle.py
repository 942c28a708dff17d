"""Application lifecycle management for startup and shutdown tasks.

Hey future me - the process-wide shared state lives in ONE explicit object, AppContext,
built here at startup and stored on app.state.context. There are no module-level
singletons: routes get the context through api/dependencies.py, and tests can hand
create_app() a ready-made context (then the lifespan neither builds nor closes it).

Startup order:  logging -> upstream http client -> cache pool -> services
Shutdown order: drain background cache writes -> close cache pool -> close client
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI

from pixum.application.cache import ArtworkUrlCache, BaseCache
from pixum.application.services import ArtworkRetrievalService
from pixum.config import Settings
from pixum.domain.ports import IArtworkUpstream
from pixum.infrastructure.cache import RedisCache
from pixum.infrastructure.integrations import PixivClient, create_http_client
from pixum.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Shared, read-only-configured resources used by every request."""

    cache_store: BaseCache[str, str]
    url_cache: ArtworkUrlCache
    upstream: IArtworkUpstream
    retrieval_service: ArtworkRetrievalService
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        upstream: IArtworkUpstream,
        cache_store: BaseCache[str, str],
        http_client: httpx.AsyncClient | None = None,
    ) -> "AppContext":
        """Wire the services on top of an upstream and a cache store."""
        url_cache = ArtworkUrlCache(cache_store, ttl_seconds=settings.cache.ttl_seconds)
        return cls(
            cache_store=cache_store,
            url_cache=url_cache,
            upstream=upstream,
            retrieval_service=ArtworkRetrievalService(upstream, url_cache),
            http_client=http_client,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Create the production context (Redis + real upstream client)."""
        # Cache first: a broken cache URL then fails before any client exists to leak
        cache_store = RedisCache.from_settings(settings.cache)
        http_client = create_http_client(settings.upstream)
        upstream = PixivClient(http_client, settings.upstream.base_url)
        return cls.build(settings, upstream, cache_store, http_client=http_client)

    async def close(self) -> None:
        """Release everything in reverse order of creation."""
        await self.url_cache.drain()
        await self.cache_store.close()
        if self.http_client is not None:
            await self.http_client.aclose()
            logger.info("Upstream HTTP client closed")


# Everything before `yield` runs at startup, everything after at shutdown.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles:
    - Logging configuration
    - Creating the shared upstream client and cache pool (unless injected)
    - Closing them again on shutdown
    """
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    owns_context = getattr(app.state, "context", None) is None
    if owns_context:
        app.state.context = AppContext.from_settings(settings)
        logger.info(
            "Application context initialized (upstream=%s)", settings.upstream.base_url
        )

    try:
        yield
    finally:
        logger.info("Shutting down application: %s", settings.app_name)
        if owns_context:
            await app.state.context.close()
            app.state.context = None
