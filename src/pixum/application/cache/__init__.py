"""Caching for resolved asset URLs."""

from pixum.application.cache.artwork_url_cache import ArtworkUrlCache
from pixum.application.cache.base_cache import (
    BaseCache,
    CacheEntry,
    CacheUnavailableError,
    InMemoryCache,
)

__all__ = [
    "ArtworkUrlCache",
    "BaseCache",
    "CacheEntry",
    "CacheUnavailableError",
    "InMemoryCache",
]
