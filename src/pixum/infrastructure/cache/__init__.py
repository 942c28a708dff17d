"""Cache store implementations."""

from pixum.infrastructure.cache.redis_cache import RedisCache

__all__ = ["RedisCache"]
