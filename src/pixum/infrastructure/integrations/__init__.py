"""External service integrations (the Pixiv upstream)."""

from pixum.infrastructure.integrations.http_pool import create_http_client
from pixum.infrastructure.integrations.pixiv_client import PixivClient

__all__ = ["PixivClient", "create_http_client"]
