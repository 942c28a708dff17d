"""Shared fixtures for the Pixum test suite."""

from collections.abc import Callable

import pytest

from pixum.application.cache import ArtworkUrlCache, InMemoryCache
from pixum.config import Settings
from pixum.domain.exceptions import WrongArtworkUrlError
from pixum.domain.ports import IArtworkUpstream
from pixum.domain.value_objects import ArtworkMetadata, FetchedAsset

REFERER_PREFIX = "https://www.pixiv.net/member_illust.php?mode=medium&illust_id="


class FakeUpstream(IArtworkUpstream):
    """In-memory upstream.

    Assets are served from `assets` (url -> bytes), everything else answers 404.
    Every call is recorded so tests can assert on the exact traffic.
    """

    def __init__(
        self,
        metadata: ArtworkMetadata | Exception | None = None,
        assets: dict[str, bytes] | None = None,
    ) -> None:
        self.metadata = metadata
        self.assets: dict[str, bytes] = dict(assets or {})
        self.asset_errors: dict[str, Exception] = {}
        self.metadata_calls: list[int] = []
        self.asset_calls: list[tuple[str, str]] = []
        self.on_fetch_asset: Callable[[str], None] | None = None

    def referer_for(self, artwork_id: int) -> str:
        return f"{REFERER_PREFIX}{artwork_id}"

    async def fetch_artwork_metadata(self, artwork_id: int) -> ArtworkMetadata:
        self.metadata_calls.append(artwork_id)
        if isinstance(self.metadata, Exception):
            raise self.metadata
        if self.metadata is None:
            raise AssertionError("metadata was not expected to be fetched")
        return self.metadata

    async def fetch_asset(self, url: str, referer: str) -> FetchedAsset:
        self.asset_calls.append((url, referer))
        if self.on_fetch_asset is not None:
            self.on_fetch_asset(url)
        if url in self.asset_errors:
            raise self.asset_errors[url]
        if url not in self.assets:
            raise WrongArtworkUrlError(url)
        return FetchedAsset(url=url, content=self.assets[url])

    @property
    def fetched_urls(self) -> list[str]:
        return [url for url, _ in self.asset_calls]


@pytest.fixture
def make_upstream() -> type[FakeUpstream]:
    """FakeUpstream class, so test modules don't have to import conftest."""
    return FakeUpstream


@pytest.fixture
def settings() -> Settings:
    """Settings that never touch the environment or a real Redis."""
    return Settings(_env_file=None, cache={"url": "redis://localhost:6379/15"})


@pytest.fixture
def cache_store() -> InMemoryCache[str, str]:
    return InMemoryCache()


@pytest.fixture
def url_cache(cache_store: InMemoryCache[str, str]) -> ArtworkUrlCache:
    return ArtworkUrlCache(cache_store, ttl_seconds=60)
