"""HTTP-level tests for the artwork routes.

Hey future me - the app runs with a FakeUpstream and an InMemoryCache injected through
create_app(context=...), so neither Pixiv nor Redis is needed. One test at the bottom
goes through the real PixivClient against pytest-httpx instead.
"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient
from pytest_httpx import HTTPXMock

from pixum.api.exception_handlers import (
    ARTWORK_UNAVAILABLE_MESSAGE,
    INTERNAL_ERROR_MESSAGE,
    INVALID_URL_MESSAGE,
    SERVER_UNREACHABLE_MESSAGE,
)
from pixum.application.cache import BaseCache, CacheUnavailableError, InMemoryCache
from pixum.config import Settings
from pixum.domain.exceptions import ArtworkUnavailableError, ServerUnreachableError
from pixum.domain.value_objects import ArtworkMetadata
from pixum.infrastructure.integrations import PixivClient, create_http_client
from pixum.infrastructure.lifecycle import AppContext
from pixum.main import create_app

ORIGINAL = "https://i.example/img/123_p0.png"


def client_for(settings: Settings, upstream, cache_store: BaseCache) -> TestClient:
    context = AppContext.build(settings, upstream, cache_store)
    return TestClient(create_app(settings, context=context))


@pytest.fixture
def upstream(make_upstream):
    return make_upstream(
        ArtworkMetadata(entry_count=5, original_url=ORIGINAL),
        {
            "https://i.example/img/123_p0.png": b"first",
            "https://i.example/img/123_p2.png": b"\x89PNG third",
        },
    )


@pytest.fixture
def client(settings: Settings, upstream, cache_store: InMemoryCache[str, str]):
    with client_for(settings, upstream, cache_store) as client:
        yield client


class TestWelcome:
    def test_root(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "Welcome to Pixum"


class TestArtworkSource:
    def test_serves_image_inline(self, client: TestClient) -> None:
        response = client.get("/123/3")

        assert response.status_code == 200
        assert response.content == b"\x89PNG third"
        assert response.headers["Content-Type"] == "image/png"
        assert response.headers["Content-Disposition"] == 'inline; filename="123_p2.png"'
        assert response.headers["Access-Control-Allow-Headers"] == "GET"

    def test_non_ascii_file_name_is_served_under_a_safe_name(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        url = "https://i.example/img/%E7%94%BB/123_p0_%E7%94%BB.png"
        upstream = make_upstream(
            ArtworkMetadata(entry_count=2, original_url=url), {url: b"\x89PNG"}
        )

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/1")

        assert response.status_code == 200
        assert response.content == b"\x89PNG"
        assert response.headers["Content-Disposition"] == 'inline; filename="123_p0.png"'

    def test_zero_index(self, client: TestClient) -> None:
        response = client.get("/123/0")

        assert response.status_code == 400
        assert response.text == "The index of the requested image must be at least 1."

    def test_index_too_high_plural(self, client: TestClient) -> None:
        response = client.get("/123/5")

        assert response.status_code == 400
        assert response.text == (
            "The index of the requested image is too high; "
            "there are 4 images in this collection."
        )

    def test_index_too_high_singular(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(ArtworkMetadata(entry_count=2, original_url=ORIGINAL))

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/2")

        assert response.status_code == 400
        assert response.text.endswith("there is 1 image in this collection.")

    @pytest.mark.parametrize(
        "path",
        [
            "/abc/1",
            "/0/1",
            "/-5/1",
            "/4294967296/1",
            "/123/abc",
            "/123/65536",
            "/123/1.5",
            "/123/+1",
            "/123/1/extra",
        ],
    )
    def test_invalid_urls(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 404
        assert response.text == INVALID_URL_MESSAGE

    def test_largest_valid_id_is_accepted(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(ArtworkUnavailableError())

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/4294967295/1")

        assert response.status_code == 404
        assert response.text == ARTWORK_UNAVAILABLE_MESSAGE
        assert upstream.metadata_calls == [4294967295]

    def test_unavailable_carries_upstream_message(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(ArtworkUnavailableError(upstream_message="deleted"))

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/1")

        assert response.status_code == 404
        assert response.text == f"{ARTWORK_UNAVAILABLE_MESSAGE} Upstream message: deleted"

    def test_stale_asset_url_is_404(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(ArtworkMetadata(entry_count=5, original_url=ORIGINAL))

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/2")

        assert response.status_code == 404
        assert response.text == ARTWORK_UNAVAILABLE_MESSAGE

    def test_unreachable_upstream_is_502(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(ServerUnreachableError("connection refused"))

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/1")

        assert response.status_code == 502
        assert response.text == SERVER_UNREACHABLE_MESSAGE

    def test_unreachable_cache_is_500(self, settings: Settings, upstream) -> None:
        store = AsyncMock(spec=BaseCache)
        store.ping.side_effect = CacheUnavailableError("refused")

        with client_for(settings, upstream, store) as client:
            response = client.get("/123/1")

        assert response.status_code == 500
        assert response.text == INTERNAL_ERROR_MESSAGE
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Robots-Tag"] == "noindex"
        assert response.headers["X-Correlation-ID"]
        assert upstream.metadata_calls == []

    def test_unexpected_error_is_500(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(RuntimeError("bug"))
        context = AppContext.build(settings, upstream, cache_store)

        with TestClient(create_app(settings, context=context)) as client:
            response = client.get("/123/1", headers={"X-Correlation-ID": "trace-me"})

        assert response.status_code == 500
        assert response.text == INTERNAL_ERROR_MESSAGE
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Strict-Transport-Security"]
        assert response.headers["X-Correlation-ID"] == "trace-me"

    def test_cached_url_skips_metadata(
        self, settings: Settings, upstream, cache_store: InMemoryCache[str, str]
    ) -> None:
        asyncio.run(cache_store.set("123_1", ORIGINAL))

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/1")

        assert response.status_code == 200
        assert response.content == b"first"
        assert upstream.metadata_calls == []


class TestArtworkInfo:
    def test_returns_first_url(self, client: TestClient) -> None:
        response = client.get("/123")

        assert response.status_code == 200
        assert response.text == ORIGINAL
        assert response.headers["Content-Type"].startswith("text/plain")

    def test_invalid_id(self, client: TestClient) -> None:
        response = client.get("/abc")

        assert response.status_code == 404
        assert response.text == INVALID_URL_MESSAGE


class TestResponseHeaders:
    def test_security_headers_on_success(self, client: TestClient) -> None:
        response = client.get("/123/1")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Access-Control-Allow-Methods"] == "GET"
        assert "Strict-Transport-Security" in response.headers
        assert "X-Correlation-ID" in response.headers

    def test_security_headers_on_errors(self, client: TestClient) -> None:
        response = client.get("/abc/1")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Robots-Tag"] == "noindex"

    def test_images_are_not_gzipped(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        upstream = make_upstream(
            ArtworkMetadata(entry_count=2, original_url=ORIGINAL),
            {ORIGINAL: b"\x00" * 4096},
        )

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/1", headers={"Accept-Encoding": "gzip"})

        assert response.headers["Content-Type"] == "image/png"
        assert "Content-Encoding" not in response.headers
        assert response.content == b"\x00" * 4096

    def test_large_text_bodies_are_gzipped(
        self, settings: Settings, make_upstream, cache_store
    ) -> None:
        url = "https://i.example/img/123_p0.txt"
        upstream = make_upstream(
            ArtworkMetadata(entry_count=2, original_url=url), {url: b"a" * 4096}
        )

        with client_for(settings, upstream, cache_store) as client:
            response = client.get("/123/1", headers={"Accept-Encoding": "gzip"})

        assert response.headers["Content-Type"].startswith("text/plain")
        assert response.headers["Content-Encoding"] == "gzip"
        assert response.content == b"a" * 4096


async def test_end_to_end_through_pixiv_client(
    settings: Settings, httpx_mock: HTTPXMock
) -> None:
    """Metadata fetch, Case B probe and background cache write with the real client."""
    base = "https://i.pximg.net/img-original/img/2022/01/01/00/00/00/123_p0"
    httpx_mock.add_response(
        url="https://www.pixiv.net/ajax/illust/123",
        json={
            "error": False,
            "message": "",
            "body": {
                "sl": 2,
                "urls": {"original": None},
                "userIllusts": {
                    "123": {
                        "url": "https://i.pximg.net/c/250x250_80_a2/img-master/img/"
                        "2022/01/01/00/00/00/123_p0_square1200.jpg"
                    }
                },
            },
        },
    )
    # Losing probes may be cancelled before they hit the wire
    httpx_mock.add_response(url=f"{base}.jpg", status_code=404, is_optional=True)
    httpx_mock.add_response(
        url=f"{base}.png", content=b"png-bytes", headers={"Content-Type": "image/png"}
    )
    httpx_mock.add_response(url=f"{base}.gif", status_code=404, is_optional=True)

    http_client = create_http_client(settings.upstream)
    cache_store: InMemoryCache[str, str] = InMemoryCache()
    context = AppContext.build(
        settings,
        PixivClient(http_client, settings.upstream.base_url),
        cache_store,
        http_client=http_client,
    )
    app = create_app(settings, context=context)

    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/123/1")
    finally:
        await context.close()

    assert response.status_code == 200
    assert response.content == b"png-bytes"
    assert response.headers["Content-Disposition"] == 'inline; filename="123_p0.png"'
    assert await cache_store.get("123_1") == f"{base}.png"
