"""Pixiv HTTP client implementation.

Hey future me - this is the only place that talks to the upstream! Two operations:

- fetch_artwork_metadata(): GET /ajax/illust/{id} and normalize it to ArtworkMetadata
- fetch_asset(): GET one concrete image URL with the mandatory Referer header

Everything httpx/pydantic-specific gets translated to domain exceptions HERE, so the
application layer never sees httpx.HTTPError or pydantic.ValidationError:

    transport error / 5xx / garbage JSON  -> ServerUnreachableError
    error flag or no success payload      -> ArtworkUnavailableError (with upstream message)
    asset 404                             -> WrongArtworkUrlError
    asset other 4xx                       -> ArtworkUnavailableError

GOTCHA: the upstream answers 403 to image requests WITHOUT a Referer pointing at the
artwork page. fetch_asset() takes the referer as a required argument so it can't be
forgotten - build it with referer_for().
"""

import logging

import httpx
from pydantic import ValidationError

from pixum.domain.exceptions import (
    ArtworkUnavailableError,
    ServerUnreachableError,
    WrongArtworkUrlError,
)
from pixum.domain.ports import IArtworkUpstream
from pixum.domain.value_objects import ArtworkMetadata, FetchedAsset
from pixum.infrastructure.integrations.pixiv_models import (
    IllustErrorResponse,
    parse_illust_response,
)

logger = logging.getLogger(__name__)


class PixivClient(IArtworkUpstream):
    """Thin async client for the Pixiv metadata and asset endpoints.

    Usage:
        client = PixivClient(http_client, "https://www.pixiv.net")
        metadata = await client.fetch_artwork_metadata(123)
        asset = await client.fetch_asset(url, client.referer_for(123))
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        """Initialize client.

        Args:
            http_client: Shared AsyncClient (owned by the AppContext, not by us)
            base_url: Upstream site root, e.g. https://www.pixiv.net
        """
        self._client = http_client
        self._base_url = base_url.rstrip("/")

    def metadata_url(self, artwork_id: int) -> str:
        return f"{self._base_url}/ajax/illust/{artwork_id}"

    def referer_for(self, artwork_id: int) -> str:
        """Canonical artwork page URL, required as Referer on asset fetches."""
        return f"{self._base_url}/member_illust.php?mode=medium&illust_id={artwork_id}"

    async def fetch_artwork_metadata(self, artwork_id: int) -> ArtworkMetadata:
        """Fetch and normalize the metadata document of a work.

        entry_count is returned AS REPORTED (one too high). The orchestrator does
        the correction via ArtworkMetadata.max_index.

        Args:
            artwork_id: Upstream work id

        Returns:
            Normalized ArtworkMetadata

        Raises:
            ArtworkUnavailableError: Work deleted, restricted or non-existent
            ServerUnreachableError: Transport failure or undecodable response
        """
        url = self.metadata_url(artwork_id)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.warning("Metadata request for %s failed: %s", artwork_id, e)
            raise ServerUnreachableError(f"Metadata request failed: {e}") from e

        if response.status_code >= 500:
            logger.warning(
                "Metadata request for %s answered %d", artwork_id, response.status_code
            )
            raise ServerUnreachableError(
                f"Upstream answered {response.status_code} for {url}"
            )

        try:
            parsed = parse_illust_response(response.json())
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError; ValidationError means neither shape fit
            logger.warning(
                "Undecodable metadata for %s (status %d): %s",
                artwork_id,
                response.status_code,
                e,
            )
            raise ServerUnreachableError(
                f"Undecodable metadata response for {artwork_id}"
            ) from e

        if parsed.error or isinstance(parsed, IllustErrorResponse):
            logger.info(
                "Artwork %s unavailable (upstream message: %r)",
                artwork_id,
                parsed.message,
            )
            raise ArtworkUnavailableError(
                f"Artwork {artwork_id} is unavailable",
                upstream_message=parsed.message,
            )

        body = parsed.body
        thumbnail = body.user_illusts.get(str(artwork_id))
        metadata = ArtworkMetadata(
            entry_count=body.sl,
            original_url=body.urls.original,
            fallback_thumbnail_url=thumbnail.url if thumbnail is not None else None,
            message=parsed.message or "",
        )
        logger.debug(
            "Metadata for %s: entry_count=%d original=%s thumbnail=%s",
            artwork_id,
            metadata.entry_count,
            metadata.original_url,
            metadata.fallback_thumbnail_url,
        )
        return metadata

    async def fetch_asset(self, url: str, referer: str) -> FetchedAsset:
        """Download one asset URL.

        Args:
            url: Fully resolved asset URL (with extension)
            referer: Artwork page URL (see referer_for)

        Returns:
            FetchedAsset with the body and the upstream Content-Type

        Raises:
            WrongArtworkUrlError: The URL answered 404
            ArtworkUnavailableError: Any other 4xx
            ServerUnreachableError: Transport failure or 5xx
        """
        try:
            response = await self._client.get(url, headers={"Referer": referer})
        except httpx.HTTPError as e:
            logger.debug("Asset request %s failed: %s", url, e)
            raise ServerUnreachableError(f"Asset request failed: {e}") from e

        status = response.status_code
        if status == httpx.codes.OK:
            return FetchedAsset(
                url=url,
                content=response.content,
                content_type=response.headers.get("Content-Type"),
            )
        if status == httpx.codes.NOT_FOUND:
            raise WrongArtworkUrlError(url)
        if status >= 500:
            raise ServerUnreachableError(f"Upstream answered {status} for {url}")
        raise ArtworkUnavailableError(f"Upstream answered {status} for {url}")
