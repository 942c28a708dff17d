"""Artwork retrieval orchestration.

Hey future me - this is THE per-request state machine! One call to retrieve() walks:

    1. index >= 1?                        else ZeroQueryError
    2. cache reachable? cached URL?       store down -> InternalError
       hit  -> verify by fetching it      ok -> done
                                          404 -> invalidate, go on with 3.
                                          other error -> propagate
    3. fetch metadata
    4. index <= entry_count - 1?          else TooHighQueryError(max)
    5. derive URL (Case A / Case B probe) and fetch it
    6. schedule cache write, return bytes + guessed content type + filename

No retries (the extension probe is a speculative search, not a retry). No state
survives between calls - everything request-scoped lives on the stack.

WHY verify cache hits? A cached URL is only a hint. The upstream occasionally moves
files, and serving a 404 for a work that still exists would be a silent error.
"""

import logging
import mimetypes
import re
from urllib.parse import urlsplit

from pixum.application.cache.artwork_url_cache import ArtworkUrlCache
from pixum.application.services.url_inference import (
    AssetCandidate,
    derive_asset_url,
    fetch_candidate,
)
from pixum.domain.exceptions import (
    TooHighQueryError,
    WrongArtworkUrlError,
    ZeroQueryError,
)
from pixum.domain.ports import IArtworkUpstream
from pixum.domain.value_objects import FetchedAsset, ResolvedArtwork

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"

# Plain ASCII names only; anything else can't go into a quoted header value as-is.
SAFE_FILENAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def guess_media_type(url: str) -> str:
    """Guess a Content-Type from the file extension of a URL."""
    media_type, _ = mimetypes.guess_type(urlsplit(url).path)
    return media_type or DEFAULT_MEDIA_TYPE


def filename_for(url: str, artwork_id: int, index: int) -> str:
    """Name to serve the image under.

    The final path segment of the URL when it is a plain ASCII name. Percent escapes,
    quotes, control characters or an empty segment give "<id>_p<index-1>" plus the
    extension of the guessed media type instead.
    """
    segment = urlsplit(url).path.rsplit("/", 1)[-1]
    if SAFE_FILENAME.fullmatch(segment):
        return segment

    media_type = guess_media_type(url)
    extension = ""
    if media_type != DEFAULT_MEDIA_TYPE:
        extension = mimetypes.guess_extension(media_type) or ""
    return f"{artwork_id}_p{index - 1}{extension}"


class ArtworkRetrievalService:
    """Resolves (artwork_id, index) into image bytes."""

    def __init__(self, upstream: IArtworkUpstream, url_cache: ArtworkUrlCache) -> None:
        """Initialize service.

        Args:
            upstream: Metadata and asset fetcher
            url_cache: Resolved-URL cache
        """
        self._upstream = upstream
        self._url_cache = url_cache

    async def retrieve(self, artwork_id: int, index: int) -> ResolvedArtwork:
        """Resolve and download one image of a work.

        Args:
            artwork_id: Upstream work id
            index: 1-based image index

        Returns:
            ResolvedArtwork with bytes, media type and filename

        Raises:
            ZeroQueryError: index < 1
            TooHighQueryError: index beyond the real image count
            ArtworkUnavailableError: Work gone/restricted or no asset found
            ServerUnreachableError: Upstream transport/decoding failure
            InternalError: Cache store unreachable
        """
        if index < 1:
            raise ZeroQueryError()

        referer = self._upstream.referer_for(artwork_id)

        await self._url_cache.ensure_available()
        cached_url = await self._url_cache.lookup(artwork_id, index)
        if cached_url is not None:
            try:
                asset = await fetch_candidate(
                    self._upstream, AssetCandidate(url=cached_url), referer
                )
            except WrongArtworkUrlError:
                logger.info(
                    "Cached URL for %s/%s is stale, resolving fresh",
                    artwork_id,
                    index,
                )
                await self._url_cache.invalidate(artwork_id, index)
            else:
                return self._resolved(asset, artwork_id, index)

        metadata = await self._upstream.fetch_artwork_metadata(artwork_id)

        if index > metadata.max_index:
            raise TooHighQueryError(metadata.max_index)

        candidate = derive_asset_url(metadata, artwork_id, index)
        asset = await fetch_candidate(self._upstream, candidate, referer)

        self._url_cache.schedule_store(artwork_id, index, asset.url)
        logger.info("Resolved %s/%s to %s", artwork_id, index, asset.url)
        return self._resolved(asset, artwork_id, index)

    async def resolve_first_url(self, artwork_id: int) -> str:
        """Return the asset URL of the first image of a work (diagnostics).

        Uses original_url when the upstream gives one. Otherwise the derived
        original is probed, so the returned URL carries a verified extension.
        Nothing is cached here.
        """
        metadata = await self._upstream.fetch_artwork_metadata(artwork_id)
        candidate = derive_asset_url(metadata, artwork_id, 1)
        if not candidate.needs_probe:
            return candidate.url

        asset = await fetch_candidate(
            self._upstream, candidate, self._upstream.referer_for(artwork_id)
        )
        return asset.url

    @staticmethod
    def _resolved(asset: FetchedAsset, artwork_id: int, index: int) -> ResolvedArtwork:
        return ResolvedArtwork(
            url=asset.url,
            content=asset.content,
            media_type=guess_media_type(asset.url),
            filename=filename_for(asset.url, artwork_id, index),
        )
