"""URL inference: from metadata to a fetchable asset URL.

Hey future me - the upstream doesn't always tell us where the original image lives!
Two cases, decided by what the metadata carries:

Case A - original_url known (e.g. ".../img-original/.../123_p0.png"):
    The URL names the FIRST image with the token "<id>_p0". Image n lives at the same
    URL with "<id>_p{n-1}". The extension is real, so we fetch it directly.

Case B - only a thumbnail known (e.g. ".../c/250x250_80_a2/img-master/.../123_p0_square1200.jpg"):
    A fixed table of literal find/replace pairs turns the thumbnail path into the
    original-quality path WITHOUT extension (".../img-original/.../123_p0"), then the
    same p0 substitution applies. We can't know if the original is jpg, png or gif,
    so we probe all three IN PARALLEL and take the first 200. Worst case latency is
    one round trip instead of three.

Every successful fetch returns the final URL next to the bytes, so the orchestrator
can cache it without asking again.
"""

import asyncio
import logging
from dataclasses import dataclass

from pixum.domain.exceptions import ArtworkUnavailableError, DomainException
from pixum.domain.ports import IArtworkUpstream
from pixum.domain.value_objects import ArtworkMetadata, FetchedAsset

logger = logging.getLogger(__name__)

# Literal (find, replace) pairs applied in order to a thumbnail URL. They mirror the
# upstream storage layout: size-prefixed "/c/<size>/" segments go away, the master /
# custom-thumb trees map to img-original, and the size suffix plus the (always jpg)
# thumbnail extension are dropped.
THUMBNAIL_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("/c/250x250_80_a2/custom-thumb/", "/img-original/"),
    ("/c/250x250_80_a2/", "/"),
    ("/c/360x360_70/", "/"),
    ("/c/540x540_70/", "/"),
    ("/img-master/", "/img-original/"),
    ("/custom-thumb/", "/img-original/"),
    ("_square1200.jpg", ""),
    ("_master1200.jpg", ""),
    ("_custom1200.jpg", ""),
)

# Order is irrelevant - all three go out at once and the first 200 wins.
PROBE_EXTENSIONS: tuple[str, ...] = ("jpg", "png", "gif")


@dataclass(frozen=True)
class AssetCandidate:
    """Where to look for one image.

    needs_probe=False: url is complete and authoritative (Case A, or a cached URL).
    needs_probe=True: url is an extensionless base; try every PROBE_EXTENSIONS.
    """

    url: str
    needs_probe: bool = False


def page_url(url: str, artwork_id: int, index: int) -> str:
    """Point a first-image URL at image `index` (1-based).

    Only the "<id>_p0" token is touched, so digits elsewhere in the path (dates!)
    stay intact.
    """
    return url.replace(f"{artwork_id}_p0", f"{artwork_id}_p{index - 1}", 1)


def original_base_from_thumbnail(thumbnail_url: str) -> str:
    """Turn a thumbnail URL into the extensionless original-quality path."""
    base = thumbnail_url
    for find, replace in THUMBNAIL_SUBSTITUTIONS:
        base = base.replace(find, replace)
    return base


def derive_asset_url(
    metadata: ArtworkMetadata, artwork_id: int, index: int
) -> AssetCandidate:
    """Derive where image `index` of a work should live.

    Args:
        metadata: Normalized metadata of the work
        artwork_id: Upstream work id
        index: 1-based image index (already range-checked by the caller)

    Returns:
        AssetCandidate - direct URL (Case A) or base path to probe (Case B)

    Raises:
        ArtworkUnavailableError: Metadata carries neither an original nor a thumbnail URL
    """
    if metadata.original_url:
        return AssetCandidate(url=page_url(metadata.original_url, artwork_id, index))

    if metadata.fallback_thumbnail_url:
        base = original_base_from_thumbnail(metadata.fallback_thumbnail_url)
        return AssetCandidate(
            url=page_url(base, artwork_id, index),
            needs_probe=True,
        )

    logger.info("Artwork %s has no original or thumbnail URL to derive from", artwork_id)
    raise ArtworkUnavailableError(
        f"No asset URL can be derived for artwork {artwork_id}",
        upstream_message=metadata.message,
    )


async def _probe_one(
    upstream: IArtworkUpstream, url: str, referer: str
) -> FetchedAsset | None:
    # A failing probe (404, 403, transport error) just loses the race.
    try:
        return await upstream.fetch_asset(url, referer)
    except DomainException as e:
        logger.debug("Probe %s lost: %s", url, e.message)
        return None


async def probe(
    upstream: IArtworkUpstream, candidate_base: str, referer: str
) -> FetchedAsset:
    """Fetch `candidate_base` with every known extension at once; first 200 wins.

    Losing probes are cancelled as soon as a winner is known. If two extensions
    both answer 200 (shouldn't happen, but the upstream is the upstream), whichever
    completes first wins - no extension is preferred.

    Args:
        upstream: Asset fetcher
        candidate_base: Extensionless asset URL
        referer: Referer header for the fetches

    Returns:
        FetchedAsset whose url carries the winning extension

    Raises:
        ArtworkUnavailableError: No extension answered 200
    """
    pending: set[asyncio.Task[FetchedAsset | None]] = {
        asyncio.create_task(
            _probe_one(upstream, f"{candidate_base}.{extension}", referer),
            name=f"probe-{extension}",
        )
        for extension in PROBE_EXTENSIONS
    }
    try:
        while pending:
            done, pending = await asyncio.wait(
                pending, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                asset = task.result()
                if asset is not None:
                    logger.debug("Probe for %s won with %s", candidate_base, asset.url)
                    return asset
    finally:
        # Winner found, request cancelled, or a probe crashed: stop the others.
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    logger.info("No extension of %s could be fetched", candidate_base)
    raise ArtworkUnavailableError(f"No asset found for {candidate_base}")


async def fetch_candidate(
    upstream: IArtworkUpstream, candidate: AssetCandidate, referer: str
) -> FetchedAsset:
    """Fetch a candidate, probing extensions when needed."""
    if candidate.needs_probe:
        return await probe(upstream, candidate.url, referer)
    return await upstream.fetch_asset(candidate.url, referer)
