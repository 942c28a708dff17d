"""Artwork value objects.

Hey future me - these are the immutable snapshots that flow through one retrieval!
Nothing in here is ever mutated or persisted. ArtworkMetadata is built once per
resolution attempt and thrown away afterwards; only the per-index URL ends up in
the cache (see application/cache/artwork_url_cache.py).
"""

from dataclasses import dataclass

# Upstream ids are u32, image indices u16. Anything outside is an invalid URL.
MAX_ARTWORK_ID = 2**32 - 1
MAX_IMAGE_INDEX = 2**16 - 1


@dataclass(frozen=True)
class ArtworkMetadata:
    """Normalized result of a metadata fetch.

    Attributes:
        entry_count: Image count AS REPORTED by the upstream. The upstream reports
            one more than the real number of images - use max_index for bounds.
        original_url: Direct asset URL of the first image, only known for some works.
        fallback_thumbnail_url: Thumbnail URL used to derive the original when
            original_url is missing.
        message: Upstream message (usually empty on success).
    """

    entry_count: int
    original_url: str | None = None
    fallback_thumbnail_url: str | None = None
    message: str = ""

    @property
    def max_index(self) -> int:
        """Highest valid 1-based image index (the corrected count)."""
        return self.entry_count - 1


@dataclass(frozen=True)
class FetchedAsset:
    """Bytes of an asset together with the URL they were fetched from.

    The url is the post-derivation / post-probe URL, so the orchestrator can cache
    it without a second round trip.
    """

    url: str
    content: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class ResolvedArtwork:
    """Terminal success state of a retrieval."""

    url: str
    content: bytes
    media_type: str
    filename: str

    @property
    def content_disposition(self) -> str:
        """Header value for serving the image inline under its upstream filename."""
        return f'inline; filename="{self.filename}"'


def cache_key(artwork_id: int, index: int) -> str:
    """Build the cache key of one image of a work."""
    return f"{artwork_id}_{index}"


__all__ = [
    "MAX_ARTWORK_ID",
    "MAX_IMAGE_INDEX",
    "ArtworkMetadata",
    "FetchedAsset",
    "ResolvedArtwork",
    "cache_key",
]
