"""Domain value objects."""

from pixum.domain.value_objects.artwork import (
    MAX_ARTWORK_ID,
    MAX_IMAGE_INDEX,
    ArtworkMetadata,
    FetchedAsset,
    ResolvedArtwork,
    cache_key,
)

__all__ = [
    "MAX_ARTWORK_ID",
    "MAX_IMAGE_INDEX",
    "ArtworkMetadata",
    "FetchedAsset",
    "ResolvedArtwork",
    "cache_key",
]
