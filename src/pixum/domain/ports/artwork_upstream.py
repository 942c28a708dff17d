"""Artwork Upstream Interface - abstraction over the content provider.

Hey future me - the application layer only knows THIS interface, never httpx!
PixivClient (infrastructure/integrations/pixiv_client.py) is the real implementation;
tests can swap in anything that honours the same contract.
"""

from abc import ABC, abstractmethod

from pixum.domain.value_objects import ArtworkMetadata, FetchedAsset


class IArtworkUpstream(ABC):
    """Metadata lookup and asset download against the upstream."""

    @abstractmethod
    def referer_for(self, artwork_id: int) -> str:
        """Referer header value every asset fetch for this work must carry."""

    @abstractmethod
    async def fetch_artwork_metadata(self, artwork_id: int) -> ArtworkMetadata:
        """Fetch normalized metadata.

        Raises:
            ArtworkUnavailableError: Work deleted, restricted or non-existent
            ServerUnreachableError: Transport failure or undecodable response
        """

    @abstractmethod
    async def fetch_asset(self, url: str, referer: str) -> FetchedAsset:
        """Download one fully resolved asset URL.

        Raises:
            WrongArtworkUrlError: The URL answered 404
            ArtworkUnavailableError: Any other client error
            ServerUnreachableError: Transport failure or server error
        """
