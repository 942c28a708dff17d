"""Domain exceptions.

Hey future me - every way a retrieval can end badly is one class in here!
The HTTP layer (api/exception_handlers.py) maps each class to exactly one status
code and message, so callers always see stable categories:

    InvalidUrlError          -> 404 (path segments did not parse)
    ArtworkUnavailableError  -> 404 (deleted / restricted / nothing could be derived)
    WrongArtworkUrlError     -> 404 (a concrete asset URL answered 404)
    ServerUnreachableError   -> 502 (transport or decoding failure upstream)
    ZeroQueryError           -> 400 (index below 1)
    TooHighQueryError        -> 400 (index above the real image count)
    InternalError            -> 500 (cache store down, unexpected faults)
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # This is your base class - DON'T raise it directly! Always use a specific subclass so the
    # exception handlers can map it to the right status code.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class InvalidUrlError(DomainException):
    """Raised when the path parameters of a request fail to parse."""

    def __init__(self, message: str = "The requested URL is invalid.") -> None:
        super().__init__(message)


class ArtworkUnavailableError(DomainException):
    """The upstream reports the work as missing, deleted or restricted.

    Also raised when no asset URL could be derived or probed for the work.
    upstream_message carries whatever human-readable text the upstream sent
    (e.g. "deleted"), or None when it sent nothing useful.

    HTTP Status: 404
    """

    def __init__(
        self,
        message: str = "Information of the requested work could not be retrieved.",
        upstream_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.upstream_message = upstream_message or None


class WrongArtworkUrlError(ArtworkUnavailableError):
    """A concrete asset URL answered 404.

    Yo, this is the same thing as ArtworkUnavailableError for the caller, but the
    orchestrator catches it specifically on a cache hit: a cached URL that now 404s
    is stale and must be invalidated before resolving fresh.
    """

    def __init__(self, url: str) -> None:
        super().__init__(f"Asset not found at {url}")
        self.url = url


class ServerUnreachableError(DomainException):
    """Upstream transport failure or an undecodable upstream response.

    HTTP Status: 502 (Bad Gateway)
    """

    pass


class ZeroQueryError(DomainException):
    """Requested image index is below 1.

    HTTP Status: 400
    """

    def __init__(self) -> None:
        super().__init__("The index of the requested image must be at least 1.")


class TooHighQueryError(DomainException):
    """Requested image index exceeds the number of images in the work.

    HTTP Status: 400
    """

    def __init__(self, max_index: int) -> None:
        if max_index == 1:
            message = (
                "The index of the requested image is too high; "
                "there is 1 image in this collection."
            )
        else:
            message = (
                "The index of the requested image is too high; "
                f"there are {max_index} images in this collection."
            )
        super().__init__(message)
        self.max_index = max_index


class InternalError(DomainException):
    """Cache store connection failure or any other internal fault.

    HTTP Status: 500
    """

    def __init__(self, message: str = "An internal server error occurred.") -> None:
        super().__init__(message)


class ConfigurationError(DomainException):
    """Application misconfiguration detected at startup."""

    pass


__all__ = [
    "DomainException",
    "InvalidUrlError",
    "ArtworkUnavailableError",
    "WrongArtworkUrlError",
    "ServerUnreachableError",
    "ZeroQueryError",
    "TooHighQueryError",
    "InternalError",
    "ConfigurationError",
]
