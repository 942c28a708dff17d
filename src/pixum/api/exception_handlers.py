"""Custom exception handlers for the FastAPI application.

This module registers global exception handlers that convert domain exceptions into
plain-text HTTP responses. Each domain error maps to exactly ONE status code and
ONE stable message, so callers (and image tags in browsers) can rely on them:

    InvalidUrlError          404  "The requested URL is invalid."
    ArtworkUnavailableError  404  "Information of the requested work could not be ..."
    ServerUnreachableError   502  "Failed to get response from Pixiv server."
    ZeroQueryError           400  "The index of the requested image must be at least 1."
    TooHighQueryError        400  "... there are N images in this collection."
    InternalError / anything 500  "An internal server error occurred."
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pixum.domain.exceptions import (
    ArtworkUnavailableError,
    InternalError,
    InvalidUrlError,
    ServerUnreachableError,
    TooHighQueryError,
    ZeroQueryError,
)

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "The requested URL is invalid."
ARTWORK_UNAVAILABLE_MESSAGE = (
    "Information of the requested work could not be retrieved. "
    "The work might be deleted or have limited visibility."
)
SERVER_UNREACHABLE_MESSAGE = "Failed to get response from Pixiv server."
INTERNAL_ERROR_MESSAGE = "An internal server error occurred."


def artwork_unavailable_message(exc: ArtworkUnavailableError) -> str:
    """User-facing text, with the upstream's own explanation when it sent one."""
    if exc.upstream_message:
        return f"{ARTWORK_UNAVAILABLE_MESSAGE} Upstream message: {exc.upstream_message}"
    return ARTWORK_UNAVAILABLE_MESSAGE


# Hey future me, these are registered ONCE in create_app(), before any request arrives.
# The messages are the public contract - don't put exception internals (URLs, redis
# hosts) in the response body, they go to the log instead.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for every domain exception plus the generic fallbacks.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(InvalidUrlError)
    async def invalid_url_handler(
        request: Request, exc: InvalidUrlError
    ) -> PlainTextResponse:
        """Handle unparsable path segments with 404 Not Found."""
        logger.info("Invalid URL: %s", request.url.path)
        return PlainTextResponse(INVALID_URL_MESSAGE, status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(ArtworkUnavailableError)
    async def artwork_unavailable_handler(
        request: Request, exc: ArtworkUnavailableError
    ) -> PlainTextResponse:
        """Handle unavailable works (and stale asset URLs) with 404 Not Found."""
        logger.info(
            "Artwork unavailable at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "upstream_message": exc.upstream_message},
        )
        return PlainTextResponse(
            artwork_unavailable_message(exc), status_code=status.HTTP_404_NOT_FOUND
        )

    @app.exception_handler(ServerUnreachableError)
    async def server_unreachable_handler(
        request: Request, exc: ServerUnreachableError
    ) -> PlainTextResponse:
        """Handle upstream transport/decoding failures with 502 Bad Gateway."""
        logger.warning(
            "Upstream unreachable at %s: %s",
            request.url.path,
            exc.message,
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return PlainTextResponse(
            SERVER_UNREACHABLE_MESSAGE, status_code=status.HTTP_502_BAD_GATEWAY
        )

    @app.exception_handler(ZeroQueryError)
    async def zero_query_handler(
        request: Request, exc: ZeroQueryError
    ) -> PlainTextResponse:
        """Handle index 0 with 400 Bad Request."""
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(TooHighQueryError)
    async def too_high_query_handler(
        request: Request, exc: TooHighQueryError
    ) -> PlainTextResponse:
        """Handle an index beyond the image count with 400 Bad Request."""
        logger.info(
            "Index too high at %s (max %d)", request.url.path, exc.max_index
        )
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(InternalError)
    async def internal_error_handler(
        request: Request, exc: InternalError
    ) -> PlainTextResponse:
        """Handle internal faults with 500 Internal Server Error."""
        logger.error(
            "Internal error at %s: %s",
            request.url.path,
            exc.message,
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return PlainTextResponse(
            INTERNAL_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> PlainTextResponse:
        """Treat request validation failures as invalid URLs (404)."""
        logger.info("Request validation failed at %s: %s", request.url.path, exc.errors())
        return PlainTextResponse(INVALID_URL_MESSAGE, status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> PlainTextResponse:
        """Unknown routes get the invalid-URL text; other HTTP errors keep their detail."""
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return PlainTextResponse(INVALID_URL_MESSAGE, status_code=exc.status_code)
        return PlainTextResponse(
            str(exc.detail), status_code=exc.status_code, headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> PlainTextResponse:
        """Last resort for crashes outside UnhandledErrorMiddleware (in middleware)."""
        _log_unhandled(request.url.path, exc)
        return PlainTextResponse(
            INTERNAL_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


def _log_unhandled(path: str, exc: Exception) -> None:
    logger.error(
        "Unhandled error at %s: %s",
        path,
        exc,
        exc_info=exc,
        extra={"path": path, "error_type": type(exc).__name__},
    )


# Hey future me, Starlette runs the Exception handler above in ServerErrorMiddleware,
# which sits OUTSIDE every middleware we add. A crash answered there never passes
# SecurityHeadersMiddleware or the correlation ID echo. This one is added first
# (innermost), so the 500 it builds travels back out through the whole stack.
class UnhandledErrorMiddleware:
    """Turn an exception escaping the routes into the generic 500 response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            if response_started:
                # Headers are out, nothing left to replace
                raise
            _log_unhandled(scope.get("path", ""), e)
            response = PlainTextResponse(
                INTERNAL_ERROR_MESSAGE,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
            await response(scope, receive, send)
