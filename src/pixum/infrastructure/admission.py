"""Admission control middleware: buffer, rate limit, timeout, concurrency limit.

Hey future me - this sits in FRONT of the routes and decides WHEN and WHETHER a request
runs, never what its result is. The layers, outermost first:

    buffer       at most buffer_size requests may wait for a rate-limit slot;
                 one more -> 429 right away
    rate limit   at most rate_limit_requests accepted per window (RateLimiter)
    timeout      request_timeout_seconds for everything below -> 504
    concurrency  at most max_concurrency requests in the handler; others wait

WHY pure ASGI instead of BaseHTTPMiddleware? BaseHTTPMiddleware runs the endpoint in
its own task, so cancelling call_next() would NOT cancel the upstream fetches behind
it. Wrapping self.app() directly means a timeout really cancels in-flight network I/O.

429 and 504 are transport-level signals. The domain errors (502 for an unreachable
upstream and friends) come from the exception handlers and are never mixed up with these.
"""

import asyncio
import logging

from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pixum.config import AdmissionSettings
from pixum.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please try again later."
TIMEOUT_MESSAGE = "The request took too long to complete."


class AdmissionRejectedError(Exception):
    """Raised when the admission buffer is full."""


class AdmissionController:
    """Shared admission state: rate limiter, waiting-room counter and semaphore."""

    def __init__(self, settings: AdmissionSettings) -> None:
        self.settings = settings
        self._limiter = RateLimiter.from_settings(settings)
        self._semaphore = asyncio.Semaphore(settings.max_concurrency)
        self._waiting = 0

    @property
    def waiting(self) -> int:
        """Requests currently waiting for a rate-limit slot."""
        return self._waiting

    @property
    def semaphore(self) -> asyncio.Semaphore:
        return self._semaphore

    async def admit(self) -> None:
        """Wait for a rate-limit slot.

        Raises:
            AdmissionRejectedError: The waiting room is full
        """
        if self._waiting >= self.settings.buffer_size:
            raise AdmissionRejectedError(
                f"{self._waiting} requests already waiting for admission"
            )
        self._waiting += 1
        try:
            await self._limiter.acquire()
        finally:
            self._waiting -= 1


class AdmissionControlMiddleware:
    """ASGI middleware applying AdmissionController to every HTTP request."""

    def __init__(self, app: ASGIApp, settings: AdmissionSettings) -> None:
        self.app = app
        self.controller = AdmissionController(settings)
        self.timeout_seconds = settings.request_timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        try:
            await self.controller.admit()
        except AdmissionRejectedError as e:
            logger.warning("Rejected %s: %s", path, e)
            response = PlainTextResponse(TOO_MANY_REQUESTS_MESSAGE, status_code=429)
            await response(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        deadline = asyncio.timeout(self.timeout_seconds)
        try:
            async with deadline:
                async with self.controller.semaphore:
                    await self.app(scope, receive, send_wrapper)
        except TimeoutError:
            if not deadline.expired():
                # Raised by the handler itself, not by our deadline
                raise
            logger.warning(
                "Request %s timed out after %.1fs", path, self.timeout_seconds
            )
            if response_started:
                # Headers are out already, nothing sensible left to send.
                return
            response = PlainTextResponse(TIMEOUT_MESSAGE, status_code=504)
            await response(scope, receive, send)
