"""Response header policy for every response the gateway sends."""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Always overwritten, whatever the route set.
OVERRIDE_HEADERS: dict[str, str] = {
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "Content-Security-Policy": (
        "default-src 'none'; frame-ancestors 'none'; upgrade-insecure-requests;"
    ),
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-Robots-Tag": "noindex",
}

# Only added when the route didn't set them.
DEFAULT_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Methods": "GET",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Apply OVERRIDE_HEADERS and DEFAULT_HEADERS to every response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        for name, value in OVERRIDE_HEADERS.items():
            response.headers[name] = value
        for name, value in DEFAULT_HEADERS.items():
            if name not in response.headers:
                response.headers[name] = value
        return response
