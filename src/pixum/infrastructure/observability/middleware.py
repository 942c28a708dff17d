"""Per-request access logging with correlation IDs."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from pixum.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


# Hey future me, this logs ONE line per finished request ("✓ GET /123/1 → 200 (350ms)")
# and hands the correlation ID back in X-Correlation-ID so a user reporting a broken
# image can give us something to grep for. It's the outermost app middleware, so the
# duration includes admission queueing - a slow line with a fast upstream means we were
# rate limiting, not the upstream being slow.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log line plus X-Correlation-ID for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_correlation_id(request.headers.get(CORRELATION_HEADER))
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            # The 500 handler answers further out, this only logs.
            logger.exception(
                f"✗ {route} crashed after {_elapsed_ms(started)}ms",
                extra={
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "duration_ms": _elapsed_ms(started),
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = _elapsed_ms(started)
        marker = "✓" if response.status_code < 400 else "✗"
        logger.info(
            f"{marker} {route} → {response.status_code} ({duration_ms}ms)",
            extra={
                "http_method": request.method,
                "http_path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else None,
            },
        )
        response.headers[CORRELATION_HEADER] = get_correlation_id()
        return response
