"""Shared upstream HTTP client.

Hey future me - this builds THE outbound httpx.AsyncClient! One instance is created in
the lifespan (see lifecycle.py), stored on the AppContext, and shared by every request.
httpx clients are safe to use from many tasks at once, and sharing one means TCP/TLS
connections get reused via keep-alive instead of a fresh handshake per image.

Policy baked into the client (not into the business logic):
- browser-like User-Agent (the upstream is picky about bots)
- Accept-Language: en, so upstream error messages come back in English
- a total timeout per request
- HTTPS only: plain-http URLs are refused before anything goes on the wire

Don't forget to close the client at app shutdown (see lifecycle.py)!
"""

import logging

import httpx

from pixum.config import UpstreamSettings

logger = logging.getLogger(__name__)


async def _reject_plain_http(request: httpx.Request) -> None:
    """Request hook refusing anything but https.

    Raises httpx.UnsupportedProtocol, a TransportError, so callers treat it like
    any other transport failure.
    """
    if request.url.scheme != "https":
        raise httpx.UnsupportedProtocol(
            f"Refusing non-HTTPS request to {request.url}", request=request
        )


def create_http_client(settings: UpstreamSettings) -> httpx.AsyncClient:
    """Create the shared upstream client from settings.

    Args:
        settings: Upstream connection settings

    Returns:
        Configured httpx.AsyncClient (caller owns it and must aclose() it)
    """
    event_hooks: dict[str, list] = {"request": [], "response": []}
    if settings.https_only:
        event_hooks["request"].append(_reject_plain_http)

    client = httpx.AsyncClient(
        headers={
            "User-Agent": settings.user_agent,
            "Accept-Language": settings.accept_language,
        },
        timeout=httpx.Timeout(settings.timeout_seconds),
        limits=httpx.Limits(
            max_keepalive_connections=settings.max_keepalive,
            max_connections=settings.max_connections,
        ),
        # Enable HTTP/2 where the CDN supports it (better multiplexing for probes)
        http2=True,
        follow_redirects=True,
        event_hooks=event_hooks,
    )
    logger.info(
        "Upstream HTTP client created (timeout=%.1fs, max_conn=%d, https_only=%s)",
        settings.timeout_seconds,
        settings.max_connections,
        settings.https_only,
    )
    return client
