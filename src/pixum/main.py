"""FastAPI application factory and entrypoint.

Run with:
    pixum                                   # console script, uses PIXUM_HOST / PIXUM_PORT
    uvicorn --factory pixum.main:create_app --port 3000
"""

import uvicorn
from fastapi import FastAPI
from starlette.middleware.gzip import GZipMiddleware

from pixum import __version__
from pixum.api.exception_handlers import (
    UnhandledErrorMiddleware,
    register_exception_handlers,
)
from pixum.api.routers import artworks, health
from pixum.api.security_headers import SecurityHeadersMiddleware
from pixum.config import Settings, get_settings
from pixum.infrastructure.admission import AdmissionControlMiddleware
from pixum.infrastructure.lifecycle import AppContext, lifespan
from pixum.infrastructure.observability import RequestLoggingMiddleware

# Sent through GZipMiddleware untouched.
UNCOMPRESSED_CONTENT_TYPES = ("image/*", "text/event-stream")


def create_app(
    settings: Settings | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to use (default: get_settings())
        context: Pre-built AppContext. When given, the lifespan uses it as-is and
            leaves closing it to the caller (tests do this).

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.context = context

    # Middleware: the LAST one added is the OUTERMOST. Request flow:
    # logging -> security headers -> gzip -> admission control -> crash to 500 -> routes
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(AdmissionControlMiddleware, settings=settings.admission)
    app.add_middleware(
        GZipMiddleware,
        minimum_size=1000,
        exclude_content_types=UNCOMPRESSED_CONTENT_TYPES,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    # health first: its fixed paths must win over /{work_id}/{index}
    app.include_router(health.router)
    app.include_router(artworks.router)

    return app


def run() -> None:
    """Console script entrypoint."""
    settings = get_settings()
    uvicorn.run(
        "pixum.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
