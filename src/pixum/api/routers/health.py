# Hey future me - dieser Router ist für Docker Health Checks!
#
# Endpoints:
# - /health/live   → Liveness probe (process is up, no dependency checks)
# - /health/ready  → Readiness probe (cache store answers a ping)
#
# Use case: Docker HEALTHCHECK: curl -f http://localhost:3000/health/live || exit 1
#
# This router MUST be included before the artwork router, otherwise
# "/health/live" would be matched as /{work_id}/{index}.
"""Health check endpoints for Docker probes."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pixum import __version__
from pixum.api.dependencies import get_app_context
from pixum.application.cache import CacheUnavailableError
from pixum.infrastructure.lifecycle import AppContext

router = APIRouter(prefix="/health", tags=["Health"])


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive")
    timestamp: str = Field(description="ISO timestamp")
    version: str = Field(default=__version__, description="Application version")


class ReadinessStatus(BaseModel):
    """Readiness probe response."""

    status: str = Field(description="ready or not_ready")
    timestamp: str = Field(description="ISO timestamp")
    cache: bool = Field(description="Cache store reachable")


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Liveness probe - 200 as long as the process serves requests."""
    return LivenessStatus(
        status="alive",
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", response_model=ReadinessStatus)
async def readiness_probe(
    context: AppContext = Depends(get_app_context),
) -> JSONResponse:
    """Readiness probe - 503 while the cache store can't be reached.

    Every image request starts with a cache connection check and fails with 500
    when it can't connect, so without the cache we're not ready for traffic.
    """
    try:
        await context.cache_store.ping()
        cache_ok = True
    except CacheUnavailableError:
        cache_ok = False

    response = ReadinessStatus(
        status="ready" if cache_ok else "not_ready",
        timestamp=datetime.now(UTC).isoformat(),
        cache=cache_ok,
    )
    status_code = status.HTTP_200_OK if cache_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=status_code)
