"""
Health Check Routes - Educational Documentation
================================================

LIVENESS VS CACHE HEALTH:
-------------------------
1. GET /health: "Is the application able to serve?"
   - Includes the cache probe because every read endpoint goes through it
   - 200 when the memory tier works, 503 otherwise
   - A disconnected Redis is reported but does NOT fail the check: the
     cache degrades to memory-only operation

2. GET /health/cache: full cache health report (probe + statistics)

Health endpoints are never response-cached.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gallery_cache.application.api.dependencies import CacheDep, SettingsDep
from gallery_cache.application.api.models.cache import CacheHealthResponse

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """
    Liveness response.

    status is "healthy" or "unhealthy"; cache carries the cache probe result.
    """

    status: str
    timestamp: str
    uptime_seconds: float
    environment: str
    version: str
    cache: CacheHealthResponse


@router.get("", response_model=HealthResponse)
async def health_check(request: Request, cache: CacheDep, settings: SettingsDep):
    """
    Liveness check with cache status.

    Returns 503 with the same body when the memory tier probe fails, so load
    balancers take the instance out of rotation.
    """
    cache_health = await cache.health_check()
    started_at = getattr(request.app.state, "started_at", None)

    body = HealthResponse(
        status="healthy" if cache_health["healthy"] else "unhealthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=round(time.monotonic() - started_at, 3) if started_at else 0.0,
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
        cache=cache_health,
    )

    if not cache_health["healthy"]:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )
    return body


@router.get("/cache", response_model=CacheHealthResponse)
async def cache_health(cache: CacheDep):
    return await cache.health_check()
