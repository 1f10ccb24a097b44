"""
Admin Routes - Educational Documentation
=========================================

WHAT ARE ADMIN ENDPOINTS?
--------------------------
Admin endpoints provide operational capabilities for managing and monitoring
the cache:

1. Statistics: hit/miss counters and hit rate
2. Health: round-trip probe of the memory tier, Redis connectivity
3. Invalidation: by regular expression, by named target, or everything
4. Metrics: Prometheus scrape endpoint

SECURITY CONSIDERATIONS:
------------------------
In production, admin endpoints should be:
- Protected by authentication/authorization
- Exposed on a separate port (not public-facing)
- Logged for audit trails

PROMETHEUS METRICS:
-------------------
Metrics format:
    # HELP gallery_cache_hits_total Cache hits by tier
    # TYPE gallery_cache_hits_total counter
    gallery_cache_hits_total{tier="memory"} 123.0
"""

from enum import Enum

from fastapi import APIRouter, Depends, Response, status

from gallery_cache.application.api.dependencies import CacheDep
from gallery_cache.application.api.models.cache import (
    CacheClearedResponse,
    CacheHealthResponse,
    CacheStatsResponse,
    InvalidatePatternRequest,
    InvalidationResponse,
)
from gallery_cache.core.logging.logger import get_logger
from gallery_cache.infrastructure.cache.invalidation import (
    invalidate_artwork_cache,
    invalidate_category_cache,
    invalidate_stats_cache,
    invalidate_user_cache,
)
from gallery_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# AUTHENTICATION PLACEHOLDER
# ============================================================================


async def verify_admin_access() -> None:
    """
    Placeholder for admin authentication.

    Replace with token verification that raises HTTPException(403) for
    non-admin callers:

        async def verify_admin_access(
            credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer())
        ) -> None:
            if not is_valid_admin_token(credentials.credentials):
                raise HTTPException(status_code=403, detail="Admin access required")
    """


class InvalidationTarget(str, Enum):
    """Named groups of cache entries."""

    ARTWORKS = "artworks"
    CATEGORIES = "categories"
    STATS = "stats"


_TARGET_HELPERS = {
    InvalidationTarget.ARTWORKS: invalidate_artwork_cache,
    InvalidationTarget.CATEGORIES: invalidate_category_cache,
    InvalidationTarget.STATS: invalidate_stats_cache,
}


# ============================================================================
# STATISTICS ENDPOINTS
# ============================================================================


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    summary="Cache statistics",
    dependencies=[Depends(verify_admin_access)],
)
async def get_cache_stats(cache: CacheDep):
    """
    Counters since startup (``clear`` does not reset them).

    ``hits == memory_hits + distributed_hits`` always holds.
    """
    return cache.stats()


@router.get(
    "/cache/health",
    response_model=CacheHealthResponse,
    summary="Cache health probe",
    dependencies=[Depends(verify_admin_access)],
)
async def get_cache_health(cache: CacheDep):
    return await cache.health_check()


# ============================================================================
# INVALIDATION ENDPOINTS
# ============================================================================


@router.post(
    "/cache/invalidate",
    response_model=InvalidationResponse,
    summary="Invalidate by regular expression",
    dependencies=[Depends(verify_admin_access)],
)
async def invalidate_by_pattern(request: InvalidatePatternRequest, cache: CacheDep):
    """
    Remove every key matching ``pattern`` (``re.search`` semantics) from both tiers.

    Example:
        POST /api/admin/cache/invalidate {"pattern": "^artworks:1:"}
    """
    invalidated = await cache.invalidate_pattern(request.pattern)
    logger.info("Admin pattern invalidation", stage="ADMIN.INVALIDATE", pattern=request.pattern,
                invalidated=invalidated)
    return InvalidationResponse(target=request.pattern, invalidated=invalidated)


@router.post(
    "/cache/invalidate/users/{user_id}",
    response_model=InvalidationResponse,
    summary="Invalidate one user's cached responses",
    dependencies=[Depends(verify_admin_access)],
)
async def invalidate_user(user_id: str, cache: CacheDep):
    invalidated = await invalidate_user_cache(cache, user_id)
    return InvalidationResponse(target=f"user:{user_id}", invalidated=invalidated)


@router.post(
    "/cache/invalidate/{target}",
    response_model=InvalidationResponse,
    summary="Invalidate a named group of entries",
    dependencies=[Depends(verify_admin_access)],
)
async def invalidate_target(target: InvalidationTarget, cache: CacheDep):
    invalidated = await _TARGET_HELPERS[target](cache)
    return InvalidationResponse(target=target.value, invalidated=invalidated)


@router.delete(
    "/cache",
    response_model=CacheClearedResponse,
    status_code=status.HTTP_200_OK,
    summary="Clear both cache tiers",
    dependencies=[Depends(verify_admin_access)],
)
async def clear_cache(cache: CacheDep):
    await cache.clear()
    logger.warning("Cache cleared by admin request", stage="ADMIN.CLEAR")
    return CacheClearedResponse(cleared=True)


# ============================================================================
# METRICS ENDPOINT
# ============================================================================


@router.get("/metrics")
async def get_prometheus_metrics():
    """
    Expose metrics in Prometheus text format for scraping.

    prometheus.yml:

        scrape_configs:
          - job_name: 'gallery-api'
            static_configs:
              - targets: ['localhost:3000']
            metrics_path: '/api/admin/metrics'
            scrape_interval: 15s

    Returns:
        Response: Prometheus-formatted metrics as plain text
    """
    metrics_collector = get_metrics_collector()
    return Response(
        content=metrics_collector.get_prometheus_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
