"""
FastAPI Dependency Injection Module
===================================

Reusable dependencies for the application-level objects created during
startup (cache manager, catalog service) and for settings.

WHY app.state INSTEAD OF GLOBALS?
---------------------------------
The cache manager is built once per application by the lifespan manager and
stored on ``app.state``. Routes reach it through the request:
- It's explicitly tied to the app instance (tests build isolated apps)
- It's initialized in the lifespan manager (proper start/stop lifecycle)
- There is no process-wide cache singleton to reset between tests
"""

from typing import Annotated

from fastapi import Depends, Request

from gallery_cache.application.services.catalog_service import CatalogService
from gallery_cache.core.config.settings import Settings
from gallery_cache.infrastructure.cache.cache_manager import CacheManager


def get_cache_manager(request: Request) -> CacheManager:
    """
    Retrieve the CacheManager from application state.

    Raises:
        RuntimeError: If the application lifespan did not run

    Example Usage in a Route:
        @router.get("/cache/stats")
        async def cache_stats(cache: CacheDep):
            return cache.stats()
    """
    cache_manager = getattr(request.app.state, "cache_manager", None)
    if cache_manager is None:
        raise RuntimeError(
            "CacheManager not initialized in app.state. "
            "This indicates the application lifespan startup didn't complete properly."
        )
    return cache_manager


def get_catalog_service(request: Request) -> CatalogService:
    """Retrieve the read-only catalog from application state."""
    return request.app.state.catalog_service


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


# ============================================================================
# TYPE ALIASES FOR CLEANER ROUTE SIGNATURES
# ============================================================================

CacheDep = Annotated[CacheManager, Depends(get_cache_manager)]
CatalogDep = Annotated[CatalogService, Depends(get_catalog_service)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
