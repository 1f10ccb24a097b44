#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Configures the gallery API: settings, logging, the two-tier cache, middleware
and routers.

The cache manager is built once per application (``create_app``), stored on
``app.state`` and started/stopped by the lifespan. Tests build isolated apps
with their own settings and cache manager:

    app = create_app(settings=Settings(CACHE_MAX_MEMORY_ITEMS=3), cache_manager=manager)

Author: Senior Solution Architect
Date: 2025-12-05
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gallery_cache.application.api.middleware import setup_middleware
from gallery_cache.application.api.routes.admin import router as admin_router
from gallery_cache.application.api.routes.catalog import router as catalog_router
from gallery_cache.application.api.routes.health import router as health_router
from gallery_cache.application.services.catalog_service import CatalogService
from gallery_cache.core.config.constants import HEADER_CACHE_STATUS, HEADER_REQUEST_ID
from gallery_cache.core.config.settings import Settings, get_settings
from gallery_cache.core.exceptions import GalleryBaseError
from gallery_cache.core.logging.logger import get_logger, get_request_id, setup_logging
from gallery_cache.infrastructure.cache.cache_manager import CacheManager, build_cache_manager
from gallery_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    Startup connects the distributed tier (a failure leaves the cache in
    memory-only mode) and starts the eviction sweeper. Shutdown stops the
    sweeper, drains pending Redis writes and disconnects.
    """
    settings: Settings = app.state.settings
    cache_manager: CacheManager = app.state.cache_manager

    logger.info(
        "Starting Gallery API",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    try:
        await cache_manager.start()
        app.state.started_at = time.monotonic()
        logger.info("Application startup complete")

        yield

    finally:
        logger.info("Shutting down application")
        await cache_manager.shutdown()
        logger.info("Application shutdown complete")


# ============================================================================
# Exception Handlers
# ============================================================================


async def gallery_exception_handler(request: Request, exc: GalleryBaseError):
    """Render domain errors with their own status code."""
    if exc.request_id is None:
        exc.request_id = get_request_id()

    logger.error(
        f"Gallery exception: {exc.message}",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


# ============================================================================
# Application Factory
# ============================================================================


def create_app(settings: Settings | None = None, cache_manager: CacheManager | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (default: global settings)
        cache_manager: Pre-built cache (default: built from ``settings``)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Art gallery API with a two-tier (memory + Redis) response cache",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.cache_manager = cache_manager or build_cache_manager(settings)
    app.state.catalog_service = CatalogService()
    app.state.started_at = time.monotonic()

    get_metrics_collector().set_app_info(settings)

    # ========================================================================
    # MIDDLEWARE REGISTRATION
    # ========================================================================
    # Last added runs first: CORS wraps everything, so error responses
    # carry CORS headers too.
    setup_middleware(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID, HEADER_CACHE_STATUS],
    )

    app.add_exception_handler(GalleryBaseError, gallery_exception_handler)

    # ========================================================================
    # ROUTER REGISTRATION
    # ========================================================================
    # All API endpoints are prefixed with API_BASE_PATH (default: /api):
    # - GET /api/artworks, /api/categories, /api/stats
    # - GET /api/health
    # - GET /api/admin/cache/stats, /api/admin/metrics

    base_path = settings.app.API_BASE_PATH

    app.include_router(health_router, prefix=base_path)
    app.include_router(catalog_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": f"{base_path}/health",
        }

    return app


# Create application instance
app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "gallery_cache.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
