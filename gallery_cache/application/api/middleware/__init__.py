"""
Middleware Package - Educational Documentation
===============================================

AVAILABLE MIDDLEWARE:
---------------------
1. request_logging: Request IDs, request/response logging and request metrics
2. error_handler: Centralized handling of unexpected exceptions
3. response_cache: Response memoization for idempotent read endpoints
   (per-route via ``CachedRoute`` or app-wide via ``ResponseCacheMiddleware``)

MIDDLEWARE ORDERING:
--------------------
Starlette runs the LAST registered middleware FIRST. ``setup_middleware``
registers in reverse so that requests flow:

Request flow:  Client → Request ID → Error handling → Request logging → Handler

- The request ID is bound before anything logs
- Errors raised by the handler are logged, then formatted into a 500

USAGE EXAMPLE:
--------------
    from gallery_cache.application.api.middleware import setup_middleware

    app = FastAPI()
    setup_middleware(app, settings)
"""

from fastapi import FastAPI

from gallery_cache.core.config.settings import Settings, get_settings
from gallery_cache.core.logging.logger import get_logger

from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware
from .request_logging import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    add_request_id_middleware,
    add_request_logging_middleware,
)
from .response_cache import (
    CachedRoute,
    CachePolicy,
    CacheRule,
    ResponseCache,
    ResponseCacheMiddleware,
    artworks_cache,
    cached,
    categories_cache,
    long_cache,
    medium_cache,
    short_cache,
)

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, settings: Settings | None = None):
    """
    Register the cross-cutting middleware in the correct order.

    Args:
        app: FastAPI application instance
        settings: Application settings (default: global settings)
    """
    settings = settings or get_settings()

    logger.info("Registering middleware components...")

    # Innermost: sees the handler's outcome first
    add_request_logging_middleware(app, log_level="INFO")

    # Formats anything the handler (or logging) let escape
    add_error_handling_middleware(
        app, include_traceback=(settings.app.ENVIRONMENT == "development")
    )

    # Outermost: binds the request ID for every log line below it
    add_request_id_middleware(app)

    logger.info("All middleware components registered successfully")


__all__ = [
    "setup_middleware",
    "add_error_handling_middleware",
    "add_request_logging_middleware",
    "add_request_id_middleware",
    "ErrorHandlingMiddleware",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "CachedRoute",
    "CachePolicy",
    "CacheRule",
    "ResponseCache",
    "ResponseCacheMiddleware",
    "cached",
    "short_cache",
    "medium_cache",
    "long_cache",
    "categories_cache",
    "artworks_cache",
]
