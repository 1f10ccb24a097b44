"""
Request Logging Middleware - Educational Documentation
=======================================================

WHAT IS MIDDLEWARE?
-------------------
Middleware is code that runs BEFORE and AFTER each request is processed.
It sits between the client and the route handlers:

Request Flow:
    Client → Middleware 1 (before) → Middleware 2 (before) → Route Handler

Response Flow:
    Route Handler → Middleware 2 (after) → Middleware 1 (after) → Client

WHAT THIS MODULE PROVIDES:
--------------------------
1. RequestIDMiddleware: assigns every request an ID (X-Request-ID, taken from
   the client when supplied) and binds it to the logging context so every
   log line of the request carries it
2. RequestLoggingMiddleware: logs each request and its outcome, including
   the response cache status (X-Cache HIT/MISS), and records the request
   count and latency metrics
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gallery_cache.core.config.constants import HEADER_CACHE_STATUS, HEADER_REQUEST_ID
from gallery_cache.core.logging.logger import clear_request_id, get_logger, set_request_id
from gallery_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)


# ============================================================================
# CONFIGURATION
# ============================================================================
# Headers that contain sensitive information and should not be logged

SENSITIVE_HEADERS = {
    "authorization",  # Bearer tokens, Basic auth
    "cookie",  # Session cookies
    "x-api-key",  # API keys
    "x-auth-token",  # Authentication tokens
}


# ============================================================================
# REQUEST ID MIDDLEWARE
# ============================================================================


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Inject a request ID into every request for log correlation.

    The ID is stored in a ContextVar (picked up by the structlog processor
    chain) and echoed back in the X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()


# ============================================================================
# REQUEST LOGGING MIDDLEWARE
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    LOGGING STRATEGY:
    -----------------
    This middleware logs:
    - Request: method, path, query params, headers (sanitized)
    - Response: status code, duration, cache status
    - Errors: Full exception details

    It does NOT log request/response bodies or sensitive headers.
    """

    def __init__(self, app, log_level: str = "INFO"):
        """
        Initialize the request logging middleware.

        Args:
            app: The ASGI application (FastAPI app)
            log_level: Level used for the per-request log lines
        """
        super().__init__(app)
        self.log_level = log_level.lower()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Log the request, time it and record request metrics.

        Args:
            request: The incoming HTTP request
            call_next: Callable to invoke the next middleware/handler

        Returns:
            Response: The HTTP response
        """
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        log = getattr(logger, self.log_level, logger.info)

        log(
            f"Incoming request: {method} {path}",
            method=method,
            path=path,
            query_params=str(request.query_params) if request.query_params else None,
            headers=self._sanitize_headers(dict(request.headers)),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {method} {path}",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 4),
                exc_info=True,
            )
            # Re-raise so the error handling middleware formats the response
            raise

        duration = time.perf_counter() - start_time
        metrics = get_metrics_collector()
        metrics.record_request(method, response.status_code)
        metrics.record_request_duration(method, duration)

        log(
            f"Request completed: {method} {path}",
            method=method,
            path=path,
            status_code=response.status_code,
            cache_status=response.headers.get(HEADER_CACHE_STATUS),
            duration_seconds=round(duration, 4),
        )

        return response

    def _sanitize_headers(self, headers: dict) -> dict:
        """
        Replace sensitive header values with "[REDACTED]".

        Args:
            headers: Dictionary of HTTP headers

        Returns:
            dict: Sanitized headers
        """
        sanitized = {}

        for key, value in headers.items():
            if key.lower() in SENSITIVE_HEADERS:
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value

        return sanitized


# ============================================================================
# HELPER FUNCTIONS FOR APP REGISTRATION
# ============================================================================


def add_request_logging_middleware(app, log_level: str = "INFO"):
    """
    Add request logging middleware to the FastAPI application.

    Args:
        app: FastAPI application instance
        log_level: Level used for the per-request log lines
    """
    app.add_middleware(RequestLoggingMiddleware, log_level=log_level)
    logger.info("Request logging middleware registered", log_level=log_level)


def add_request_id_middleware(app):
    """Add request ID middleware to the FastAPI application."""
    app.add_middleware(RequestIDMiddleware)
    logger.info("Request ID middleware registered")
