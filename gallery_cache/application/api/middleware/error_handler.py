"""
Error Handling Middleware - Educational Documentation
======================================================

TWO LAYERS OF ERROR HANDLING IN THE GALLERY API:
------------------------------------------------
1. Domain errors (GalleryBaseError subclasses, e.g. ArtworkNotFoundError)
   are rendered by the exception handler registered in app.py, using each
   error's ``status_code`` and ``to_dict()`` body
2. Anything else that escapes a route (a bug, a broken dependency) reaches
   this middleware: it is logged with its traceback, counted as a 500 in
   ``gallery_requests_total`` and answered with a fixed JSON body that
   carries the request ID for support lookups

WHAT NEVER GETS HERE:
---------------------
Cache malfunctions. CacheManager swallows Redis and codec failures and
reports a miss; the response cache bypasses itself when a key, lookup,
store or header step fails. A request only 500s when the route itself does.

Error responses are never response-cached (only 2xx bodies are stored).
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from gallery_cache.core.logging.logger import get_logger, get_request_id
from gallery_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred while processing your request"


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Turns an unhandled exception into a logged, counted JSON 500.

    Body: ``{error, message, error_type, request_id}``; with
    ``include_traceback`` (development only) also ``traceback`` and
    ``detail``.
    """

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            method = request.method
            path = request.url.path
            error_type = type(e).__name__

            logger.error(
                f"Unhandled exception in request: {method} {path}",
                method=method,
                path=path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )

            get_metrics_collector().record_request(method, 500)

            body = {
                "error": "internal_server_error",
                "message": INTERNAL_ERROR_MESSAGE,
                "error_type": error_type,
                "request_id": get_request_id(),
            }
            if self.include_traceback:
                body["traceback"] = traceback.format_exc()
                body["detail"] = str(e)

            return JSONResponse(status_code=500, content=body)


def add_error_handling_middleware(app, include_traceback: bool = False):
    """
    Register ErrorHandlingMiddleware.

    ``setup_middleware`` passes ``include_traceback=True`` only when
    ENVIRONMENT is development.
    """
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("Error handling middleware registered", include_traceback=include_traceback)
