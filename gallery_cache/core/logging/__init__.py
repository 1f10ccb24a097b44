"""
Logging Module

Structured logging (structlog) with request ID correlation.
"""

from gallery_cache.core.logging.logger import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_stage",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
]
