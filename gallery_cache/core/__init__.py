"""
Core Module

Configuration, logging, exceptions and store interfaces shared by every
layer of the gallery cache.
"""

from gallery_cache.core.exceptions import (
    ArtworkNotFoundError,
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CatalogError,
    ConfigurationError,
    GalleryBaseError,
)
from gallery_cache.core.logging import get_logger, log_stage, setup_logging

__all__ = [
    "GalleryBaseError",
    "ConfigurationError",
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    "CatalogError",
    "ArtworkNotFoundError",
    "get_logger",
    "log_stage",
    "setup_logging",
]
