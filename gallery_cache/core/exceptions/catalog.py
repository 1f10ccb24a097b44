"""
Catalog Exceptions

Errors raised by the read-only artwork catalog.

Author: System Architect
Date: 2025-12-08
"""

from gallery_cache.core.exceptions.base import GalleryBaseError


class CatalogError(GalleryBaseError):
    """Base exception for catalog lookups."""
    pass


class ArtworkNotFoundError(CatalogError):
    """Raised when an artwork id does not exist."""

    status_code = 404
