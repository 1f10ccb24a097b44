"""
Exception Module

Structured exception hierarchy for the gallery API.

Module Structure:
-----------------
- **base.py**: GalleryBaseError base class + ConfigurationError
- **cache.py**: Cache-related exceptions (Redis, serialization)
- **catalog.py**: Catalog lookup exceptions

Usage:
------
```python
from gallery_cache.core.exceptions import CacheConnectionError, ArtworkNotFoundError
```

Author: System Architect
Date: 2025-12-08
"""

# Base exception
from gallery_cache.core.exceptions.base import ConfigurationError, GalleryBaseError

# Cache exceptions
from gallery_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
)

# Catalog exceptions
from gallery_cache.core.exceptions.catalog import ArtworkNotFoundError, CatalogError

__all__ = [
    # Base
    "GalleryBaseError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    # Catalog
    "CatalogError",
    "ArtworkNotFoundError",
]
