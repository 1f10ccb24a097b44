"""
Cache-Related Exceptions

All exceptions related to caching operations (Redis, in-memory cache, etc.)

These never reach HTTP clients: the cache layer catches them at the adapter
boundary, counts them and degrades to a miss.

Author: System Architect
Date: 2025-12-08
"""

from gallery_cache.core.exceptions.base import GalleryBaseError


class CacheError(GalleryBaseError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to cache (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect URL configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when cache key operation fails.

    Common causes:
    - Operation timeout
    - Invalid invalidation pattern
    """
    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded for, or decoded from, the distributed tier."""
    pass
