"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the gallery API and its response cache.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
- Easy to update and track changes

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Multi-tier caching levels.

    MEMORY: Per-process bounded map (fastest, < 1ms)
    DISTRIBUTED: Redis shared cache (fast, 1-5ms, optional)
    """

    MEMORY = "memory"
    DISTRIBUTED = "distributed"


class CacheStatus(str, Enum):
    """Value of the X-Cache response header."""

    HIT = "HIT"
    MISS = "MISS"


# ============================================================================
# Cache Defaults
# ============================================================================

DEFAULT_TTL_SECONDS = 300  # Default entry lifetime (5 minutes)
DEFAULT_MAX_MEMORY_ITEMS = 10000  # L1 population bound
DEFAULT_CLEANUP_INTERVAL = 60  # Sweeper period (seconds)
REMEMBER_FOREVER_TTL = 365 * 24 * 3600  # "Forever" is one year

# Response cache presets (seconds)
SHORT_CACHE_TTL = 60  # Volatile listings
MEDIUM_CACHE_TTL = 300  # Artwork listings
LONG_CACHE_TTL = 1800  # Near-static lookups (categories)

# Health probe
HEALTH_PROBE_KEY_PREFIX = "health_check"
HEALTH_PROBE_TTL = 10

# ============================================================================
# Cache Key Prefixes
# ============================================================================

KEY_SEPARATOR = ":"
RESPONSE_KEY_PREFIX = "api"
CATEGORIES_KEY = "categories:all"
ARTWORKS_KEY_PREFIX = "artworks"
ANONYMOUS_PRINCIPAL = "anonymous"

# Invalidation patterns (regular expressions over cache keys)
ARTWORKS_PATTERN = r"artworks"
CATEGORIES_PATTERN = r"categories"
STATS_PATTERN = r"^api:.*/stats"

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_CACHE_STATUS = "X-Cache"
HEADER_CACHE_KEY = "X-Cache-Key"
HEADER_USER_ID = "X-User-ID"
