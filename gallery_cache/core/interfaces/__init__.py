"""
Interfaces Module

Protocols and shared result types for pluggable components.
"""

from gallery_cache.core.interfaces.cache import (
    MISS,
    DistributedStore,
    LookupResult,
    NullDistributedStore,
)

__all__ = ["MISS", "DistributedStore", "LookupResult", "NullDistributedStore"]
