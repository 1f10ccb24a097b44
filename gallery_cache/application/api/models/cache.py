"""
Cache Admin API Models
======================

Response and request models for the cache administration endpoints.

Bounded values use constraints (ge=0, le=100) to enforce invariants of the
statistics snapshot.
"""

import re

from pydantic import BaseModel, Field, field_validator


class CacheStatsResponse(BaseModel):
    """Snapshot of the cache statistics counters."""

    hits: int = Field(..., ge=0, description="Lookups served from either tier")
    misses: int = Field(..., ge=0, description="Lookups found in neither tier")
    sets: int = Field(..., ge=0)
    deletes: int = Field(..., ge=0)
    errors: int = Field(..., ge=0, description="Swallowed cache failures")
    memory_hits: int = Field(..., ge=0)
    distributed_hits: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0, le=100, description="Hit percentage")
    entry_count: int = Field(..., ge=0, description="Entries held in the memory tier")
    distributed_connected: bool


class CacheHealthResponse(BaseModel):
    """Result of the cache round-trip probe."""

    healthy: bool
    memory_status: str
    distributed_status: str
    stats: CacheStatsResponse


class InvalidatePatternRequest(BaseModel):
    """Body of ``POST /admin/cache/invalidate``."""

    pattern: str = Field(..., min_length=1, description="Regular expression matched against keys")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v):
        """Reject patterns that are not valid regular expressions."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regular expression: {e}")
        return v


class InvalidationResponse(BaseModel):
    """Outcome of an invalidation request."""

    target: str
    invalidated: int = Field(..., ge=0, description="Distinct keys removed across both tiers")


class CacheClearedResponse(BaseModel):
    cleared: bool
