"""
Catalog API Models
==================

Pydantic models for the read-only artwork catalog endpoints.

Field names follow the public gallery API (camelCase aliases on the wire
where the frontend expects them, e.g. ``artworkCount``).
"""

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    """An artwork category."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    slug: str
    description: str = ""
    sort_order: int = Field(default=0, alias="sortOrder")
    artwork_count: int = Field(default=0, alias="artworkCount")


class Artwork(BaseModel):
    """A single artwork listing."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    artist: str
    category: str = Field(..., description="Category slug")
    price: float = Field(..., ge=0)
    medium: str = ""
    year: int | None = None
    featured: bool = False


class Pagination(BaseModel):
    """Page metadata for listings."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)
    has_next: bool = Field(..., alias="hasNext")
    has_prev: bool = Field(..., alias="hasPrev")


class ArtworkPage(BaseModel):
    """One page of filtered artworks."""

    artworks: list[Artwork]
    pagination: Pagination


class CategoryList(BaseModel):
    categories: list[Category]
    total: int


class CatalogCounts(BaseModel):
    artworks: int
    categories: int
    featured: int


class GalleryStats(BaseModel):
    """Aggregate catalog counts plus a cache statistics snapshot."""

    catalog: CatalogCounts
    cache: dict
