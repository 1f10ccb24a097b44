"""
Catalog Routes
==============

Public, read-only gallery endpoints. Every endpoint here is memoized by the
response cache: the router is built with ``route_class=CachedRoute`` and each
endpoint carries a caching preset.

    GET /artworks              artworks_cache   (300s, filter-derived key)
    GET /artworks/{artwork_id} medium_cache     (300s)
    GET /categories            categories_cache (1800s, key categories:all)
    GET /stats                 short_cache      (60s)

Writes to the catalog happen elsewhere and call the invalidation helpers
(``invalidate_artwork_cache`` and friends) once they commit.
"""

from fastapi import APIRouter, Query

from gallery_cache.application.api.dependencies import CacheDep, CatalogDep
from gallery_cache.application.api.middleware.response_cache import (
    CachedRoute,
    artworks_cache,
    categories_cache,
    medium_cache,
    short_cache,
)
from gallery_cache.application.api.models.catalog import (
    Artwork,
    ArtworkPage,
    CategoryList,
    GalleryStats,
)
from gallery_cache.application.services.catalog_service import MAX_PAGE_SIZE

router = APIRouter(tags=["Catalog"], route_class=CachedRoute)


@router.get("/artworks", response_model=ArtworkPage)
@artworks_cache
async def list_artworks(
    catalog: CatalogDep,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, description=f"Page size (capped at {MAX_PAGE_SIZE})"),
    category: str | None = Query(None, description="Category slug"),
    search: str | None = Query(None, description="Matches title, artist or medium"),
    min_price: float | None = Query(None, alias="minPrice", ge=0),
    max_price: float | None = Query(None, alias="maxPrice", ge=0),
):
    """
    Filtered, paginated artwork listing.

    The cache key is derived from the filter parameters only
    (``artworks:{page}:{limit}:{category}:{search}:{minPrice}:{maxPrice}``),
    so unrelated query parameters do not fragment the cache.
    """
    return catalog.list_artworks(
        page=page,
        limit=limit,
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
    )


@router.get("/artworks/{artwork_id}", response_model=Artwork)
@medium_cache
async def get_artwork(artwork_id: int, catalog: CatalogDep):
    """Single artwork; 404 (never cached) when absent."""
    return catalog.get_artwork(artwork_id)


@router.get("/categories", response_model=CategoryList)
@categories_cache
async def list_categories(catalog: CatalogDep):
    categories = catalog.list_categories()
    return CategoryList(categories=categories, total=len(categories))


@router.get("/stats", response_model=GalleryStats)
@short_cache
async def gallery_stats(catalog: CatalogDep, cache: CacheDep):
    """
    Catalog counts plus a cache statistics snapshot.

    The response itself is cached for the short TTL, so the embedded cache
    statistics can lag by up to that long.
    """
    return GalleryStats(catalog=catalog.counts(), cache=cache.stats())
