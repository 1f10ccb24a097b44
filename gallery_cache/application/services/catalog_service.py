"""
Catalog Service

Read-only artwork and category catalog served by the public endpoints.

The catalog is held in memory; write paths (admin CRUD) live outside this
service and call the cache invalidation helpers after they commit.
"""

import math

from gallery_cache.application.api.models.catalog import (
    Artwork,
    ArtworkPage,
    CatalogCounts,
    Category,
    Pagination,
)
from gallery_cache.core.exceptions import ArtworkNotFoundError
from gallery_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 50


def default_categories() -> list[Category]:
    return [
        Category(id=1, name="Painting", slug="painting", description="Oil, acrylic and watercolour", sort_order=1),
        Category(id=2, name="Photography", slug="photography", description="Fine art prints", sort_order=2),
        Category(id=3, name="Sculpture", slug="sculpture", description="Bronze, stone and mixed media", sort_order=3),
        Category(id=4, name="Digital", slug="digital", description="Digital and generative works", sort_order=4),
    ]


def default_artworks() -> list[Artwork]:
    return [
        Artwork(id=1, title="Harbour at Dusk", artist="Mara Quint", category="painting",
                price=1200.0, medium="Oil on canvas", year=2021, featured=True),
        Artwork(id=2, title="Salt Flats", artist="Idris Hale", category="photography",
                price=450.0, medium="Archival pigment print", year=2019),
        Artwork(id=3, title="Quiet Orbit", artist="Lena Vos", category="sculpture",
                price=3400.0, medium="Bronze", year=2020, featured=True),
        Artwork(id=4, title="Signal Garden", artist="Tomas Reyes", category="digital",
                price=300.0, medium="Generative print", year=2023),
        Artwork(id=5, title="Morning Study", artist="Mara Quint", category="painting",
                price=650.0, medium="Watercolour", year=2022),
        Artwork(id=6, title="Concrete Bloom", artist="Idris Hale", category="photography",
                price=520.0, medium="Silver gelatin print", year=2018),
        Artwork(id=7, title="Fold No. 3", artist="Lena Vos", category="sculpture",
                price=2100.0, medium="Steel", year=2022),
        Artwork(id=8, title="Blue Interval", artist="Ana Duarte", category="painting",
                price=980.0, medium="Acrylic on panel", year=2023, featured=True),
    ]


class CatalogService:
    """
    In-memory catalog with filtering and pagination.

    Usage:
        catalog = CatalogService()
        page = catalog.list_artworks(page=1, limit=12, category="painting")
    """

    def __init__(
        self,
        artworks: list[Artwork] | None = None,
        categories: list[Category] | None = None,
    ):
        self._artworks = artworks if artworks is not None else default_artworks()
        self._categories = categories if categories is not None else default_categories()

    def list_artworks(
        self,
        page: int = 1,
        limit: int = 12,
        category: str | None = None,
        search: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> ArtworkPage:
        """
        Filter and paginate artworks.

        ``search`` matches title, artist and medium case-insensitively.
        ``limit`` is capped at 50.
        """
        limit = min(limit, MAX_PAGE_SIZE)
        matches = self._artworks

        if category:
            matches = [a for a in matches if a.category == category]
        if search:
            needle = search.lower()
            matches = [
                a for a in matches
                if needle in a.title.lower() or needle in a.artist.lower() or needle in a.medium.lower()
            ]
        if min_price is not None:
            matches = [a for a in matches if a.price >= min_price]
        if max_price is not None:
            matches = [a for a in matches if a.price <= max_price]

        total = len(matches)
        start = (page - 1) * limit
        logger.debug("Artworks listed", page=page, limit=limit, total=total)

        return ArtworkPage(
            artworks=matches[start:start + limit],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
                has_next=start + limit < total,
                has_prev=page > 1,
            ),
        )

    def get_artwork(self, artwork_id: int) -> Artwork:
        """
        Raises:
            ArtworkNotFoundError: If no artwork has this id
        """
        for artwork in self._artworks:
            if artwork.id == artwork_id:
                return artwork
        raise ArtworkNotFoundError(
            f"Artwork {artwork_id} not found", details={"artwork_id": artwork_id}
        )

    def list_categories(self) -> list[Category]:
        """Categories in display order, with their artwork counts."""
        counts: dict[str, int] = {}
        for artwork in self._artworks:
            counts[artwork.category] = counts.get(artwork.category, 0) + 1

        ordered = sorted(self._categories, key=lambda c: (c.sort_order, c.name))
        return [c.model_copy(update={"artwork_count": counts.get(c.slug, 0)}) for c in ordered]

    def counts(self) -> CatalogCounts:
        return CatalogCounts(
            artworks=len(self._artworks),
            categories=len(self._categories),
            featured=sum(1 for a in self._artworks if a.featured),
        )
