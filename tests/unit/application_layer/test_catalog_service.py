"""
Unit Tests for CatalogService
"""

import pytest

from gallery_cache.application.api.models.catalog import Artwork, Category
from gallery_cache.application.services.catalog_service import CatalogService
from gallery_cache.core.exceptions import ArtworkNotFoundError


@pytest.fixture
def catalog():
    return CatalogService(
        artworks=[
            Artwork(id=1, title="Red", artist="A", category="painting", price=100),
            Artwork(id=2, title="Blue", artist="B", category="painting", price=300),
            Artwork(id=3, title="Stone", artist="C", category="sculpture", price=900, featured=True),
        ],
        categories=[
            Category(id=2, name="Sculpture", slug="sculpture", sort_order=2),
            Category(id=1, name="Painting", slug="painting", sort_order=1),
            Category(id=3, name="Digital", slug="digital", sort_order=3),
        ],
    )


@pytest.mark.unit
class TestCatalogService:
    def test_pagination(self, catalog):
        page = catalog.list_artworks(page=2, limit=2)

        assert [a.id for a in page.artworks] == [3]
        assert page.pagination.pages == 2
        assert page.pagination.has_prev is True
        assert page.pagination.has_next is False

    def test_page_beyond_end_is_empty(self, catalog):
        page = catalog.list_artworks(page=5, limit=2)

        assert page.artworks == []
        assert page.pagination.total == 3

    def test_price_range(self, catalog):
        page = catalog.list_artworks(min_price=200, max_price=900)

        assert [a.id for a in page.artworks] == [2, 3]

    def test_search_is_case_insensitive(self, catalog):
        assert [a.id for a in catalog.list_artworks(search="BLUE").artworks] == [2]

    def test_empty_result(self, catalog):
        page = catalog.list_artworks(category="digital")

        assert page.pagination.total == 0
        assert page.pagination.pages == 0

    def test_get_artwork_not_found(self, catalog):
        with pytest.raises(ArtworkNotFoundError) as exc_info:
            catalog.get_artwork(42)

        assert exc_info.value.details == {"artwork_id": 42}

    def test_categories_sorted_with_counts(self, catalog):
        categories = catalog.list_categories()

        assert [c.slug for c in categories] == ["painting", "sculpture", "digital"]
        assert [c.artwork_count for c in categories] == [2, 1, 0]

    def test_counts(self, catalog):
        counts = catalog.counts()

        assert (counts.artworks, counts.categories, counts.featured) == (3, 3, 1)
