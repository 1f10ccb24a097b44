"""
Unit Tests for the exception hierarchy
"""

import pytest

from gallery_cache.core.exceptions import (
    ArtworkNotFoundError,
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CatalogError,
    ConfigurationError,
    GalleryBaseError,
)


@pytest.mark.unit
class TestGalleryBaseError:
    def test_to_dict(self):
        error = CacheConnectionError(
            "Failed to connect to Redis", request_id="abc-123", details={"url": "redis://cache"}
        )

        assert error.to_dict() == {
            "error_type": "CacheConnectionError",
            "message": "Failed to connect to Redis",
            "request_id": "abc-123",
            "details": {"url": "redis://cache"},
        }

    def test_details_are_copied(self):
        details = {"key": "k"}
        error = CacheKeyError("boom", details=details)

        error.with_context(extra=1)

        assert details == {"key": "k"}

    def test_with_context_chains(self):
        error = CacheKeyError("boom").with_context(key="k", timeout=0.1)

        assert error.details == {"key": "k", "timeout": 0.1}

    def test_from_exception_wraps_original(self):
        error = CacheSerializationError.from_exception(TypeError("bad type"), key="k")

        assert isinstance(error, CacheSerializationError)
        assert error.message == "bad type"
        assert error.details == {
            "original_error": "TypeError",
            "original_message": "bad type",
            "key": "k",
        }

    def test_repr_includes_context(self):
        text = repr(CacheKeyError("boom", request_id="r1", details={"key": "k"}))

        assert "CacheKeyError" in text
        assert "request_id='r1'" in text


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "error_class,parent",
        [
            (CacheConnectionError, CacheError),
            (CacheKeyError, CacheError),
            (CacheSerializationError, CacheError),
            (ArtworkNotFoundError, CatalogError),
            (CacheError, GalleryBaseError),
            (CatalogError, GalleryBaseError),
            (ConfigurationError, GalleryBaseError),
        ],
    )
    def test_subclassing(self, error_class, parent):
        assert issubclass(error_class, parent)

    def test_status_codes(self):
        assert ArtworkNotFoundError("x").status_code == 404
        assert CacheError("x").status_code == 500
