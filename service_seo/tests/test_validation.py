"""
Unit tests for request validation.
"""

import pytest

from shared.errors import InvalidArgumentError
from service_seo.app.handlers import validation


class TestValidation:
    """Test cases for the shared request validation."""

    def test_parse_seo_path(self):
        """Test splitting SEO paths."""
        assert validation.parse_seo_path("product") == ("product", None)
        assert validation.parse_seo_path("product/42/") == ("product", "42")

    @pytest.mark.parametrize("path", ["", "/", "a/b/c", "product/ "])
    def test_parse_seo_path_rejects(self, path):
        """Test malformed SEO paths."""
        with pytest.raises(InvalidArgumentError):
            validation.parse_seo_path(path)

    def test_parse_seo_identity_requires_pk(self):
        """Test that single-record routes need both parts."""
        with pytest.raises(InvalidArgumentError):
            validation.parse_seo_identity("product")

    def test_parse_page_path(self):
        """Test extracting a slug."""
        assert validation.parse_page_path("about-us") == "about-us"
        with pytest.raises(InvalidArgumentError):
            validation.parse_page_path("about/us")

    def test_seo_for_create_strips_identity(self):
        """Test that identity components are trimmed."""
        seo = validation.seo_for_create({"name": " product ", "pk": "42", "title": "Widget"})

        assert seo.name == "product"
        assert seo.created_at is None

    def test_seo_for_create_rejects_non_object(self):
        """Test that payloads must be JSON objects."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            validation.seo_for_create(["product"])

        assert exc_info.value.message == validation.DECODE_ERROR

    def test_seo_fields_reports_field_errors(self):
        """Test that validation errors name the offending field."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            validation.seo_fields({"title": "x" * 256})

        assert exc_info.value.details["errors"][0]["field"] == "title"

    def test_page_slug_is_derived(self):
        """Test slug derivation from the title."""
        page = validation.page_for_create({"title": "  Hello, World!  "})

        assert page.slug == "hello-world"

    def test_page_slug_cannot_be_derived(self):
        """Test a title with nothing to slugify."""
        with pytest.raises(InvalidArgumentError):
            validation.page_for_create({"title": "!!!"})

    def test_require(self):
        """Test identity component checks."""
        assert validation.require(" x ", "name") == "x"
        with pytest.raises(InvalidArgumentError):
            validation.require(None, "name")
        with pytest.raises(InvalidArgumentError):
            validation.require(42, "name")

    def test_identity_rejects_path_separator(self):
        """Test that identity components must be single path segments."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            validation.require("a/b", "pk")
        assert exc_info.value.details["field"] == "pk"

        with pytest.raises(InvalidArgumentError) as exc_info:
            validation.seo_for_create({"name": "product/x", "pk": "42", "title": "Widget"})
        assert exc_info.value.details["errors"][0]["field"] == "name"
