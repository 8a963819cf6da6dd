"""
Unit tests for the cache-aside controller.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from shared.errors import AlreadyExistsError, InternalError, NotFoundError
from shared.metrics import MetricsCollector
from service_seo.app.cache import MemoryCache
from service_seo.app.controller import Cache, Controller
from service_seo.app.controller import keys
from service_seo.app.controller.interfaces import CacheError
from service_seo.app.models import SEO, SEOFields, Page, PageFields
from service_seo.app.persistence.errors import StoreError
from service_seo.app.persistence.memory import MemoryStore


def make_seo(name="product", pk="42", title="Blue Widget"):
    return SEO(name=name, pk=pk, title=title, description="A widget", keywords="widget,blue")


def make_page(slug="about-us", title="About us"):
    return Page(slug=slug, title=title, href="/about-us", content="Hello")


def failing_cache() -> AsyncMock:
    """A cache whose every operation fails."""
    cache = AsyncMock(spec=Cache)
    error = CacheError("connection refused")
    cache.get.side_effect = error
    cache.set.side_effect = error
    cache.delete.side_effect = error
    cache.invalidate_by_pattern.side_effect = error
    return cache


class TestController:
    """Test cases for Controller."""

    @pytest.fixture
    def store(self):
        return MemoryStore()

    @pytest.fixture
    def cache(self):
        return MemoryCache(namespace="test")

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("seo-test")

    @pytest.fixture
    def controller(self, store, cache, metrics):
        return Controller(store, cache, ttl_seconds=60, timeout_seconds=1.0, metrics=metrics)

    def test_rejects_non_positive_ttl(self, store, cache):
        """Test that cached entries must always expire."""
        with pytest.raises(ValueError):
            Controller(store, cache, ttl_seconds=0)

    @pytest.mark.asyncio
    async def test_get_seo_reads_through_cache(self, controller, store, cache):
        """Test that a second read is served from the cache."""
        await store.create_seo(make_seo())

        with patch.object(store, "get_seo", wraps=store.get_seo) as spy:
            first = await controller.get_seo("product", "42")
            second = await controller.get_seo("product", "42")

        assert spy.await_count == 1
        assert first == second
        assert first.title == "Blue Widget"
        assert keys.seo_key("product", "42") in cache

    @pytest.mark.asyncio
    async def test_absence_is_not_cached(self, controller, store, cache, metrics):
        """Test that NotFound never populates the cache."""
        with patch.object(store, "get_seo", wraps=store.get_seo) as spy:
            for _ in range(2):
                with pytest.raises(NotFoundError) as exc_info:
                    await controller.get_seo("product", "missing")

        assert spy.await_count == 2
        assert len(cache) == 0
        assert exc_info.value.details == {"name": "product", "pk": "missing"}
        assert metrics.sample(
            "domain_errors_total", {"operation": "seo.GetSEO", "code": "NOT_FOUND"}
        ) == 2.0

    @pytest.mark.asyncio
    async def test_update_invalidates_item(self, controller, cache):
        """Test that a read after an update observes the update."""
        await controller.create_seo(make_seo())
        await controller.get_seo("product", "42")
        assert keys.seo_key("product", "42") in cache

        updated = await controller.update_seo("product", "42", SEOFields(title="Red Widget"))

        assert updated.title == "Red Widget"
        assert keys.seo_key("product", "42") not in cache
        assert (await controller.get_seo("product", "42")).title == "Red Widget"

    @pytest.mark.asyncio
    async def test_delete_invalidates_item(self, controller):
        """Test that a read after a delete reports NotFound."""
        await controller.create_seo(make_seo())
        await controller.get_seo("product", "42")

        await controller.delete_seo("product", "42")

        with pytest.raises(NotFoundError):
            await controller.get_seo("product", "42")

    @pytest.mark.asyncio
    async def test_create_invalidates_every_seo_collection(self, controller, cache):
        """Test that collection keys of the whole SEO type are dropped on write."""
        assert await controller.list_seo("product") == []
        assert await controller.list_seo("article") == []
        assert keys.seo_list_key("product") in cache

        await controller.create_seo(make_seo())

        assert keys.seo_list_key("product") not in cache
        assert keys.seo_list_key("article") not in cache
        assert [r.pk for r in await controller.list_seo("product")] == ["42"]

    @pytest.mark.asyncio
    async def test_create_seo_drops_stale_item(self, controller, cache):
        """Test that create removes an item entry left over for the same identity."""
        stale = make_seo(title="Stale Widget").model_dump_json()
        await cache.set(keys.seo_key("product", "42"), stale, 60)

        await controller.create_seo(make_seo(title="Fresh Widget"))

        assert keys.seo_key("product", "42") not in cache
        assert (await controller.get_seo("product", "42")).title == "Fresh Widget"

    @pytest.mark.asyncio
    async def test_create_page_drops_stale_item(self, controller, cache):
        """Test that create removes a page entry left over for the same slug."""
        stale = make_page(title="Stale").model_dump_json()
        await cache.set(keys.page_key("about-us"), stale, 60)

        await controller.create_page(make_page(title="Fresh"))

        assert keys.page_key("about-us") not in cache
        assert (await controller.get_page("about-us")).title == "Fresh"

    @pytest.mark.asyncio
    async def test_empty_page_list_is_cached(self, controller, store):
        """Test that an empty collection is a cacheable value."""
        with patch.object(store, "list_pages", wraps=store.list_pages) as spy:
            assert await controller.list_pages() == []
            assert await controller.list_pages() == []

        assert spy.await_count == 1

    @pytest.mark.asyncio
    async def test_page_writes_invalidate_list(self, controller, cache):
        """Test the page create/update/delete lifecycle against the list."""
        await controller.create_page(make_page())
        assert [p.slug for p in await controller.list_pages()] == ["about-us"]

        await controller.update_page("about-us", PageFields(title="About", content="Updated"))
        assert keys.page_list_key() not in cache
        assert (await controller.list_pages())[0].content == "Updated"

        await controller.delete_page("about-us")
        assert await controller.list_pages() == []

    @pytest.mark.asyncio
    async def test_duplicate_create(self, controller, cache):
        """Test AlreadyExists and that a failed write leaves the cache alone."""
        await controller.create_page(make_page())
        await controller.get_page("about-us")

        with pytest.raises(AlreadyExistsError) as exc_info:
            await controller.create_page(make_page(title="Other"))

        assert exc_info.value.details == {"slug": "about-us"}
        assert keys.page_key("about-us") in cache

    @pytest.mark.asyncio
    async def test_missing_on_update_and_delete(self, controller):
        """Test NotFound for writes addressing absent records."""
        with pytest.raises(NotFoundError):
            await controller.update_seo("product", "1", SEOFields(title="x"))
        with pytest.raises(NotFoundError):
            await controller.delete_page("nope")

    @pytest.mark.asyncio
    async def test_store_failure_is_internal_and_not_cached(self, controller, store, cache):
        """Test that unclassified store errors surface as a generic Internal."""
        with patch.object(store, "get_page", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = StoreError("connection reset by peer")

            with pytest.raises(InternalError) as exc_info:
                await controller.get_page("about-us")

        assert exc_info.value.message == "internal error"
        assert "connection reset" in exc_info.value.reason
        assert exc_info.value.operation == "pages.GetPage"
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_reads_and_writes_survive_cache_outage(self, store, metrics):
        """Test that a failing cache never fails a request."""
        controller = Controller(store, failing_cache(), ttl_seconds=60, metrics=metrics)

        created = await controller.create_seo(make_seo())
        fetched = await controller.get_seo("product", "42")
        listed = await controller.list_seo("product")
        await controller.delete_seo("product", "42")

        assert fetched.title == created.title
        assert [r.pk for r in listed] == ["42"]
        assert metrics.sample("cache_errors_total", {"operation": "get"}) == 2.0
        assert metrics.sample("cache_errors_total", {"operation": "invalidate"}) == 2.0

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, controller, store, cache):
        """Test that a corrupt cache entry is replaced from the store."""
        await store.create_seo(make_seo())
        await cache.set(keys.seo_key("product", "42"), "{not json", 60)

        record = await controller.get_seo("product", "42")

        assert record.title == "Blue Widget"
        assert SEO.model_validate_json(await cache.get(keys.seo_key("product", "42"))) == record

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self, controller, store):
        """Test that an operation outliving its deadline fails as Internal."""
        async def slow_get(slug):
            await asyncio.sleep(1)

        with patch.object(store, "get_page", side_effect=slow_get):
            with pytest.raises(InternalError) as exc_info:
                await controller.get_page("about-us", timeout=0.01)

        assert exc_info.value.reason == "deadline exceeded"

    @pytest.mark.asyncio
    async def test_widget_scenario(self, controller):
        """Test the create, read, update, read, delete, read sequence."""
        await controller.create_seo(make_seo(title="Widget"))
        assert (await controller.get_seo("product", "42")).title == "Widget"

        await controller.update_seo("product", "42", SEOFields(title="Widget Pro"))
        assert (await controller.get_seo("product", "42")).title == "Widget Pro"

        await controller.delete_seo("product", "42")
        with pytest.raises(NotFoundError):
            await controller.get_seo("product", "42")

    @pytest.mark.asyncio
    async def test_duplicate_create_keeps_first_record(self, controller):
        """Test that a rejected create does not overwrite the stored record."""
        await controller.create_seo(make_seo(title="First"))

        with pytest.raises(AlreadyExistsError):
            await controller.create_seo(make_seo(title="Second"))

        assert (await controller.get_seo("product", "42")).title == "First"

    @pytest.mark.asyncio
    async def test_delete_twice(self, controller):
        """Test that the second delete of an identity reports NotFound."""
        await controller.create_seo(make_seo())

        await controller.delete_seo("product", "42")
        with pytest.raises(NotFoundError):
            await controller.delete_seo("product", "42")
