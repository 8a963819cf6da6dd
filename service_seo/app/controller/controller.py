"""
Cache-aside controller for SEO records and pages.

Reads consult the cache first and fall back to the store, populating the
cache on a store hit. Writes go to the store first and then invalidate the
affected item key plus every collection key of the resource type. Absence
is never cached. Cache failures are logged and absorbed; store failures
are classified into NotFound / AlreadyExists / Internal.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from shared.errors import AlreadyExistsError, InternalError, NotFoundError, ServiceException
from shared.logging import get_logger, operation_context
from shared.metrics import MetricsCollector, get_metrics_collector

from ..models import SEO, SEOFields, SEOList, Page, PageFields, PageList
from ..persistence.errors import DuplicateRecordError, RecordNotFoundError
from . import keys
from .interfaces import Cache, Store
from .results import CacheOutcome

T = TypeVar("T")


class Controller:
    """Transport-agnostic orchestration of store and cache."""

    def __init__(
        self,
        store: Store,
        cache: Cache,
        ttl_seconds: int = 3600,
        timeout_seconds: Optional[float] = 5.0,
        logger=None,
        metrics: Optional[MetricsCollector] = None,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.store = store
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.logger = logger or get_logger("seo.controller")
        self.metrics = metrics or get_metrics_collector("seo")

    # SEO

    async def get_seo(self, name: str, pk: str, timeout: Optional[float] = None) -> SEO:
        """Fetch the SEO record of entity (name, pk)."""
        return await self._run("seo.GetSEO", self._get_seo(name, pk), timeout)

    async def list_seo(self, name: str, timeout: Optional[float] = None) -> List[SEO]:
        """List SEO records of one entity type, ordered by pk."""
        return await self._run("seo.ListSEO", self._list_seo(name), timeout)

    async def create_seo(self, seo: SEO, timeout: Optional[float] = None) -> SEO:
        """Create SEO metadata for (seo.name, seo.pk)."""
        return await self._run("seo.CreateSEO", self._create_seo(seo), timeout)

    async def update_seo(self, name: str, pk: str, fields: SEOFields, timeout: Optional[float] = None) -> SEO:
        """Replace the metadata fields of an existing SEO record."""
        return await self._run("seo.UpdateSEO", self._update_seo(name, pk, fields), timeout)

    async def delete_seo(self, name: str, pk: str, timeout: Optional[float] = None) -> None:
        """Delete an existing SEO record."""
        await self._run("seo.DeleteSEO", self._delete_seo(name, pk), timeout)

    # Pages

    async def list_pages(self, timeout: Optional[float] = None) -> List[Page]:
        """List all pages, ordered by slug."""
        return await self._run("pages.ListPages", self._list_pages(), timeout)

    async def get_page(self, slug: str, timeout: Optional[float] = None) -> Page:
        """Fetch a page by slug."""
        return await self._run("pages.GetPage", self._get_page(slug), timeout)

    async def create_page(self, page: Page, timeout: Optional[float] = None) -> Page:
        """Create a page under page.slug."""
        return await self._run("pages.CreatePage", self._create_page(page), timeout)

    async def update_page(self, slug: str, fields: PageFields, timeout: Optional[float] = None) -> Page:
        """Replace the content fields of an existing page."""
        return await self._run("pages.UpdatePage", self._update_page(slug, fields), timeout)

    async def delete_page(self, slug: str, timeout: Optional[float] = None) -> None:
        """Delete an existing page."""
        await self._run("pages.DeletePage", self._delete_page(slug), timeout)

    # SEO flows

    async def _get_seo(self, name: str, pk: str) -> SEO:
        op = "seo.GetSEO"
        key = keys.seo_key(name, pk)
        cached = await self._read_cached(key, keys.SEO_RESOURCE, SEO.model_validate_json)
        if cached is not None:
            return cached

        record = await self._store_call(
            op,
            self.store.get_seo(name, pk),
            missing=lambda: NotFoundError("seo not found", {"name": name, "pk": pk}),
        )
        await self._populate(key, record.model_dump_json())
        return record

    async def _list_seo(self, name: str) -> List[SEO]:
        op = "seo.ListSEO"
        key = keys.seo_list_key(name)
        cached = await self._read_cached(key, keys.SEO_RESOURCE, lambda raw: SEOList.model_validate_json(raw).items)
        if cached is not None:
            return cached

        records = await self._store_call(op, self.store.list_seo(name))
        await self._populate(key, SEOList(items=records).model_dump_json())
        return records

    async def _create_seo(self, seo: SEO) -> SEO:
        op = "seo.CreateSEO"
        record = await self._store_call(
            op,
            self.store.create_seo(seo),
            duplicate=lambda: AlreadyExistsError("seo already exists", {"name": seo.name, "pk": seo.pk}),
        )
        await self._invalidate(op, keys.seo_key(seo.name, seo.pk), keys.seo_list_pattern())
        self.logger.info("SEO created", name=seo.name, pk=seo.pk)
        return record

    async def _update_seo(self, name: str, pk: str, fields: SEOFields) -> SEO:
        op = "seo.UpdateSEO"
        record = await self._store_call(
            op,
            self.store.update_seo(name, pk, fields),
            missing=lambda: NotFoundError("seo not found", {"name": name, "pk": pk}),
        )
        await self._invalidate(op, keys.seo_key(name, pk), keys.seo_list_pattern())
        self.logger.info("SEO updated", name=name, pk=pk)
        return record

    async def _delete_seo(self, name: str, pk: str) -> None:
        op = "seo.DeleteSEO"
        await self._store_call(
            op,
            self.store.delete_seo(name, pk),
            missing=lambda: NotFoundError("seo not found", {"name": name, "pk": pk}),
        )
        await self._invalidate(op, keys.seo_key(name, pk), keys.seo_list_pattern())
        self.logger.info("SEO deleted", name=name, pk=pk)

    # Page flows

    async def _list_pages(self) -> List[Page]:
        op = "pages.ListPages"
        key = keys.page_list_key()
        cached = await self._read_cached(key, keys.PAGE_RESOURCE, lambda raw: PageList.model_validate_json(raw).items)
        if cached is not None:
            return cached

        records = await self._store_call(op, self.store.list_pages())
        await self._populate(key, PageList(items=records).model_dump_json())
        return records

    async def _get_page(self, slug: str) -> Page:
        op = "pages.GetPage"
        key = keys.page_key(slug)
        cached = await self._read_cached(key, keys.PAGE_RESOURCE, Page.model_validate_json)
        if cached is not None:
            return cached

        record = await self._store_call(
            op,
            self.store.get_page(slug),
            missing=lambda: NotFoundError("page not found", {"slug": slug}),
        )
        await self._populate(key, record.model_dump_json())
        return record

    async def _create_page(self, page: Page) -> Page:
        op = "pages.CreatePage"
        record = await self._store_call(
            op,
            self.store.create_page(page),
            duplicate=lambda: AlreadyExistsError("page already exists", {"slug": page.slug}),
        )
        await self._invalidate(op, keys.page_key(page.slug), keys.page_list_pattern())
        self.logger.info("Page created", slug=page.slug)
        return record

    async def _update_page(self, slug: str, fields: PageFields) -> Page:
        op = "pages.UpdatePage"
        record = await self._store_call(
            op,
            self.store.update_page(slug, fields),
            missing=lambda: NotFoundError("page not found", {"slug": slug}),
        )
        await self._invalidate(op, keys.page_key(slug), keys.page_list_pattern())
        self.logger.info("Page updated", slug=slug)
        return record

    async def _delete_page(self, slug: str) -> None:
        op = "pages.DeletePage"
        await self._store_call(
            op,
            self.store.delete_page(slug),
            missing=lambda: NotFoundError("page not found", {"slug": slug}),
        )
        await self._invalidate(op, keys.page_key(slug), keys.page_list_pattern())
        self.logger.info("Page deleted", slug=slug)

    # Plumbing

    async def _run(self, op: str, flow: Awaitable[T], timeout: Optional[float]) -> T:
        """Run a flow under the caller's deadline and account its outcome."""
        timeout = self.timeout_seconds if timeout is None else timeout
        with self.metrics.time_operation(op), operation_context(op):
            try:
                if timeout is None:
                    return await flow
                return await asyncio.wait_for(flow, timeout)
            except asyncio.TimeoutError:
                self.logger.error("Operation deadline exceeded", operation=op, timeout=timeout)
                self.metrics.record_domain_error(op, InternalError.code)
                raise InternalError("deadline exceeded", operation=op)
            except ServiceException as e:
                self.metrics.record_domain_error(op, e.code)
                raise

    async def _store_call(
        self,
        op: str,
        call: Awaitable[T],
        missing: Optional[Callable[[], ServiceException]] = None,
        duplicate: Optional[Callable[[], ServiceException]] = None,
    ) -> T:
        """Await an authoritative store call, classifying its failures."""
        try:
            return await call
        except RecordNotFoundError as e:
            if missing is None:
                raise self._internal(op, e)
            raise missing() from e
        except DuplicateRecordError as e:
            if duplicate is None:
                raise self._internal(op, e)
            raise duplicate() from e
        except Exception as e:
            raise self._internal(op, e)

    def _internal(self, op: str, error: Exception) -> InternalError:
        self.logger.error(
            "Store operation failed",
            operation=op,
            error=str(error),
            error_type=type(error).__name__,
        )
        return InternalError(str(error), operation=op)

    async def _read_cached(self, key: str, resource: str, parse: Callable[[str], Any]) -> Any:
        """Return the decoded cache entry at key, or None to fall through to the store."""
        outcome = await self._cache_get(key, resource)
        if not outcome.hit:
            return None
        try:
            return parse(outcome.value)
        except ValueError as e:
            self.logger.warning("Discarding undecodable cache entry", key=key, error=str(e))
            dropped = await self._cache_delete(key)
            if not dropped.ok:
                self.logger.warning("Cache delete failed", key=key, error=str(dropped.error))
            return None

    async def _populate(self, key: str, value: str) -> CacheOutcome:
        """Write a store result back to the cache.

        A reader that missed before a concurrent write may land its older
        value after that write's invalidation; the entry then stays stale
        until its TTL expires.
        """
        outcome = await self._cache_set(key, value)
        if not outcome.ok:
            self.logger.warning("Cache population failed", key=key, error=str(outcome.error))
        return outcome

    async def _invalidate(self, op: str, key: str, list_pattern: str) -> List[CacheOutcome]:
        """Drop the item key and all collection keys of its resource type."""
        outcomes = [await self._cache_delete(key), await self._cache_invalidate(list_pattern)]
        for outcome in outcomes:
            if not outcome.ok:
                # The store already holds the write; TTL bounds the stale window
                self.logger.warning(
                    "Cache invalidation failed",
                    operation=op,
                    key=key,
                    pattern=list_pattern,
                    error=str(outcome.error),
                )
        return outcomes

    async def _cache_get(self, key: str, resource: str) -> CacheOutcome:
        try:
            value = await self.cache.get(key)
        except Exception as e:
            self.logger.warning("Cache read failed", key=key, error=str(e))
            self.metrics.record_cache_error("get")
            return CacheOutcome.failure(e)
        self.metrics.record_cache_lookup(resource, hit=value is not None)
        return CacheOutcome.success(value)

    async def _cache_set(self, key: str, value: str) -> CacheOutcome:
        try:
            await self.cache.set(key, value, self.ttl_seconds)
        except Exception as e:
            self.metrics.record_cache_error("set")
            return CacheOutcome.failure(e)
        return CacheOutcome.success()

    async def _cache_delete(self, key: str) -> CacheOutcome:
        try:
            await self.cache.delete(key)
        except Exception as e:
            self.metrics.record_cache_error("delete")
            return CacheOutcome.failure(e)
        return CacheOutcome.success()

    async def _cache_invalidate(self, pattern: str) -> CacheOutcome:
        try:
            await self.cache.invalidate_by_pattern(pattern)
        except Exception as e:
            self.metrics.record_cache_error("invalidate")
            return CacheOutcome.failure(e)
        return CacheOutcome.success()
