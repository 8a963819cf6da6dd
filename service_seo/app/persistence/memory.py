"""
In-memory store for local runs and tests.
"""

from datetime import datetime, timezone
from typing import Dict, List, Tuple

from shared.logging import get_logger
from ..controller.interfaces import Store
from ..models import SEO, SEOFields, Page, PageFields
from .errors import DuplicateRecordError, RecordNotFoundError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore(Store):
    """Dictionary-backed store with the same error contract as PostgreSQLStore."""

    def __init__(self):
        self.logger = get_logger("seo.persistence.memory")
        self._seo: Dict[Tuple[str, str], SEO] = {}
        self._pages: Dict[str, Page] = {}

    async def get_seo(self, name: str, pk: str) -> SEO:
        try:
            return self._seo[(name, pk)].model_copy()
        except KeyError:
            raise RecordNotFoundError(f"seo {name}/{pk}") from None

    async def list_seo(self, name: str) -> List[SEO]:
        return [
            record.model_copy()
            for (type_name, _), record in sorted(self._seo.items())
            if type_name == name
        ]

    async def create_seo(self, seo: SEO) -> SEO:
        identity = (seo.name, seo.pk)
        if identity in self._seo:
            raise DuplicateRecordError(f"seo {seo.name}/{seo.pk}")
        now = _now()
        record = seo.model_copy(update={"created_at": now, "updated_at": now})
        self._seo[identity] = record
        return record.model_copy()

    async def update_seo(self, name: str, pk: str, fields: SEOFields) -> SEO:
        existing = self._seo.get((name, pk))
        if existing is None:
            raise RecordNotFoundError(f"seo {name}/{pk}")
        record = existing.model_copy(update={**fields.model_dump(), "updated_at": _now()})
        self._seo[(name, pk)] = record
        return record.model_copy()

    async def delete_seo(self, name: str, pk: str) -> None:
        if self._seo.pop((name, pk), None) is None:
            raise RecordNotFoundError(f"seo {name}/{pk}")

    async def list_pages(self) -> List[Page]:
        return [self._pages[slug].model_copy() for slug in sorted(self._pages)]

    async def get_page(self, slug: str) -> Page:
        try:
            return self._pages[slug].model_copy()
        except KeyError:
            raise RecordNotFoundError(f"page {slug}") from None

    async def create_page(self, page: Page) -> Page:
        if page.slug in self._pages:
            raise DuplicateRecordError(f"page {page.slug}")
        now = _now()
        record = page.model_copy(update={"created_at": now, "updated_at": now})
        self._pages[page.slug] = record
        return record.model_copy()

    async def update_page(self, slug: str, fields: PageFields) -> Page:
        existing = self._pages.get(slug)
        if existing is None:
            raise RecordNotFoundError(f"page {slug}")
        record = existing.model_copy(update={**fields.model_dump(), "updated_at": _now()})
        self._pages[slug] = record
        return record.model_copy()

    async def delete_page(self, slug: str) -> None:
        if self._pages.pop(slug, None) is None:
            raise RecordNotFoundError(f"page {slug}")

    async def health_check(self) -> bool:
        return True
