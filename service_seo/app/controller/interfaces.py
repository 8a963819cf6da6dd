"""
Collaborator interfaces the controller depends on.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import SEO, SEOFields, Page, PageFields


class CacheError(Exception):
    """Raised by cache implementations when the backend call fails."""


class Cache(ABC):
    """Key-value cache with TTL expiry and glob-pattern invalidation.

    Implementations raise ``CacheError`` on backend failures; a miss is
    ``None``, never an exception.
    """

    async def start(self) -> None:
        """Open connections."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the serialized value stored at key, or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Store value at key for ttl seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; removing a missing key is not an error."""

    @abstractmethod
    async def invalidate_by_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern; returns the count removed."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Whether the backend is reachable."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""


class Store(ABC):
    """Authoritative repository for SEO records and pages.

    Missing records raise ``RecordNotFoundError``, identity clashes raise
    ``DuplicateRecordError`` (both from ``persistence.errors``); any other
    exception is a store failure.
    """

    async def start(self) -> None:
        """Open connections."""

    async def stop(self) -> None:
        """Release connections."""

    @abstractmethod
    async def get_seo(self, name: str, pk: str) -> SEO:
        ...

    @abstractmethod
    async def list_seo(self, name: str) -> List[SEO]:
        ...

    @abstractmethod
    async def create_seo(self, seo: SEO) -> SEO:
        ...

    @abstractmethod
    async def update_seo(self, name: str, pk: str, fields: SEOFields) -> SEO:
        ...

    @abstractmethod
    async def delete_seo(self, name: str, pk: str) -> None:
        ...

    @abstractmethod
    async def list_pages(self) -> List[Page]:
        ...

    @abstractmethod
    async def get_page(self, slug: str) -> Page:
        ...

    @abstractmethod
    async def create_page(self, page: Page) -> Page:
        ...

    @abstractmethod
    async def update_page(self, slug: str, fields: PageFields) -> Page:
        ...

    @abstractmethod
    async def delete_page(self, slug: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...
