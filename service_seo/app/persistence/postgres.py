"""
PostgreSQL persistence layer for the SEO service.
"""

from typing import List, Optional

import asyncpg

from shared.logging import get_logger
from ..controller.interfaces import Store
from ..models import SEO, SEOFields, Page, PageFields
from .errors import DuplicateRecordError, RecordNotFoundError, StoreError

_SEO_COLUMNS = "name, pk, title, description, keywords, og_title, og_description, og_image, created_at, updated_at"
_PAGE_COLUMNS = "slug, title, href, content, created_at, updated_at"


class PostgreSQLStore(Store):
    """PostgreSQL store for SEO records and pages."""

    def __init__(self, dsn: str, pool: Optional[asyncpg.Pool] = None):
        self.dsn = dsn
        self.logger = get_logger("seo.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = pool

    async def start(self):
        """Start the persistence layer."""
        if self.pool is None:
            try:
                self.pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=2,
                    max_size=10,
                    command_timeout=30
                )
            except (OSError, asyncpg.PostgresError) as e:
                self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
                raise StoreError(f"postgres start failed: {e}") from e

        # Create tables if they don't exist
        await self._create_tables()

        self.logger.info("PostgreSQL persistence started")

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS seo (
                    name VARCHAR(255) NOT NULL,
                    pk VARCHAR(255) NOT NULL,
                    title VARCHAR(255) NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    keywords TEXT NOT NULL DEFAULT '',
                    og_title VARCHAR(255),
                    og_description TEXT,
                    og_image TEXT,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (name, pk)
                );
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS pages (
                    slug VARCHAR(255) PRIMARY KEY,
                    title VARCHAR(255) NOT NULL,
                    href TEXT NOT NULL DEFAULT '',
                    content TEXT NOT NULL DEFAULT '',
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

    # SEO

    async def get_seo(self, name: str, pk: str) -> SEO:
        """Load one SEO record."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_SEO_COLUMNS} FROM seo WHERE name = $1 AND pk = $2", name, pk
            )
        if row is None:
            raise RecordNotFoundError(f"seo {name}/{pk}")
        return SEO(**dict(row))

    async def list_seo(self, name: str) -> List[SEO]:
        """Load all SEO records of an entity type."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_SEO_COLUMNS} FROM seo WHERE name = $1 ORDER BY pk ASC", name
            )
        return [SEO(**dict(row)) for row in rows]

    async def create_seo(self, seo: SEO) -> SEO:
        """Insert a new SEO record."""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f"""
                    INSERT INTO seo (name, pk, title, description, keywords, og_title, og_description, og_image)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING {_SEO_COLUMNS}
                """,
                    seo.name, seo.pk, seo.title, seo.description, seo.keywords,
                    seo.og_title, seo.og_description, seo.og_image
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(f"seo {seo.name}/{seo.pk}") from e

        self.logger.info("SEO saved", name=seo.name, pk=seo.pk)
        return SEO(**dict(row))

    async def update_seo(self, name: str, pk: str, fields: SEOFields) -> SEO:
        """Replace the metadata fields of a SEO record."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                UPDATE seo SET
                    title = $3,
                    description = $4,
                    keywords = $5,
                    og_title = $6,
                    og_description = $7,
                    og_image = $8,
                    updated_at = NOW()
                WHERE name = $1 AND pk = $2
                RETURNING {_SEO_COLUMNS}
            """,
                name, pk, fields.title, fields.description, fields.keywords,
                fields.og_title, fields.og_description, fields.og_image
            )
        if row is None:
            raise RecordNotFoundError(f"seo {name}/{pk}")
        return SEO(**dict(row))

    async def delete_seo(self, name: str, pk: str) -> None:
        """Delete a SEO record."""
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM seo WHERE name = $1 AND pk = $2", name, pk)
        if result != "DELETE 1":
            raise RecordNotFoundError(f"seo {name}/{pk}")
        self.logger.info("SEO deleted", name=name, pk=pk)

    # Pages

    async def list_pages(self) -> List[Page]:
        """Load all pages."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT {_PAGE_COLUMNS} FROM pages ORDER BY slug ASC")
        return [Page(**dict(row)) for row in rows]

    async def get_page(self, slug: str) -> Page:
        """Load one page."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {_PAGE_COLUMNS} FROM pages WHERE slug = $1", slug)
        if row is None:
            raise RecordNotFoundError(f"page {slug}")
        return Page(**dict(row))

    async def create_page(self, page: Page) -> Page:
        """Insert a new page."""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f"""
                    INSERT INTO pages (slug, title, href, content)
                    VALUES ($1, $2, $3, $4)
                    RETURNING {_PAGE_COLUMNS}
                """, page.slug, page.title, page.href, page.content)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateRecordError(f"page {page.slug}") from e

        self.logger.info("Page saved", slug=page.slug)
        return Page(**dict(row))

    async def update_page(self, slug: str, fields: PageFields) -> Page:
        """Replace the content fields of a page."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                UPDATE pages SET title = $2, href = $3, content = $4, updated_at = NOW()
                WHERE slug = $1
                RETURNING {_PAGE_COLUMNS}
            """, slug, fields.title, fields.href, fields.content)
        if row is None:
            raise RecordNotFoundError(f"page {slug}")
        return Page(**dict(row))

    async def delete_page(self, slug: str) -> None:
        """Delete a page."""
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM pages WHERE slug = $1", slug)
        if result != "DELETE 1":
            raise RecordNotFoundError(f"page {slug}")
        self.logger.info("Page deleted", slug=slug)

    async def health_check(self) -> bool:
        """Check database health."""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except (OSError, asyncpg.PostgresError):
            return False
