"""
Record and request models for the SEO service.
"""

import re
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
IDENTITY_SEPARATOR = "/"


def slugify(text: str) -> str:
    """Derive a slug from free text: lowercase ASCII words joined by hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def check_identity(value: str) -> str:
    """Identity components appear as single URL path segments."""
    value = _strip_required(value)
    if IDENTITY_SEPARATOR in value:
        raise ValueError(f"must not contain '{IDENTITY_SEPARATOR}'")
    return value


class SEOFields(BaseModel):
    """Mutable on-page metadata of an SEO record."""
    title: str = Field(..., max_length=255, description="Page title tag")
    description: str = Field("", max_length=1024, description="Meta description")
    keywords: str = Field("", max_length=1024, description="Comma separated meta keywords")
    og_title: Optional[str] = Field(None, max_length=255, description="Open Graph title")
    og_description: Optional[str] = Field(None, max_length=1024, description="Open Graph description")
    og_image: Optional[str] = Field(None, max_length=2048, description="Open Graph image URL")

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        return _strip_required(value)


class SEOCreateRequest(SEOFields):
    """Request model for creating SEO metadata of an entity."""
    name: str = Field(..., max_length=255, description="Entity type name, e.g. 'product'")
    pk: str = Field(..., max_length=255, description="Entity primary key")

    @field_validator("name", "pk")
    @classmethod
    def _identity_required(cls, value: str) -> str:
        return check_identity(value)


class SEO(SEOCreateRequest):
    """SEO record as stored and served."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PageFields(BaseModel):
    """Mutable content of a page."""
    title: str = Field(..., max_length=255, description="Page title")
    href: str = Field("", max_length=2048, description="Canonical link of the page")
    content: str = Field("", description="Page body")

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        return _strip_required(value)


class PageCreateRequest(PageFields):
    """Request model for creating a page; the slug may be derived from the title."""
    slug: Optional[str] = Field(None, max_length=255, description="Unique page slug")

    def resolved_slug(self) -> str:
        """Caller-supplied slug, or one derived from the title."""
        if self.slug and self.slug.strip():
            return self.slug.strip()
        return slugify(self.title)


class Page(PageFields):
    """Page record as stored and served."""
    slug: str = Field(..., max_length=255)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("slug")
    @classmethod
    def _slug_format(cls, value: str) -> str:
        if not SLUG_PATTERN.match(value):
            raise ValueError("slug must be lowercase words separated by single hyphens")
        return value


class SEOList(BaseModel):
    """Collection of SEO records for one entity type."""
    items: List[SEO] = Field(default_factory=list)


class PageList(BaseModel):
    """Collection of pages."""
    items: List[Page] = Field(default_factory=list)
