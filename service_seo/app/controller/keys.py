"""
Cache key derivation.

Keys are built from a resource tag, a kind ("item" or "list") and the
identity fields. Every identity component is percent-encoded down to RFC
3986 unreserved characters, so neither the ':' separator nor glob
metacharacters can occur inside a component. This makes the mapping from
logical request to key injective and keeps invalidation patterns exact.
"""

from urllib.parse import quote

SEO_RESOURCE = "seo"
PAGE_RESOURCE = "page"

_SEPARATOR = ":"


def _component(value: str) -> str:
    return quote(value, safe="")


def _key(*parts: str) -> str:
    return _SEPARATOR.join(parts)


def seo_key(name: str, pk: str) -> str:
    """Key of a single SEO record."""
    return _key(SEO_RESOURCE, "item", _component(name), _component(pk))


def seo_list_key(name: str) -> str:
    """Key of the SEO collection for one entity type."""
    return _key(SEO_RESOURCE, "list", _component(name))


def seo_list_pattern() -> str:
    """Pattern matching every SEO collection key."""
    return _key(SEO_RESOURCE, "list", "*")


def page_key(slug: str) -> str:
    """Key of a single page."""
    return _key(PAGE_RESOURCE, "item", _component(slug))


def page_list_key() -> str:
    """Key of the page collection."""
    return _key(PAGE_RESOURCE, "list")


def page_list_pattern() -> str:
    """Pattern matching every page collection key."""
    return _key(PAGE_RESOURCE, "list") + "*"
