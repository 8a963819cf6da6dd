"""
Cache package for the SEO service.

Provides a Redis-backed cache for deployments and an in-memory cache for
local runs and tests. Both namespace their keys and support glob-pattern
invalidation; neither is ever a source of truth.
"""

from .memory_cache import MemoryCache
from .redis_cache import RedisCache

__all__ = ["MemoryCache", "RedisCache"]
