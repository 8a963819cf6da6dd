"""
Redis caching layer for the SEO service.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from ..controller.interfaces import Cache, CacheError


class RedisCache(Cache):
    """Redis-backed cache for serialized records and collections."""
    
    def __init__(self, redis_url: str, namespace: str = "seo-svc", client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.namespace = namespace
        self.logger = get_logger("seo.cache.redis")
        self.redis: Optional[redis.Redis] = client
        
        # Keys removed per DELETE call during pattern invalidation
        self.delete_batch_size = 500
    
    async def start(self):
        """Start the Redis cache."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )
        
        try:
            await self.redis.ping()
        except RedisError as e:
            # The cache is an accelerator; the service runs without it
            self.logger.warning("Redis cache unreachable at startup", error=str(e))
            return
        
        self.logger.info("Redis cache started")
    
    async def close(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.aclose()
            self.logger.info("Redis cache stopped")
    
    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"
    
    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise CacheError("redis cache not started")
        return self.redis
    
    async def get(self, key: str) -> Optional[str]:
        """Get a cached value."""
        try:
            value = await self._client().get(self._key(key))
        except RedisError as e:
            raise CacheError(f"get {key}: {e}") from e
        
        if value is None:
            return None
        self.logger.debug("Cache hit", key=key)
        return value if isinstance(value, str) else value.decode("utf-8")
    
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Cache a value for ttl seconds."""
        try:
            await self._client().setex(self._key(key), ttl, value)
        except RedisError as e:
            raise CacheError(f"set {key}: {e}") from e
        
        self.logger.debug("Cached value", key=key, ttl=ttl)
    
    async def delete(self, key: str) -> None:
        """Remove a cached value."""
        try:
            await self._client().delete(self._key(key))
        except RedisError as e:
            raise CacheError(f"delete {key}: {e}") from e
    
    async def invalidate_by_pattern(self, pattern: str) -> int:
        """Invalidate all keys matching a glob pattern."""
        client = self._client()
        removed = 0
        batch = []
        try:
            # SCAN keeps the server responsive where KEYS would block it
            async for name in client.scan_iter(match=self._key(pattern), count=self.delete_batch_size):
                batch.append(name)
                if len(batch) >= self.delete_batch_size:
                    removed += await client.delete(*batch)
                    batch = []
            if batch:
                removed += await client.delete(*batch)
        except RedisError as e:
            raise CacheError(f"invalidate {pattern}: {e}") from e
        
        if removed:
            self.logger.info("Invalidated cache keys", pattern=pattern, count=removed)
        return removed
    
    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            return bool(await self._client().ping())
        except (RedisError, CacheError):
            return False
