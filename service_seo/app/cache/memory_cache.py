"""
In-memory cache with per-key TTL and glob invalidation.

Single-process only; used for local runs and as the cache fake in tests.
"""

import fnmatch
import time
from typing import Callable, Dict, Optional, Tuple

from shared.logging import get_logger
from ..controller.interfaces import Cache


class MemoryCache(Cache):
    """Dictionary-backed cache mirroring the Redis semantics the controller relies on."""

    def __init__(self, namespace: str = "seo-svc", clock: Callable[[], float] = time.monotonic):
        self.namespace = namespace
        self.clock = clock
        self.logger = get_logger("seo.cache.memory")

        # key -> (value, expiry)
        self._entries: Dict[str, Tuple[str, float]] = {}

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _live(self, full_key: str) -> Optional[str]:
        entry = self._entries.get(full_key)
        if entry is None:
            return None
        value, expiry = entry
        if self.clock() >= expiry:
            del self._entries[full_key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live(self._key(key))

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._entries[self._key(key)] = (value, self.clock() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(self._key(key), None)

    async def invalidate_by_pattern(self, pattern: str) -> int:
        full_pattern = self._key(pattern)
        matched = [k for k in self._entries if fnmatch.fnmatchcase(k, full_pattern)]
        for k in matched:
            del self._entries[k]
        if matched:
            self.logger.debug("Invalidated cache keys", pattern=pattern, count=len(matched))
        return len(matched)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self._live(self._key(key)) is not None

    def __len__(self) -> int:
        return len(self._entries)
