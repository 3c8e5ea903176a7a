"""In-memory cache provider using cachetools.TLRUCache.

Every entry carries its own time-to-live, so the short-lived city listings
and the long-lived artist links share one bounded store.  Can be swapped
for Redis or another backend via the ICacheProvider interface.
"""

from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

from cachetools import TLRUCache

from where2play.interfaces.cache_provider import ICacheProvider
from where2play.utils.logging import get_logger

logger = get_logger(__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-memory per-entry TTL cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    default_ttl:
        Time-to-live in seconds for entries stored without an explicit TTL.
    timer:
        Clock used for expiry; tests inject a fake to step time forward.
    """

    def __init__(
        self,
        max_size: int = 10_000,
        default_ttl: float = 3600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key* for *ttl* seconds (default TTL if omitted)."""
        if value is None:
            return
        effective_ttl = self._default_ttl if ttl is None else ttl
        if effective_ttl <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = _Entry(value, float(effective_ttl))
        logger.debug("cache_set", key=key, ttl=effective_ttl)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
        return key in self._cache

    def clear(self) -> None:
        """Drop every entry."""
        self._cache.clear()

