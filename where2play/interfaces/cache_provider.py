"""Abstract base class for cache service providers.

Defines the key-value contract used for every cache class in Where2Play
(city listings, artist metadata, artist-ID links, not-found markers, genre
aggregates, recommendations).  Each entry carries its own time-to-live, so
one provider instance serves every class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services with per-entry expiration.

    All operations are async so a network-backed store (e.g. Redis) can be
    swapped in without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*, replacing any previous entry atomically.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.  ``None`` cannot be stored (it reads as a miss).
        ttl:
            Time-to-live in seconds for this entry only.  ``None`` uses the
            provider's default TTL.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key* (no-op if absent)."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present in the cache and not expired."""
