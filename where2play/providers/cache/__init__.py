"""Cache provider implementations."""

from where2play.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
