"""Result cache for cacheable methods."""

from mcpforge.services.cache.result_cache import CacheEntry, ResultCache, cache_key

__all__ = ["CacheEntry", "ResultCache", "cache_key"]
