"""Bounded in-memory caches for feed pages and translations."""

from kickfeed.cache.lru import LRUCache, feed_cache_key, translation_cache_key

__all__ = ["LRUCache", "feed_cache_key", "translation_cache_key"]
