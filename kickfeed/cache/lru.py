"""
Least-recently-used cache with a fixed entry capacity.

Entries are replaced whole on ``set`` and never merged, so the cache is
safe to share between tasks on one event loop without locking.
"""

from collections import OrderedDict
from collections.abc import Hashable, Iterable
from typing import Generic, TypeVar

import structlog

from kickfeed.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)

V = TypeVar("V")


def feed_cache_key(league_ids: Iterable[str]) -> str:
    """
    Build a canonical key for a league-filter combination.

    Ids are de-duplicated and sorted so that the same set of leagues maps
    to the same key regardless of selection order.
    """
    return "news_" + "_".join(sorted(set(league_ids)))


def translation_cache_key(source_lang: str, target_lang: str, text: str) -> tuple[str, str, str]:
    """Key a translation by language pair and the exact source text."""
    return (source_lang, target_lang, text)


class LRUCache(Generic[V]):
    """
    Bounded key/value store with least-recently-used eviction.

    Both ``get`` hits and ``set`` mark an entry as most recently used.
    Once the entry count exceeds ``capacity`` the least recently used
    entry is evicted.

    Args:
        capacity: Maximum number of entries.
        name: Cache name used for metrics and logging.
    """

    def __init__(self, capacity: int, name: str = "cache") -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._name = name
        self._entries: OrderedDict[Hashable, V] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable) -> V | None:
        """Return the cached value or None, refreshing recency on a hit."""
        try:
            value = self._entries[key]
        except KeyError:
            self.misses += 1
            get_metrics().record_cache(self._name, hit=False)
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        get_metrics().record_cache(self._name, hit=True)
        logger.debug("Cache hit", cache=self._name)
        return value

    def set(self, key: Hashable, value: V) -> None:
        """Store a value, evicting the least recently used entry if full."""
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()
