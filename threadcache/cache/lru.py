"""
Fixed-capacity least-recently-used map.

Eviction is purely by recency; the map knows nothing about the expiry state
of the values it holds.
"""
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

logger = logging.getLogger("cache.lru")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CAPACITY = 100


class BoundedKeyedCache(Generic[K, V]):
    """
    LRU map from key to value with a hard size limit.

    - ``get`` and ``set`` both count as an access
    - ``peek`` and ``in`` do not touch recency
    - inserting past capacity evicts exactly the least recently used key
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        on_evict: Optional[Callable[[K, V], Any]] = None,
    ):
        """
        Args:
            capacity: Maximum number of keys held at once
            on_evict: Called with (key, value) after a key is evicted
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"Capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self._on_evict = on_evict
        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
        }

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: K) -> Optional[V]:
        """Look up ``key`` and mark it most recently used."""
        if key not in self._entries:
            self._stats["misses"] += 1
            return None
        self._entries.move_to_end(key)
        self._stats["hits"] += 1
        return self._entries[key]

    def peek(self, key: K) -> Optional[V]:
        """Look up ``key`` without changing recency or stats."""
        return self._entries.get(key)

    def set(self, key: K, value: V) -> None:
        """Insert or replace ``key`` and mark it most recently used."""
        self._entries[key] = value
        self._entries.move_to_end(key)
        if len(self._entries) > self._capacity:
            evicted_key, evicted = self._entries.popitem(last=False)
            self._stats["evictions"] += 1
            logger.info(f"LRU EVICT: {evicted_key} (capacity={self._capacity})")
            if self._on_evict is not None:
                self._on_evict(evicted_key, evicted)

    def delete(self, key: K) -> bool:
        """
        Remove ``key``.

        Returns:
            True if the key was present
        """
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed
        """
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> List[K]:
        """Keys ordered from least to most recently used."""
        return list(self._entries.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "entries": len(self._entries),
            "capacity": self._capacity,
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "evictions": self._stats["evictions"],
        }
