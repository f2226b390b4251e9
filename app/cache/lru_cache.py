"""
Bounded in-memory recency cache.

Fast path in front of the cache database for both cache tiers.

Sandi Metz Principles:
- Single Responsibility: Bounded LRU storage
- Small class: Focused caching logic
- Generic: Entry type is opaque
"""

import threading
from collections import OrderedDict
from typing import Callable, Generic, List, Optional, TypeVar

from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RecencyCache(Generic[T]):
    """
    Fixed-capacity cache with least-recently-used eviction.

    Entries are kept in recency order, least recently used first. Reads do
    not change that order; callers promote entries on confirmed hits.
    Every operation runs under one lock per instance.
    """

    def __init__(self, capacity: int, name: str = "memory"):
        """
        Initialize recency cache.

        Args:
            capacity: Maximum number of entries (fixed)
            name: Cache name for logs

        Raises:
            ValueError: If capacity is below 1
        """
        if capacity < 1:
            raise ValueError("Capacity must be at least 1")

        self._capacity = capacity
        self._name = name
        self._entries: "OrderedDict[str, T]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        """
        Get entry without changing recency.

        Args:
            key: Cache key

        Returns:
            Entry or None
        """
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: T) -> None:
        """
        Insert or replace entry as most recently used.

        Evicts the least recently used entry when over capacity.

        Args:
            key: Cache key
            entry: Entry to store
        """
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)

            if len(self._entries) > self._capacity:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug(
                    "Evicted LRU entry",
                    cache=self._name,
                    key=evicted_key,
                    size=len(self._entries),
                )

    def promote(self, key: str) -> bool:
        """
        Mark entry as most recently used.

        Args:
            key: Cache key

        Returns:
            True if entry was present
        """
        with self._lock:
            if key not in self._entries:
                return False
            self._entries.move_to_end(key)
            return True

    def remove(self, key: str) -> bool:
        """
        Remove entry.

        Args:
            key: Cache key

        Returns:
            True if entry was present
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def discard_if(self, predicate: Callable[[T], bool]) -> int:
        """
        Remove every entry matching predicate.

        Args:
            predicate: Returns True for entries to remove

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if predicate(entry)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()
        logger.debug("Cleared memory cache", cache=self._name)

    def keys(self) -> List[str]:
        """
        Get keys in recency order.

        Returns:
            Keys, most recently used first
        """
        with self._lock:
            return list(reversed(self._entries.keys()))

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def size(self) -> int:
        """Get current cache size."""
        return len(self)

    @property
    def capacity(self) -> int:
        """Get maximum cache size."""
        return self._capacity
