"""
Colorit In-Process Caches
Bounded LRU caches owned by the components that use them: parsed hex colors
and nearest-match memos. No process-wide state; callers inject and invalidate.
"""
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, Hashable, Optional

from loguru import logger

from colorit.services.colors import Color, normalize_hex, try_parse_hex


class CacheBackend(ABC):
    """Abstract base class for cache backends."""

    @abstractmethod
    def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache."""
        pass

    @abstractmethod
    def set(self, key: Hashable, value: Any) -> bool:
        """Set value in cache."""
        pass

    @abstractmethod
    def delete(self, key: Hashable) -> bool:
        """Delete key from cache."""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Clear all cache entries."""
        pass


class InMemoryLRUCache(CacheBackend):
    """Thread-safe in-memory LRU cache."""

    def __init__(self, max_size: int = 1000):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._cache: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get value and mark it most recently used."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self.hits += 1
                return self._cache[key]
            self.misses += 1
            return None

    def set(self, key: Hashable, value: Any) -> bool:
        """Set value, evicting the least recently used entry at capacity."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self.max_size:
                self._cache.popitem(last=False)
            self._cache[key] = value
            return True

    def delete(self, key: Hashable) -> bool:
        """Delete key from cache."""
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> bool:
        """Clear all entries."""
        with self._lock:
            self._cache.clear()
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._cache

    def get_stats(self) -> Dict[str, Any]:
        """Get hit/miss statistics."""
        total = self.hits + self.misses
        return {
            "size": len(self),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / total if total > 0 else 0.0
        }


class ParsedColorCache:
    """Normalized hex -> Color cache, so static pools are parsed once."""

    def __init__(self, max_size: int = 50000, backend: Optional[CacheBackend] = None):
        self.backend = backend or InMemoryLRUCache(max_size)

    def color_for(self, hex_str: str) -> Optional[Color]:
        """
        Parse a hex string through the cache.

        Returns None for malformed hex; failures are not cached so a later
        corrected entry with the same text is still parsed.
        """
        key = normalize_hex(hex_str)
        cached = self.backend.get(key)
        if cached is not None:
            return cached

        # parse the raw text so "##RRGGBB" stays invalid
        color = try_parse_hex(hex_str)
        if color is None:
            logger.debug(f"Unparseable hex {hex_str!r} skipped by color cache")
            return None

        self.backend.set(key, color)
        return color

    def invalidate(self) -> bool:
        """Drop every cached color."""
        return self.backend.clear()

    def get_stats(self) -> Dict[str, Any]:
        if isinstance(self.backend, InMemoryLRUCache):
            return self.backend.get_stats()
        return {}
