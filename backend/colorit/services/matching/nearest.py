"""
Nearest-Match Index

Finds the catalog entry closest to a target color by Euclidean RGB distance.
Called several times per second by live sampling, so the pool's parsed colors
are kept as a numpy array and rebuilt only when the pool changes.
"""

import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from colorit.config import config
from colorit.services.cache import InMemoryLRUCache, ParsedColorCache
from colorit.services.catalog.models import NamedColor
from colorit.services.colors import Color, precision
from colorit.utils.metrics import MetricsCollector, get_metrics_instance


@dataclass(frozen=True)
class ColorMatch:
    """Closest entry for a target color."""
    target: Color
    entry: NamedColor
    distance: float

    @property
    def precision(self) -> float:
        return precision(self.distance)


@dataclass(frozen=True)
class _PoolArrays:
    pool: Tuple[NamedColor, ...]
    rgb: np.ndarray       # (M, 3) int64, parseable members only
    positions: np.ndarray  # (M,) index of each row in pool
    generation: int        # memo key; never reused within one index


class NearestMatchIndex:
    """
    Linear nearest-neighbor search over a candidate pool.

    Results equal a plain first-wins linear scan: squared distances are exact
    integers and argmin returns the first minimum.
    """

    def __init__(self,
                 color_cache: Optional[ParsedColorCache] = None,
                 memo_size: Optional[int] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.color_cache = color_cache or ParsedColorCache(config.COLOR_CACHE_SIZE)
        self.metrics = metrics or get_metrics_instance()
        self._memo = InMemoryLRUCache(memo_size or config.MATCH_MEMO_SIZE)
        self._lock = threading.Lock()
        self._arrays: Optional[_PoolArrays] = None
        self._generation = 0

    def invalidate(self) -> None:
        """Forget the cached pool arrays, parsed colors and memoized matches."""
        with self._lock:
            self._arrays = None
        self._memo.clear()
        self.color_cache.invalidate()

    def _arrays_for(self, pool: Sequence[NamedColor]) -> _PoolArrays:
        pool_tuple = pool if isinstance(pool, tuple) else tuple(pool)
        with self._lock:
            arrays = self._arrays
            if arrays is not None and (arrays.pool is pool_tuple or arrays.pool == pool_tuple):
                return arrays

        rows: List[Tuple[int, int, int]] = []
        positions: List[int] = []
        skipped = 0
        for position, entry in enumerate(pool_tuple):
            color = self.color_cache.color_for(entry.hex)
            if color is None:
                color = entry.raw_color()
            if color is None:
                skipped += 1
                continue
            rows.append(color.as_tuple())
            positions.append(position)

        if skipped:
            logger.warning(f"{skipped} pool entries have no usable color and were skipped")

        with self._lock:
            self._generation += 1
            generation = self._generation
        arrays = _PoolArrays(
            pool=pool_tuple,
            rgb=np.array(rows, dtype=np.int64).reshape(-1, 3),
            positions=np.array(positions, dtype=np.int64),
            generation=generation
        )
        with self._lock:
            if self._arrays is None or self._arrays.pool is not pool_tuple:
                self._memo.clear()
            self._arrays = arrays
        logger.debug(f"Built nearest-match arrays for pool of {len(pool_tuple)} entries")
        return arrays

    def match(self, pool: Sequence[NamedColor], target: Color) -> Optional[ColorMatch]:
        """
        Closest pool entry with its distance.

        Returns:
            ColorMatch, or None when the pool has no usable entries
        """
        start_time = time.time()
        arrays = self._arrays_for(pool)
        if arrays.rgb.shape[0] == 0:
            return None

        memo_key = (arrays.generation, target.as_tuple())
        cached = self._memo.get(memo_key)
        if cached is not None:
            self.metrics.increment_match_count(memo_hit=True)
            return cached

        diff = arrays.rgb - np.array(target.as_tuple(), dtype=np.int64)
        dist2 = np.einsum("ij,ij->i", diff, diff)
        best = int(np.argmin(dist2))
        entry = arrays.pool[int(arrays.positions[best])]
        result = ColorMatch(target=target, entry=entry, distance=float(np.sqrt(float(dist2[best]))))

        self._memo.set(memo_key, result)
        self.metrics.increment_match_count()
        self.metrics.record_timing("nearest", (time.time() - start_time) * 1000)
        return result

    def nearest(self, pool: Sequence[NamedColor], target: Color) -> Optional[NamedColor]:
        """Closest pool entry, or None for an empty pool."""
        result = self.match(pool, target)
        return result.entry if result is not None else None

    def nearest_or_placeholder(self, pool: Sequence[NamedColor], target: Color) -> NamedColor:
        """Closest entry, or an entry named after the target's own hex."""
        entry = self.nearest(pool, target)
        return entry if entry is not None else NamedColor.placeholder(target)

    def match_many(self, pool: Sequence[NamedColor], targets: Sequence[Color]) -> List[Optional[ColorMatch]]:
        """Match a batch of colors (e.g. an extracted photo palette) against one pool."""
        return [self.match(pool, target) for target in targets]


def linear_nearest(pool: Sequence[NamedColor], target: Color) -> Optional[NamedColor]:
    """Reference scan: first entry with the strictly smallest distance wins."""
    best: Optional[NamedColor] = None
    best_distance = float("inf")
    for entry in pool:
        color = entry.color()
        if color is None:
            continue
        d = target.distance(color)
        if d < best_distance:
            best_distance = d
            best = entry
    return best
