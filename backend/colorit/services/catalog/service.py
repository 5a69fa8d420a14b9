"""
Catalog Service

Ties the registry, the incremental search engine and the nearest-match index
to one ordered selection of active catalogs. Every registry transition
refreshes the engine's backing set and invalidates the index, so search and
matching always read the current merged view.
"""

import threading
from concurrent.futures import Future
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from colorit.config import config
from colorit.services.colors import Color
from colorit.services.matching import ColorMatch, NearestMatchIndex
from colorit.services.search.engine import IncrementalSearchEngine, SearchCallback, SearchResult
from colorit.services.search.query import SortMode
from colorit.utils.metrics import MetricsCollector, get_metrics_instance
from .models import CatalogStatus, NamedColor
from .registry import CatalogRegistry


class UnknownCatalogError(KeyError):
    """Raised when a caller names a catalog id with no descriptor."""

    def __init__(self, catalog_id: str):
        self.catalog_id = catalog_id
        super().__init__(catalog_id)

    def __str__(self) -> str:
        return f"Unknown catalog: {self.catalog_id}"


class CatalogService:
    """Active-catalog facade used by the HTTP layer."""

    def __init__(self,
                 registry: Optional[CatalogRegistry] = None,
                 engine: Optional[IncrementalSearchEngine] = None,
                 index: Optional[NearestMatchIndex] = None,
                 active: Optional[Iterable[str]] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics or get_metrics_instance()
        self.registry = registry or CatalogRegistry(metrics=self.metrics)
        self.engine = engine or IncrementalSearchEngine(metrics=self.metrics)
        self.index = index or NearestMatchIndex(metrics=self.metrics)

        self._lock = threading.RLock()
        self._active: Tuple[str, ...] = tuple(dict.fromkeys(
            config.ACTIVE_CATALOGS if active is None else active
        ))
        self._pool: Optional[Tuple[NamedColor, ...]] = None
        self._unsubscribe = self.registry.subscribe(self._on_catalog_change)
        self._refresh()

    # ------------------------------------------------------------------
    # Catalog selection
    # ------------------------------------------------------------------

    @property
    def active_ids(self) -> List[str]:
        with self._lock:
            return list(self._active)

    def set_active(self, catalog_ids: Sequence[str]) -> List[str]:
        """
        Replace the active selection and start loading its catalogs.

        Order matters: earlier catalogs win on duplicate entries.

        Raises:
            UnknownCatalogError: An id has no registered descriptor
        """
        ids = tuple(dict.fromkeys(catalog_ids))
        for catalog_id in ids:
            self.require(catalog_id)

        with self._lock:
            self._active = ids
        logger.info(f"Active catalogs set to {list(ids)}")

        for catalog_id in ids:
            self.registry.load(catalog_id)
        self._refresh()
        return list(ids)

    def require(self, catalog_id: str) -> None:
        if self.registry.descriptor(catalog_id) is None:
            raise UnknownCatalogError(catalog_id)

    def preload(self, catalog_ids: Optional[Iterable[str]] = None) -> List["Future[CatalogStatus]"]:
        """Kick off background loads for the preload and active catalogs."""
        ids = list(config.PRELOAD_CATALOGS if catalog_ids is None else catalog_ids)
        for catalog_id in self.active_ids:
            if catalog_id not in ids:
                ids.append(catalog_id)
        return [self.registry.load(catalog_id) for catalog_id in ids]

    def load(self, catalog_id: str) -> "Future[CatalogStatus]":
        self.require(catalog_id)
        return self.registry.load(catalog_id)

    def reload(self, catalog_id: str) -> "Future[CatalogStatus]":
        self.require(catalog_id)
        return self.registry.reload(catalog_id)

    def unload(self, catalog_id: str) -> CatalogStatus:
        self.require(catalog_id)
        self.registry.unload(catalog_id)
        return self.registry.status(catalog_id)

    def statuses(self) -> List[CatalogStatus]:
        return self.registry.snapshot()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def pool(self) -> Tuple[NamedColor, ...]:
        """Merged, deduplicated entries of the loaded active catalogs."""
        return self.registry.entries(self.active_ids)

    def search(self, query: str, ascending: bool = True,
               callback: Optional[SearchCallback] = None,
               sort: SortMode = SortMode.NAME) -> "Future[SearchResult]":
        return self.engine.search(query, ascending, callback=callback, sort=sort)

    def nearest(self, target: Color) -> Optional[ColorMatch]:
        return self.index.match(self.pool(), target)

    def nearest_or_placeholder(self, target: Color) -> NamedColor:
        return self.index.nearest_or_placeholder(self.pool(), target)

    def match_palette(self, targets: Sequence[Color]) -> List[Optional[ColorMatch]]:
        return self.index.match_many(self.pool(), targets)

    # ------------------------------------------------------------------
    # Change propagation
    # ------------------------------------------------------------------

    def _on_catalog_change(self, status: CatalogStatus) -> None:
        with self._lock:
            relevant = status.id in self._active
        if relevant:
            self._refresh()

    def _refresh(self) -> None:
        with self._lock:
            entries = self.registry.entries(self._active)
            if self._pool is not None and (entries is self._pool or entries == self._pool):
                return
            self._pool = entries
            self.engine.replace_all(entries)
            self.index.invalidate()
        logger.debug(f"Search pool rebuilt: {len(entries)} entries from {list(self._active)}")

    def shutdown(self) -> None:
        self._unsubscribe()
        self.registry.shutdown(wait=False)
        self.engine.shutdown(wait=False)
