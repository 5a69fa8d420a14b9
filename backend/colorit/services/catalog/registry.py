"""
Catalog Registry

Owns the named-color catalogs, loads each one lazily on a background worker,
and exposes deduplicated merged views over any ordered subset of loaded
catalogs. Load failures are recorded per catalog and never raised across the
registry.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from colorit.config import config
from colorit.utils.metrics import MetricsCollector, get_metrics_instance
from colorit.services.search.query import SearchQuery, filter_entries
from .errors import CatalogLoadError, CatalogNotFound
from .loader import JsonCatalogLoader
from .models import (
    DEFAULT_CATALOGS,
    CatalogDescriptor,
    CatalogState,
    CatalogStatus,
    NamedColor,
)

Listener = Callable[[CatalogStatus], None]


def merge_unique(groups: Iterable[Iterable[NamedColor]]) -> List[NamedColor]:
    """Union of entry groups in order; the first entry with a given key wins."""
    seen = set()
    merged: List[NamedColor] = []
    for group in groups:
        for entry in group:
            key = entry.key
            if key not in seen:
                seen.add(key)
                merged.append(entry)
    return merged


class CatalogRegistry:
    """Lazy, thread-safe registry of named-color catalogs."""

    def __init__(self,
                 loader: Optional[JsonCatalogLoader] = None,
                 descriptors: Optional[Iterable[CatalogDescriptor]] = None,
                 max_workers: Optional[int] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.loader = loader or JsonCatalogLoader()
        self.metrics = metrics or get_metrics_instance()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or config.LOADER_MAX_WORKERS,
            thread_name_prefix="catalog-loader"
        )

        self._lock = threading.RLock()
        self._descriptors: Dict[str, CatalogDescriptor] = {}
        self._loaded: Dict[str, Tuple[NamedColor, ...]] = {}
        self._errors: Dict[str, CatalogLoadError] = {}
        self._loading: Dict[str, Future] = {}
        # Bumped by unload/reload; completions from an older generation are discarded
        self._generations: Dict[str, int] = {}
        self._version = 0
        self._merged_memo: Dict[Tuple[str, ...], Tuple[NamedColor, ...]] = {}
        self._memo_version = -1
        self._listeners: List[Listener] = []

        for descriptor in (DEFAULT_CATALOGS.values() if descriptors is None else descriptors):
            self._descriptors[descriptor.id] = descriptor

    # ------------------------------------------------------------------
    # Descriptors
    # ------------------------------------------------------------------

    def register(self, descriptor: CatalogDescriptor) -> None:
        """Add or replace a catalog descriptor. Does not load it."""
        with self._lock:
            self._descriptors[descriptor.id] = descriptor

    def descriptors(self) -> List[CatalogDescriptor]:
        with self._lock:
            return list(self._descriptors.values())

    def descriptor(self, catalog_id: str) -> Optional[CatalogDescriptor]:
        with self._lock:
            return self._descriptors.get(catalog_id)

    def set_external_path(self, catalog_id: str, path) -> None:
        """Load *catalog_id* from a user-supplied file. Call before load/reload."""
        self.loader.set_external_path(catalog_id, path)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, catalog_id: str) -> "Future[CatalogStatus]":
        """
        Start loading a catalog unless it is already loaded or loading.

        Returns:
            Future resolving to the catalog's status once the load settles.
            For a loaded catalog it is already resolved; for an in-flight one
            it is the future of the running load.
        """
        with self._lock:
            if catalog_id in self._loaded:
                done: Future = Future()
                done.set_result(self._status_locked(catalog_id))
                return done

            in_flight = self._loading.get(catalog_id)
            if in_flight is not None:
                return in_flight

            generation = self._generations.get(catalog_id, 0)
            future = self._executor.submit(self._run_load, catalog_id, generation)
            self._loading[catalog_id] = future
            self._version += 1
            status = self._status_locked(catalog_id)

        logger.info(f"Catalog {catalog_id} load started")
        self._notify(status)
        return future

    def reload(self, catalog_id: str) -> "Future[CatalogStatus]":
        """Drop any loaded/failed state for the catalog, then load it again."""
        self.unload(catalog_id)
        return self.load(catalog_id)

    def unload(self, catalog_id: str) -> None:
        """
        Drop the catalog's entries and error immediately.

        Safe mid-load: the in-flight load keeps running but its result is
        discarded when it completes.
        """
        with self._lock:
            self._generations[catalog_id] = self._generations.get(catalog_id, 0) + 1
            dropped = [
                self._loaded.pop(catalog_id, None),
                self._errors.pop(catalog_id, None),
                self._loading.pop(catalog_id, None),
            ]
            had_state = any(item is not None for item in dropped)
            self._version += 1
            status = self._status_locked(catalog_id)

        if had_state:
            logger.info(f"Catalog {catalog_id} unloaded")
        self._notify(status)

    def wait(self, catalog_ids: Optional[Iterable[str]] = None,
             timeout: Optional[float] = None) -> bool:
        """Block until the given (default: all) in-flight loads settle."""
        with self._lock:
            if catalog_ids is None:
                futures = list(self._loading.values())
            else:
                futures = [self._loading[cid] for cid in catalog_ids if cid in self._loading]
        if not futures:
            return True
        _, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def _run_load(self, catalog_id: str, generation: int) -> CatalogStatus:
        start_time = time.time()
        entries: Optional[List[NamedColor]] = None
        error: Optional[CatalogLoadError] = None

        descriptor = self.descriptor(catalog_id)
        try:
            if descriptor is None:
                raise CatalogNotFound(catalog_id)
            entries = self.loader.load(descriptor)
        except CatalogLoadError as e:
            error = e
        except OSError as e:
            error = CatalogLoadError(catalog_id, f"Could not read catalog {catalog_id}: {e}", e)
        except Exception as e:
            logger.exception(f"Unexpected failure loading catalog {catalog_id}")
            error = CatalogLoadError(catalog_id, f"Unexpected failure loading catalog {catalog_id}: {e}", e)

        duration_ms = (time.time() - start_time) * 1000

        with self._lock:
            if self._generations.get(catalog_id, 0) != generation:
                logger.bind(catalog_id=catalog_id, generation=generation).info(
                    f"Discarding stale load of catalog {catalog_id}"
                )
                return self._status_locked(catalog_id)

            self._loading.pop(catalog_id, None)
            if error is None:
                self._loaded[catalog_id] = tuple(entries)
                self._errors.pop(catalog_id, None)
            else:
                self._errors[catalog_id] = error
                self._loaded.pop(catalog_id, None)
            self._version += 1
            status = self._status_locked(catalog_id)

        self.metrics.increment_load_count(catalog_id, ok=error is None)
        self.metrics.record_timing("catalog_load", duration_ms)
        if error is None:
            logger.info(f"Catalog {catalog_id} loaded: {status.entry_count} entries in {duration_ms:.1f}ms")
        else:
            self.metrics.increment_failure_count(error.kind)
            logger.warning(f"Catalog {catalog_id} failed to load: {error}")

        self._notify(status)
        return status

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def is_loaded(self, catalog_id: str) -> bool:
        with self._lock:
            return catalog_id in self._loaded

    def is_loading(self, catalog_id: str) -> bool:
        with self._lock:
            return catalog_id in self._loading

    def error(self, catalog_id: str) -> Optional[CatalogLoadError]:
        with self._lock:
            return self._errors.get(catalog_id)

    def state(self, catalog_id: str) -> CatalogState:
        with self._lock:
            return self._state_locked(catalog_id)

    def status(self, catalog_id: str) -> CatalogStatus:
        with self._lock:
            return self._status_locked(catalog_id)

    def snapshot(self) -> List[CatalogStatus]:
        """Status of every known catalog, registered ones first."""
        with self._lock:
            ids = list(self._descriptors)
            for extra in (*self._loaded, *self._errors, *self._loading):
                if extra not in ids:
                    ids.append(extra)
            return [self._status_locked(cid) for cid in ids]

    def _state_locked(self, catalog_id: str) -> CatalogState:
        if catalog_id in self._loading:
            return CatalogState.LOADING
        if catalog_id in self._loaded:
            return CatalogState.LOADED
        if catalog_id in self._errors:
            return CatalogState.FAILED
        return CatalogState.NOT_REQUESTED

    def _status_locked(self, catalog_id: str) -> CatalogStatus:
        descriptor = self._descriptors.get(catalog_id)
        return CatalogStatus(
            id=catalog_id,
            display_name=descriptor.display_name if descriptor else catalog_id,
            state=self._state_locked(catalog_id),
            entry_count=len(self._loaded.get(catalog_id, ())),
            error=self._errors.get(catalog_id)
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def entries(self, catalog_ids: Iterable[str]) -> Tuple[NamedColor, ...]:
        """
        Deduplicated union of the loaded catalogs among *catalog_ids*.

        Caller order decides precedence on key collisions. Catalogs that are
        not loaded contribute nothing; this never blocks on a load.
        """
        ids = tuple(dict.fromkeys(catalog_ids))
        with self._lock:
            if self._memo_version != self._version:
                self._merged_memo.clear()
                self._memo_version = self._version
            merged = self._merged_memo.get(ids)
            if merged is None:
                merged = tuple(merge_unique(self._loaded[cid] for cid in ids if cid in self._loaded))
                self._merged_memo[ids] = merged
            return merged

    def search(self, query: str, catalog_ids: Iterable[str]) -> List[NamedColor]:
        """Uncached full-scan filter over entries(catalog_ids)."""
        return filter_entries(self.entries(catalog_ids), SearchQuery.parse(query))

    @property
    def version(self) -> int:
        """Increments on every state change; lets callers detect stale views."""
        with self._lock:
            return self._version

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call *listener* with a CatalogStatus after every state transition.

        Listeners run on the thread that made the transition (a loader worker
        for load completions). Returns a function that unsubscribes.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, status: CatalogStatus) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(status)
            except Exception:
                logger.exception(f"Catalog listener failed for {status.id}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
