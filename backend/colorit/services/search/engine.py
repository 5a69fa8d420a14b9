"""
Incremental Search Engine

Serves interactive text/hex queries over a replaceable backing entry set.
All filtering and sorting for one engine runs on its own single-thread FIFO
worker, so the last-query/last-result cache needs no further locking beyond
the snapshot taken at the start of each call.

When a query only grows by appended characters, the previous result set is
narrowed instead of rescanning the whole backing set.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from loguru import logger

from colorit.services.catalog.models import NamedColor
from colorit.utils.metrics import MetricsCollector, get_metrics_instance
from .query import SearchQuery, SortMode, filter_entries, sort_entries


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one search call."""
    sequence: int
    query: str
    ascending: bool
    entries: Tuple[NamedColor, ...]
    sort: SortMode = SortMode.NAME
    reused_previous: bool = False
    duration_ms: float = 0.0
    error: Optional[str] = None
    # A newer search was submitted before this one completed
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(entry.name for entry in self.entries)


SearchCallback = Callable[[SearchResult], None]


@dataclass
class _SessionState:
    entries: Tuple[NamedColor, ...]
    last_query: SearchQuery
    last_results: Tuple[NamedColor, ...]
    generation: int


_EMPTY_QUERY = SearchQuery.parse("")


class IncrementalSearchEngine:
    """Debounce-friendly, prefix-reusing search over a catalog snapshot."""

    def __init__(self,
                 entries: Iterable[NamedColor] = (),
                 metrics: Optional[MetricsCollector] = None,
                 name: str = "search"):
        self.name = name
        self.metrics = metrics or get_metrics_instance()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{name}-engine")
        self._lock = threading.Lock()
        snapshot = tuple(entries)
        self._state = _SessionState(
            entries=snapshot,
            last_query=_EMPTY_QUERY,
            last_results=snapshot,
            generation=0
        )
        self._sequence = 0

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the most recently submitted search."""
        with self._lock:
            return self._sequence

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._state.entries)

    def replace_all(self, entries: Iterable[NamedColor]) -> None:
        """
        Swap in a new backing set and drop the cached last query/result.

        Valid at any time. A search already running finishes against the old
        snapshot and is delivered, but its result is not cached.
        """
        snapshot = tuple(entries)
        with self._lock:
            self._state = _SessionState(
                entries=snapshot,
                last_query=_EMPTY_QUERY,
                last_results=snapshot,
                generation=self._state.generation + 1
            )
        logger.debug(f"[{self.name}] backing set replaced with {len(snapshot)} entries")

    def search(self, query: str, ascending: bool = True,
               callback: Optional[SearchCallback] = None,
               sort: SortMode = SortMode.NAME) -> "Future[SearchResult]":
        """
        Queue a search on the engine's worker.

        Args:
            query: Raw user input (name, brand, code or hex fragment)
            ascending: Sort direction
            callback: Called on the worker thread with the result
            sort: Order by name (ties broken by brand, code, hex) or by luminance

        Returns:
            Future resolving to a SearchResult. Errors are reported in
            SearchResult.error; the future itself never raises.
        """
        with self._lock:
            self._sequence += 1
            sequence = self._sequence

        future = self._executor.submit(self._run, sequence, query, ascending, SortMode(sort))
        if callback is not None:
            future.add_done_callback(lambda done: self._deliver(done, callback))
        return future

    def search_now(self, query: str, ascending: bool = True,
                   timeout: Optional[float] = None,
                   sort: SortMode = SortMode.NAME) -> SearchResult:
        """Blocking convenience wrapper around search()."""
        return self.search(query, ascending, sort=sort).result(timeout=timeout)

    def _deliver(self, future: "Future[SearchResult]", callback: SearchCallback) -> None:
        if future.cancelled():
            return
        try:
            callback(future.result())
        except Exception:
            logger.exception(f"[{self.name}] search callback failed")

    def _run(self, sequence: int, raw: str, ascending: bool, sort: SortMode) -> SearchResult:
        start_time = time.time()
        with self._lock:
            state = self._state

        query = SearchQuery.parse(raw)
        try:
            entries, reused = self._execute(state, query, ascending, sort)
        except Exception as e:
            logger.exception(f"[{self.name}] search #{sequence} failed")
            self.metrics.increment_failure_count("search")
            return SearchResult(
                sequence=sequence,
                query=raw,
                ascending=ascending,
                sort=sort,
                entries=(),
                duration_ms=(time.time() - start_time) * 1000,
                error=str(e),
                superseded=sequence != self.latest_sequence
            )

        with self._lock:
            # replace_all() during the scan invalidates what we computed
            if self._state.generation == state.generation:
                self._state = _SessionState(
                    entries=state.entries,
                    last_query=query,
                    last_results=entries,
                    generation=state.generation
                )
            superseded = sequence != self._sequence

        duration_ms = (time.time() - start_time) * 1000
        self.metrics.increment_search_count(reused)
        self.metrics.record_timing("search", duration_ms)
        logger.debug(
            f"[{self.name}] search #{sequence} {raw!r}: {len(entries)} results "
            f"({'narrowed' if reused else 'full scan'}, {duration_ms:.1f}ms)"
        )
        return SearchResult(
            sequence=sequence,
            query=raw,
            ascending=ascending,
            sort=sort,
            entries=entries,
            reused_previous=reused,
            duration_ms=duration_ms,
            superseded=superseded
        )

    @staticmethod
    def _execute(state: _SessionState, query: SearchQuery,
                 ascending: bool, sort: SortMode) -> Tuple[Tuple[NamedColor, ...], bool]:
        if query.is_empty:
            return tuple(sort_entries(state.entries, ascending, sort)), False

        reused = not state.last_query.is_empty and query.extends(state.last_query)
        base = state.last_results if reused else state.entries
        filtered = filter_entries(base, query)
        return tuple(sort_entries(filtered, ascending, sort)), reused

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
