"""
Debounced search driver.

Holds at most one pending query: each new submission cancels the pending one
before it reaches the engine, so a typing user keeps a single request in
flight per input stream.
"""

import threading
from typing import Optional

from loguru import logger

from colorit.config import config
from .engine import IncrementalSearchEngine, SearchCallback


class SearchDebouncer:
    """Delay-and-replace front end for an IncrementalSearchEngine."""

    def __init__(self, engine: IncrementalSearchEngine, callback: SearchCallback,
                 delay_ms: Optional[int] = None):
        self.engine = engine
        self.callback = callback
        self.delay = (config.SEARCH_DEBOUNCE_MS if delay_ms is None else delay_ms) / 1000.0
        self._lock = threading.Lock()
        self._pending: Optional[threading.Timer] = None

    def submit(self, query: str, ascending: bool = True) -> None:
        """Schedule *query*, cancelling any query still waiting to start."""
        timer = threading.Timer(self.delay, self._fire, args=(query, ascending))
        timer.daemon = True
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                logger.debug(f"Debounced query superseded by {query!r}")
            self._pending = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def _fire(self, query: str, ascending: bool) -> None:
        with self._lock:
            if self._pending is None or self._pending is not threading.current_thread():
                return
            self._pending = None
        self.engine.search(query, ascending, callback=self.callback)
