"""
Colorit Search Module

Query normalization, the incremental search engine and its debounced driver.
"""

from .query import (
    SearchQuery,
    SortMode,
    entry_matches,
    filter_entries,
    luminance,
    sort_by_luminance,
    sort_by_name,
    sort_entries,
)
from .engine import IncrementalSearchEngine, SearchResult
from .debounce import SearchDebouncer

__all__ = [
    "SearchQuery",
    "SortMode",
    "entry_matches",
    "filter_entries",
    "luminance",
    "sort_by_luminance",
    "sort_by_name",
    "sort_entries",
    "IncrementalSearchEngine",
    "SearchResult",
    "SearchDebouncer",
]
