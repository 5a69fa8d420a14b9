"""
Colorit Metrics Collection
In-process metrics collection for catalog loads, searches and color matching.
"""
import time
from collections import defaultdict, deque, Counter
from typing import Any, Deque, Dict, List, Optional
from threading import Lock


class MetricsCollector:
    """Simple in-process metrics collector."""

    def __init__(self, max_samples: int = 1000):
        """Initialize metrics collector."""
        self._lock = Lock()
        self._max_samples = max_samples
        self._counters: Dict[str, int] = Counter()
        self._timings: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=self._max_samples))
        self._start_time = time.time()

    def increment_search_count(self, reused_previous: bool):
        """Increment search counters, split by prefix reuse."""
        with self._lock:
            self._counters["search_requests_total"] += 1
            if reused_previous:
                self._counters["search_prefix_reuse_total"] += 1
            else:
                self._counters["search_full_scan_total"] += 1

    def increment_match_count(self, memo_hit: bool = False):
        """Increment nearest-match counters."""
        with self._lock:
            self._counters["match_requests_total"] += 1
            if memo_hit:
                self._counters["match_memo_hits_total"] += 1

    def increment_load_count(self, catalog_id: str, ok: bool):
        """Increment catalog load counter by outcome."""
        with self._lock:
            outcome = "ok" if ok else "failed"
            self._counters[f"catalog_load_{outcome}_total"] += 1
            self._counters[f"catalog_load_{outcome}_total_{catalog_id}"] += 1

    def increment_failure_count(self, error_type: str):
        """Increment failure counter by error type."""
        with self._lock:
            self._counters[f"failed_total_{error_type}"] += 1

    def record_timing(self, operation: str, duration_ms: float):
        """Record timing for an operation."""
        with self._lock:
            self._timings[f"{operation}_duration_ms"].append(duration_ms)

    def get_counters(self) -> Dict[str, int]:
        """Get current counter values."""
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """Get timing statistics."""
        with self._lock:
            stats = {}
            for operation, samples in self._timings.items():
                timings = list(samples)
                if timings:
                    stats[operation] = {
                        "count": len(timings),
                        "mean": sum(timings) / len(timings),
                        "min": min(timings),
                        "max": max(timings),
                        "p50": self._percentile(timings, 50),
                        "p95": self._percentile(timings, 95)
                    }
            return stats

    def get_uptime_seconds(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def get_summary(self) -> Dict[str, Any]:
        """Get complete metrics summary."""
        return {
            "uptime_seconds": self.get_uptime_seconds(),
            "counters": self.get_counters(),
            "timing_stats": self.get_timing_stats()
        }

    def reset(self):
        """Reset all metrics (for testing)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._start_time = time.time()

    @staticmethod
    def _percentile(data: List[float], percentile: int) -> float:
        """Calculate percentile of data."""
        if not data:
            return 0.0

        sorted_data = sorted(data)
        k = (len(sorted_data) - 1) * percentile / 100
        f = int(k)
        c = k - f

        if f + 1 < len(sorted_data):
            return sorted_data[f] + c * (sorted_data[f + 1] - sorted_data[f])
        else:
            return sorted_data[f]


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics_instance() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    global _metrics
    if _metrics is not None:
        _metrics.reset()
