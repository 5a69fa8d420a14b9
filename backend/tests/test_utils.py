"""
Unit tests for metrics, request ids and logging setup.
"""

from colorit.utils.ids import generate_request_id
from colorit.utils.logging import StructuredLogger, get_logger
from colorit.utils.metrics import MetricsCollector, get_metrics_instance, reset_metrics


class TestMetricsCollector:
    """Test counters and timing statistics"""

    def test_load_counters_by_outcome(self):
        metrics = MetricsCollector()
        metrics.increment_load_count("generic", ok=True)
        metrics.increment_load_count("behr", ok=False)
        metrics.increment_failure_count("not_found")

        counters = metrics.get_counters()
        assert counters["catalog_load_ok_total"] == 1
        assert counters["catalog_load_failed_total_behr"] == 1
        assert counters["failed_total_not_found"] == 1

    def test_timing_stats(self):
        metrics = MetricsCollector()
        for value in (10.0, 20.0, 30.0, 40.0, 50.0):
            metrics.record_timing("search", value)

        stats = metrics.get_timing_stats()["search_duration_ms"]
        assert stats["count"] == 5
        assert stats["mean"] == 30.0
        assert stats["min"] == 10.0
        assert stats["max"] == 50.0
        assert stats["p50"] == 30.0
        assert stats["p95"] == 48.0

    def test_samples_are_bounded(self):
        metrics = MetricsCollector(max_samples=3)
        for value in range(10):
            metrics.record_timing("nearest", float(value))
        assert metrics.get_timing_stats()["nearest_duration_ms"]["count"] == 3

    def test_global_reset(self):
        get_metrics_instance().increment_search_count(reused_previous=False)
        reset_metrics()
        assert get_metrics_instance().get_counters() == {}


class TestRequestIds:
    """Test request id generation"""

    def test_prefix_and_timestamp(self):
        request_id = generate_request_id("srch")
        assert request_id.startswith("srch-")
        prefix, timestamp, suffix = request_id.split("-")
        assert len(timestamp) == 14 and timestamp.isdigit()
        assert len(suffix) == 8

    def test_ids_are_unique(self):
        assert generate_request_id() != generate_request_id()


class TestStructuredLogger:
    """Test logger wiring"""

    def test_global_instance_reused(self):
        assert get_logger() is get_logger()

    def test_level_override(self):
        log = StructuredLogger(level="DEBUG")
        assert log.level == "DEBUG"
        log.debug("catalog engine debug line", extra={"catalog_id": "generic"})
        log.warning("plain warning")
