"""Tests for observability metrics module."""

import pytest

from logdeck.exceptions import NotFoundException
from logdeck.observability.metrics import MetricsStore


class TestOperationMetrics:
    """Tests for operation-level metrics."""

    def test_record_latency(self):
        store = MetricsStore()
        store.record_latency("query", 50.0)
        store.record_latency("query", 100.0)
        store.record_latency("query", 150.0)

        metrics = store.get_summary()["operations"]["query"]

        assert metrics["call_count"] == 3
        assert metrics["p50_ms"] == 100.0
        assert metrics["max_ms"] == 150.0

    def test_record_operation_error(self):
        store = MetricsStore()
        store.record_operation_error("get", "NOT_FOUND")
        store.record_operation_error("get", "NOT_FOUND")
        store.record_operation_error("get", "STORAGE_READ_ERROR")

        summary = store.get_summary()

        assert summary["operations"]["get"]["errors"] == {"NOT_FOUND": 2, "STORAGE_READ_ERROR": 1}
        assert summary["global_errors"]["NOT_FOUND"] == 2

    def test_track_counts_errors_and_reraises(self):
        store = MetricsStore()
        with pytest.raises(NotFoundException) as exc_info:
            with store.track("delete"):
                raise NotFoundException("Log", "x")
        assert exc_info.value.metrics_recorded is True

        metrics = store.get_summary()["operations"]["delete"]
        assert metrics["call_count"] == 1
        assert metrics["errors"] == {"NOT_FOUND": 1}


class TestMetricsSummary:
    """Tests for metrics summary structure."""

    def test_summary_structure(self):
        summary = MetricsStore().get_summary()

        assert "uptime_seconds" in summary
        assert "collected_at" in summary
        assert summary["operations"] == {}
        assert summary["global_errors"] == {}

    def test_reset(self):
        store = MetricsStore()
        store.record_latency("insert", 100.0)
        store.record_error("INTERNAL_ERROR")

        store.reset()
        summary = store.get_summary()

        assert summary["operations"] == {}
        assert summary["global_errors"] == {}
