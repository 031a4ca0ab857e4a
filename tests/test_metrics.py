"""
Tests for refresh-loop metrics.
"""

from bandscope.continuous.metrics import LatencyTracker, MetricsCollector


class TestLatencyTracker:
    def test_empty_stats(self):
        stats = LatencyTracker().get_stats()
        assert stats.count == 0
        assert stats.mean_ms == 0.0
        assert stats.min_ms == 0.0

    def test_records(self):
        tracker = LatencyTracker()
        for ms in [10.0, 20.0, 30.0, 40.0]:
            tracker.record(ms)

        stats = tracker.get_stats()
        assert stats.count == 4
        assert stats.mean_ms == 25.0
        assert stats.min_ms == 10.0
        assert stats.max_ms == 40.0
        assert stats.last_ms == 40.0
        assert stats.p50_ms == 30.0
        assert stats.p95_ms == 40.0

    def test_window_bounds_percentiles_not_totals(self):
        tracker = LatencyTracker(window_size=2)
        for ms in [100.0, 1.0, 1.0]:
            tracker.record(ms)

        stats = tracker.get_stats()
        assert stats.count == 3
        assert stats.max_ms == 100.0
        assert stats.p95_ms == 1.0


class TestMetricsCollector:
    def test_counters(self):
        metrics = MetricsCollector()
        metrics.increment("errors")
        metrics.increment("errors", 2)
        assert metrics.get_counter("errors") == 3
        assert metrics.get_counter("missing") == 0

    def test_timer_records_latency(self):
        metrics = MetricsCollector()
        with metrics.time("chart_refresh"):
            pass
        with metrics.time("chart_refresh"):
            pass

        assert metrics.get_latency_stats("chart_refresh").count == 2
        assert metrics.get_latency_stats("ticker_refresh") is None

    def test_summary(self):
        metrics = MetricsCollector()
        metrics.increment("ticker_cycles")
        with metrics.time("ticker_refresh"):
            pass

        summary = metrics.get_summary()
        assert summary["counters"] == {"ticker_cycles": 1}
        assert summary["latencies_ms"]["ticker_refresh"]["count"] == 1
        assert set(summary["latencies_ms"]["ticker_refresh"]) == {"count", "mean", "p95", "max"}
        assert summary["uptime_seconds"] >= 0

    def test_reset(self):
        metrics = MetricsCollector()
        metrics.increment("errors")
        with metrics.time("analytics_refresh"):
            pass
        metrics.reset()

        summary = metrics.get_summary()
        assert summary["counters"] == {}
        assert summary["latencies_ms"] == {}
