"""
Metrics and Telemetry for the refresh loops.

Tracks per-refresh latencies and cycle/error counters for monitoring and
debugging.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class LatencyStats:
    """Statistics for a latency metric."""
    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float('inf')
    max_ms: float = 0.0
    last_ms: float = 0.0

    # Rolling percentiles (approximate)
    p50_ms: float = 0.0
    p95_ms: float = 0.0

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.count if self.count > 0 else 0.0


class LatencyTracker:
    """
    Tracks latency statistics for an operation.

    Uses a sliding window for percentile approximation.
    """

    def __init__(self, window_size: int = 500):
        self._samples: deque[float] = deque(maxlen=window_size)
        self._stats = LatencyStats()
        self._lock = threading.Lock()

    def record(self, latency_ms: float) -> None:
        """Record a latency measurement."""
        with self._lock:
            self._samples.append(latency_ms)
            self._stats.count += 1
            self._stats.total_ms += latency_ms
            self._stats.last_ms = latency_ms
            self._stats.min_ms = min(self._stats.min_ms, latency_ms)
            self._stats.max_ms = max(self._stats.max_ms, latency_ms)

    def get_stats(self) -> LatencyStats:
        """Get current statistics with percentiles."""
        with self._lock:
            stats = LatencyStats(
                count=self._stats.count,
                total_ms=self._stats.total_ms,
                min_ms=self._stats.min_ms if self._stats.count > 0 else 0.0,
                max_ms=self._stats.max_ms,
                last_ms=self._stats.last_ms,
            )

            if self._samples:
                sorted_samples = sorted(self._samples)
                n = len(sorted_samples)
                stats.p50_ms = sorted_samples[int(n * 0.5)]
                stats.p95_ms = sorted_samples[min(int(n * 0.95), n - 1)]

            return stats


class Timer:
    """Context manager for timing operations."""

    def __init__(self, tracker: LatencyTracker):
        self._tracker = tracker
        self._start: float = 0

    def __enter__(self) -> 'Timer':
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        elapsed_ms = (time.perf_counter() - self._start) * 1000
        self._tracker.record(elapsed_ms)


class MetricsCollector:
    """
    Central metrics collector for the dashboard refresh tasks.

    Usage:
        metrics = MetricsCollector()

        with metrics.time("analytics_refresh"):
            await refresh()

        metrics.increment("analytics_cycles")
        summary = metrics.get_summary()
    """

    def __init__(self):
        self._latencies: Dict[str, LatencyTracker] = {}
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._start_time = time.time()

    def time(self, operation: str) -> Timer:
        """Create a timer context manager for an operation."""
        if operation not in self._latencies:
            self._latencies[operation] = LatencyTracker()
        return Timer(self._latencies[operation])

    def increment(self, counter: str, amount: int = 1) -> None:
        """Increment a counter."""
        with self._lock:
            self._counters[counter] = self._counters.get(counter, 0) + amount

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        with self._lock:
            return self._counters.get(name, 0)

    def get_latency_stats(self, operation: str) -> Optional[LatencyStats]:
        """Get latency statistics for an operation."""
        tracker = self._latencies.get(operation)
        return tracker.get_stats() if tracker else None

    def get_summary(self) -> Dict[str, Any]:
        """Get human-readable metrics summary."""
        with self._lock:
            counters = dict(self._counters)

        latencies = {}
        for name, tracker in self._latencies.items():
            stats = tracker.get_stats()
            latencies[name] = {
                "count": stats.count,
                "mean": f"{stats.mean_ms:.2f}",
                "p95": f"{stats.p95_ms:.2f}",
                "max": f"{stats.max_ms:.2f}",
            }

        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": counters,
            "latencies_ms": latencies,
        }

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self._latencies = {}
            self._counters = {}
        self._start_time = time.time()
