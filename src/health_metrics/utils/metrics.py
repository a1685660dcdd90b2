# ============================================================================
# src/health_metrics/utils/metrics.py
# ============================================================================
"""
In-process counters and timings for extraction runs.

Separate from the hourly provider telemetry in core/performance.py: these
metrics live for the lifetime of the process and are meant for dashboards
and debugging, not for reporting per-hour success rates.
"""

import threading
import time
from typing import Dict, List, Optional, Any
from collections import defaultdict
import statistics

from ..config.logging_config import logging_settings


class MetricsCollector:
    """Collect and aggregate counters, gauges and timings."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._counters: Dict[str, int] = defaultdict(int)
        self._gauges: Dict[str, float] = {}
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._counters[name] += value

    def set_gauge(self, name: str, value: float) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._gauges[name] = value

    def record_time(self, name: str, duration_ms: float) -> None:
        """Record an operation duration in milliseconds."""
        if not self.enabled:
            return
        with self._lock:
            self._timings[name].append(duration_ms)

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_gauge(self, name: str) -> Optional[float]:
        return self._gauges.get(name)

    def get_timing_stats(self, name: str) -> Optional[Dict[str, float]]:
        """
        Get timing statistics.

        Returns:
            Dict with count, min, max, mean, median, p95
        """
        values = list(self._timings.get(name, []))
        if not values:
            return None

        sorted_values = sorted(values)
        count = len(values)

        return {
            'count': count,
            'min': sorted_values[0],
            'max': sorted_values[-1],
            'mean': statistics.mean(values),
            'median': statistics.median(values),
            'p95': sorted_values[min(int(count * 0.95), count - 1)],
        }

    def get_all_metrics(self) -> Dict[str, Any]:
        with self._lock:
            names = list(self._timings.keys())
            snapshot = {
                'counters': dict(self._counters),
                'gauges': dict(self._gauges),
            }
        snapshot['timings'] = {name: self.get_timing_stats(name) for name in names}
        return snapshot

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._timings.clear()


class Timer:
    """Context manager that records elapsed milliseconds into a collector."""

    def __init__(self, collector: MetricsCollector, operation: str):
        self.collector = collector
        self.operation = operation
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        self.collector.record_time(self.operation, self.duration_ms)


class ExtractionMetrics:
    """Named recorders for the extraction pipeline on top of a collector."""

    def __init__(self, collector: Optional[MetricsCollector] = None):
        self.metrics = collector or MetricsCollector()

    def record_attempt(self, provider: str, success: bool, duration_ms: float) -> None:
        self.metrics.increment('extraction.attempts')
        self.metrics.record_time(f'provider.{provider}.duration_ms', duration_ms)
        if not success:
            self.metrics.increment(f'provider.{provider}.errors')

    def record_outcome(self, success: bool, metrics_created: int = 0) -> None:
        if success:
            self.metrics.increment('extraction.success')
            self.metrics.increment('metrics.created', metrics_created)
        else:
            self.metrics.increment('extraction.failure')

    def record_mapping(self, matched: bool) -> None:
        self.metrics.increment('mapping.hit' if matched else 'mapping.miss')

    def get_summary(self) -> Dict[str, Any]:
        all_metrics = self.metrics.get_all_metrics()
        counters = all_metrics['counters']

        succeeded = counters.get('extraction.success', 0)
        failed = counters.get('extraction.failure', 0)
        total = succeeded + failed

        return {
            'total_extractions': total,
            'success_rate': round(succeeded / total * 100, 2) if total else 0.0,
            'metrics_created': counters.get('metrics.created', 0),
            'mapping_misses': counters.get('mapping.miss', 0),
            'metrics': all_metrics,
        }


# Global metrics instance
_global_metrics = MetricsCollector(enabled=logging_settings.ENABLE_METRICS)


def get_metrics() -> MetricsCollector:
    """Get global metrics collector."""
    return _global_metrics
