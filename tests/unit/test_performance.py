# ============================================================================
# FILE: tests/unit/test_performance.py
# ============================================================================
"""
Unit tests for provider performance buckets, TTL cache, metrics and store
"""

from datetime import datetime, timedelta

import pytest

from src.health_metrics.core.context.health_metric import HealthMetric
from src.health_metrics.core.metric_store import InMemoryMetricStore
from src.health_metrics.core.performance import ProviderPerformanceTracker, bucket_key
from src.health_metrics.utils.cache import TTLCache
from src.health_metrics.utils.metrics import ExtractionMetrics, MetricsCollector


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 15, 10, 30, 0))


@pytest.fixture
def tracker(clock):
    return ProviderPerformanceTracker(cache=TTLCache(max_size=100, clock=clock), ttl=7200, clock=clock)


# ============================================================================
# PERFORMANCE TRACKER
# ============================================================================

def test_bucket_key():
    assert bucket_key('claude', datetime(2024, 1, 15, 9, 59)) == 'health_metrics_performance:claude:2024-01-15-09'


class TestProviderPerformanceTracker:

    def test_hourly_summary(self, tracker):
        tracker.record('deepseek', True, 1200.0)
        tracker.record('deepseek', False, 300.0, error='503')
        tracker.record('deepseek', True, 900.0)

        buckets = tracker.get_provider_performance('deepseek')['deepseek']

        assert buckets == [{
            'hour': '2024-01-15 10:00',
            'total_requests': 3,
            'successful_requests': 2,
            'success_rate': 66.67,
            'average_duration_ms': 800.0,
        }]

    def test_most_recent_hour_first(self, tracker, clock):
        tracker.record('claude', True, 100.0)
        clock.advance(hours=1)
        tracker.record('claude', False, 50.0)

        buckets = tracker.get_provider_performance('claude')['claude']

        assert [bucket['hour'] for bucket in buckets] == ['2024-01-15 11:00', '2024-01-15 10:00']
        assert buckets[0]['success_rate'] == 0.0
        assert buckets[1]['success_rate'] == 100.0

    def test_hours_window(self, tracker, clock):
        tracker.record('claude', True, 100.0)
        clock.advance(hours=1)

        assert tracker.get_provider_performance('claude', hours=1)['claude'] == []
        assert len(tracker.get_provider_performance('claude', hours=2)['claude']) == 1

    def test_explicit_reference_time(self, tracker):
        tracker.record('openai', True, 10.0, now=datetime(2024, 1, 14, 8, 5))

        performance = tracker.get_provider_performance('openai', now=datetime(2024, 1, 14, 8, 50))
        assert performance['openai'][0]['hour'] == '2024-01-14 08:00'

    def test_all_providers(self, tracker):
        tracker.record('claude', True, 100.0)

        performance = tracker.get_provider_performance(providers=['deepseek', 'claude', 'openai'])

        assert list(performance) == ['claude', 'deepseek', 'openai']
        assert performance['deepseek'] == []

    def test_buckets_expire(self, tracker, clock):
        tracker.record('claude', True, 100.0)
        clock.advance(hours=2, seconds=1)

        # Still inside the look-back window but past the bucket TTL
        assert tracker.get_provider_performance('claude', now=datetime(2024, 1, 15, 10, 45))['claude'] == []

    def test_disabled(self, clock):
        tracker = ProviderPerformanceTracker(enabled=False, clock=clock)
        tracker.record('claude', True, 100.0)

        assert tracker.get_provider_performance('claude')['claude'] == []
        assert len(tracker.cache) == 0


# ============================================================================
# TTL CACHE
# ============================================================================

class TestTTLCache:

    def test_get_set(self, clock):
        cache = TTLCache(max_size=10, default_ttl=60, clock=clock)
        cache.set('a', 1)

        assert cache.get('a') == 1
        assert 'a' in cache
        assert cache.get('missing', 'default') == 'default'

    def test_expiry(self, clock):
        cache = TTLCache(max_size=10, default_ttl=60, clock=clock)
        cache.set('a', 1)
        cache.set('b', 2, ttl=None)
        clock.advance(seconds=61)

        assert cache.get('a') is None
        assert cache.get('b') == 2
        assert cache.get_statistics()['expirations'] == 1

    def test_lru_eviction(self, clock):
        cache = TTLCache(max_size=2, clock=clock)
        cache.set('a', 1)
        cache.set('b', 2)
        cache.get('a')
        cache.set('c', 3)

        assert 'b' not in cache
        assert cache.get('a') == 1
        assert cache.get_statistics()['evictions'] == 1

    def test_append_keeps_original_ttl(self, clock):
        cache = TTLCache(max_size=10, clock=clock)
        cache.append('bucket', 1, ttl=60)
        clock.advance(seconds=30)
        cache.append('bucket', 2, ttl=60)

        assert cache.get('bucket') == [1, 2]
        clock.advance(seconds=31)
        assert cache.get('bucket') is None

    def test_explicit_none_never_expires(self, clock):
        cache = TTLCache(max_size=10, default_ttl=60, clock=clock)
        cache.append('bucket', 1, ttl=None)
        cache.append('defaulted', 1)
        clock.advance(days=30)

        assert cache.get('bucket') == [1]
        assert cache.get('defaulted') is None

    def test_cleanup_and_clear(self, clock):
        cache = TTLCache(max_size=10, default_ttl=10, clock=clock)
        cache.set('a', 1)
        cache.set('b', 2, ttl=100)
        clock.advance(seconds=11)

        assert cache.cleanup_expired() == 1
        assert len(cache) == 1
        assert cache.delete('b') is True
        assert cache.delete('b') is False

        cache.set('c', 3)
        cache.clear()
        assert len(cache) == 0

    def test_statistics(self, clock):
        cache = TTLCache(max_size=10, clock=clock)
        cache.set('a', 1)
        cache.get('a')
        cache.get('x')

        stats = cache.get_statistics()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5
        assert stats['entry_count'] == 1


# ============================================================================
# EXTRACTION METRICS
# ============================================================================

def test_extraction_metrics_summary():
    metrics = ExtractionMetrics(MetricsCollector())
    metrics.record_attempt('deepseek', False, 120.0)
    metrics.record_attempt('claude', True, 80.0)
    metrics.record_outcome(True, 4)
    metrics.record_outcome(False)
    metrics.record_mapping(False)

    summary = metrics.get_summary()

    assert summary['total_extractions'] == 2
    assert summary['success_rate'] == 50.0
    assert summary['metrics_created'] == 4
    assert summary['mapping_misses'] == 1
    assert summary['metrics']['counters']['provider.deepseek.errors'] == 1
    assert summary['metrics']['timings']['provider.claude.duration_ms']['count'] == 1


def test_timing_stats():
    collector = MetricsCollector()
    for value in (10.0, 20.0, 30.0):
        collector.record_time('op', value)

    stats = collector.get_timing_stats('op')
    assert stats['min'] == 10.0
    assert stats['max'] == 30.0
    assert stats['median'] == 20.0
    assert collector.get_timing_stats('missing') is None


# ============================================================================
# METRIC STORE
# ============================================================================

def test_in_memory_store():
    store = InMemoryMetricStore()
    for patient_id, metric_type in ((1, 'hdl'), (1, 'ldl'), (2, 'hdl')):
        store.save(HealthMetric.create(
            patient_id=patient_id, metric_type=metric_type, value='50', unit='mg/dL', measured_at='2024-01-15'
        ))

    assert len(store) == 3
    assert [metric.type for metric in store.get_metrics(patient_id=1)] == ['hdl', 'ldl']
    assert store.get_metrics()[2].metadata['store_index'] == 3
    assert store.summary() == {'total': 3, 'by_type': {'hdl': 2, 'ldl': 1}}

    store.clear()
    assert len(store) == 0


def test_disabled_collector_records_nothing():
    collector = MetricsCollector(enabled=False)
    collector.increment('extraction.attempts')
    collector.record_time('op', 5.0)

    assert collector.get_counter('extraction.attempts') == 0
    assert collector.get_timing_stats('op') is None
