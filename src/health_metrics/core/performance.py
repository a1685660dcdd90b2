# ============================================================================
# src/health_metrics/core/performance.py
# ============================================================================
"""
Provider Performance Tracking

Every provider attempt is appended to an hourly bucket in a TTL cache:

    health_metrics_performance:{provider}:{YYYY-MM-DD-HH}

Buckets expire with HEALTH_METRICS_PERFORMANCE_TTL, so only recent hours
are available for the admin performance view.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..utils.cache import TTLCache


KEY_PREFIX = "health_metrics_performance"
DEFAULT_PERFORMANCE_TTL = 3600


def bucket_key(provider: str, when: datetime) -> str:
    return f"{KEY_PREFIX}:{provider}:{when.strftime('%Y-%m-%d-%H')}"


class ProviderPerformanceTracker:
    """Hourly success/latency buckets per provider."""

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        ttl: int = DEFAULT_PERFORMANCE_TTL,
        enabled: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._clock = clock or datetime.now
        self.cache = cache if cache is not None else TTLCache(max_size=5000, clock=self._clock)
        self.ttl = ttl
        self.enabled = enabled
        self._providers: List[str] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def record(
        self,
        provider: str,
        success: bool,
        duration_ms: float,
        error: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        if not self.enabled:
            return

        now = now or self._clock()
        entry = {
            'timestamp': now.isoformat(),
            'success': success,
            'duration_ms': round(duration_ms, 2),
            'error': error,
        }
        self.cache.append(bucket_key(provider, now), entry, ttl=self.ttl)
        if provider not in self._providers:
            self._providers.append(provider)

        self.logger.info(
            f"AI provider performance: provider={provider} success={success} "
            f"duration_ms={duration_ms:.2f}" + (f" error={error}" if error else "")
        )

    def get_provider_performance(
        self,
        provider: Optional[str] = None,
        hours: int = 24,
        now: Optional[datetime] = None,
        providers: Optional[Iterable[str]] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Hourly statistics, most recent hour first.

        Args:
            provider: Single provider, or None for every known provider
            hours: How many hours to look back (including the current one)
            now: Reference time (defaults to the tracker clock)
            providers: Extra provider names to include when provider is None

        Returns:
            {provider: [{hour, total_requests, successful_requests,
                         success_rate, average_duration_ms}, ...]}
        """
        now = now or self._clock()

        if provider is not None:
            names = [provider]
        else:
            names = list(self._providers)
            for name in providers or ():
                if name not in names:
                    names.append(name)

        performance: Dict[str, List[Dict[str, Any]]] = {}
        for name in names:
            buckets = []
            for offset in range(max(0, hours)):
                hour = now - timedelta(hours=offset)
                entries = self.cache.get(bucket_key(name, hour))
                if entries:
                    buckets.append(self._summarize(hour, entries))
            performance[name] = buckets

        return performance

    @staticmethod
    def _summarize(hour: datetime, entries: List[Dict[str, Any]]) -> Dict[str, Any]:
        total = len(entries)
        successful = sum(1 for entry in entries if entry.get('success'))
        average = sum(entry.get('duration_ms', 0.0) for entry in entries) / total

        return {
            'hour': hour.strftime('%Y-%m-%d %H:00'),
            'total_requests': total,
            'successful_requests': successful,
            'success_rate': round(successful / total * 100, 2),
            'average_duration_ms': round(average, 2),
        }
