# ============================================================================
# src/health_metrics/utils/__init__.py
# ============================================================================
"""
Utility modules for the health metrics engine.
"""

from .exceptions import (
    HealthMetricsError,
    ConfigurationError,
    CacheError,
    ValidationError,
    ExtractionError,
    ProviderError,
    InputError,
    AuthError,
    QuotaError,
    BadRequestError,
    RateLimitError,
    ServerError,
    ParseError,
    ExhaustedRetriesError,
    AllProvidersFailedError,
)

from .logging import (
    setup_logging,
    JsonFormatter,
    redact_secrets,
    LogContext,
    log_performance,
)

from .metrics import (
    MetricsCollector,
    Timer,
    ExtractionMetrics,
    get_metrics,
)

from .cache import (
    CacheEntry,
    CacheStatistics,
    TTLCache,
)

__all__ = [
    # Exceptions
    'HealthMetricsError',
    'ConfigurationError',
    'CacheError',
    'ValidationError',
    'ExtractionError',
    'ProviderError',
    'InputError',
    'AuthError',
    'QuotaError',
    'BadRequestError',
    'RateLimitError',
    'ServerError',
    'ParseError',
    'ExhaustedRetriesError',
    'AllProvidersFailedError',
    # Logging
    'setup_logging',
    'JsonFormatter',
    'redact_secrets',
    'LogContext',
    'log_performance',
    # Metrics
    'MetricsCollector',
    'Timer',
    'ExtractionMetrics',
    'get_metrics',
    # Cache
    'CacheEntry',
    'CacheStatistics',
    'TTLCache',
]
