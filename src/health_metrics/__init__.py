# ============================================================================
# src/health_metrics/__init__.py
# ============================================================================
"""
Health Metrics Extraction Engine

Multi-provider AI extraction of standardized health metrics from medical
report text.
"""

# core first: providers depend on core.config_manager
from .core import (
    ConfigManager,
    ExtractionResult,
    HealthMetric,
    HealthMetricsExtractionService,
    InMemoryMetricStore,
    MetricStore,
)
from .mapping import StandardMetricMapper
from .validators import MetricValidator

__version__ = "1.0.0"

__all__ = [
    'ConfigManager',
    'ExtractionResult',
    'HealthMetric',
    'HealthMetricsExtractionService',
    'InMemoryMetricStore',
    'MetricStore',
    'StandardMetricMapper',
    'MetricValidator',
]
