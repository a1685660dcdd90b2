# ============================================================================
# src/health_metrics/core/__init__.py
# ============================================================================
"""
Core components for the health metrics extraction engine.
"""

from .config import get_static_config, reload_static_config, build_static_config
from .config_manager import ConfigManager, OverrideStore, ProviderConfig, resolve
from .context import (
    ExtractionContext,
    ExtractionAttempt,
    ExtractionResult,
    ExtractionState,
    HealthMetric,
    MetricSource,
    MetricStatus,
    RawFinding,
    calculate_status,
)
from .performance import ProviderPerformanceTracker
from .metric_store import MetricStore, InMemoryMetricStore

# Imports providers and mapping; keep last
from .orchestrator import HealthMetricsExtractionService

__all__ = [
    # Configuration
    'get_static_config',
    'reload_static_config',
    'build_static_config',
    'ConfigManager',
    'OverrideStore',
    'ProviderConfig',
    'resolve',

    # Context
    'ExtractionContext',
    'ExtractionAttempt',
    'ExtractionResult',
    'ExtractionState',
    'HealthMetric',
    'MetricSource',
    'MetricStatus',
    'RawFinding',
    'calculate_status',

    # Services
    'ProviderPerformanceTracker',
    'MetricStore',
    'InMemoryMetricStore',
    'HealthMetricsExtractionService',
]
