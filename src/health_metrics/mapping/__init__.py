# ============================================================================
# src/health_metrics/mapping/__init__.py
# ============================================================================
"""
Metric mapping - raw finding names to the standard metric taxonomy
"""

from .metric_mapper import (
    MappingResult,
    StandardMetricMapper,
    clean_parameter_name,
    normalize_name,
)

__all__ = [
    "MappingResult",
    "StandardMetricMapper",
    "clean_parameter_name",
    "normalize_name",
]
