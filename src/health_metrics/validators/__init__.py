# ============================================================================
# src/health_metrics/validators/__init__.py
# ============================================================================
"""
Validators Package

Range and shape sanity checks for mapped health metrics.
"""

from .metric_validator import (
    MetricValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    'MetricValidator',
    'ValidationIssue',
    'ValidationResult',
]
