# src/health_metrics/core/context/__init__.py

from .enums import MetricStatus, MetricSource, ExtractionState, MatchMethod
from .extraction_context import ExtractionContext
from .findings import (
    RawFinding,
    StringFinding,
    StructuredFinding,
    parse_finding,
    to_raw_finding,
    is_placeholder,
)
from .health_metric import (
    HealthMetric,
    calculate_status,
    map_ai_status,
    numeric_value,
    get_display_name,
    category_for,
    get_reference_ranges,
)
from .extraction_result import ExtractionAttempt, ExtractionResult

__all__ = [
    "MetricStatus",
    "MetricSource",
    "ExtractionState",
    "MatchMethod",
    "ExtractionContext",
    "RawFinding",
    "StringFinding",
    "StructuredFinding",
    "parse_finding",
    "to_raw_finding",
    "is_placeholder",
    "HealthMetric",
    "calculate_status",
    "map_ai_status",
    "numeric_value",
    "get_display_name",
    "category_for",
    "get_reference_ranges",
    "ExtractionAttempt",
    "ExtractionResult",
]
