# ============================================================================
# src/health_metrics/core/context/enums.py
# ============================================================================
"""
Extraction Enums
- Metric status flags
- Metric source tags
- Orchestrator states
- Mapper match methods
"""

from enum import Enum


class MetricStatus(str, Enum):
    NORMAL = "normal"
    BORDERLINE = "borderline"
    HIGH = "high"           # Also used for critically low values


class MetricSource(str, Enum):
    MANUAL = "manual"
    REPORT = "report"
    DEVICE = "device"


class ExtractionState(str, Enum):
    NOT_STARTED = "not_started"
    TRYING_PROVIDER = "trying_provider"
    NEXT_PROVIDER = "next_provider"
    SUCCESS = "success"
    ALL_FAILED = "all_failed"


class MatchMethod(str, Enum):
    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    CONTEXTUAL = "contextual"
