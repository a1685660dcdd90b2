# ============================================================================
# src/health_metrics/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .standard_metrics import (
    ValueType,
    StandardMapping,
    STANDARD_MAPPINGS,
    CUSTOM_CATEGORY,
    get_standard_mapping,
)
from .metric_aliases import METRIC_ALIASES, FUZZY_PATTERNS, UNIT_CANDIDATES
from .reference_ranges import ReferenceRange, REFERENCE_RANGES, get_reference_range
from .validation_rules import (
    VALID_UNITS,
    MEDICAL_RANGES,
    UNIT_COMPATIBILITY,
    PLAUSIBILITY_RANGES,
    MAX_UNIT_LENGTH,
    ERROR_PENALTIES,
    WARNING_PENALTIES,
)
