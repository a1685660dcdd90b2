# ============================================================================
# src/health_metrics/core/context/health_metric.py
# ============================================================================
"""
HealthMetric draft record
- Categorisation by metric type (standard table, then supplementary types)
- Status calculation against reference ranges
- AI status hint mapping

Status is computed once when the draft is created and never recomputed.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple, Union

from ...constants.reference_ranges import ReferenceRange, get_reference_range
from ...constants.standard_metrics import CUSTOM_CATEGORY, get_standard_mapping
from .enums import MetricSource, MetricStatus

logger = logging.getLogger(__name__)


# Types seen in stored metrics that have no entry in the standard table
_SUPPLEMENTARY_CATEGORIES: Dict[str, Tuple[str, Optional[str]]] = {
    'total_bilirubin': ('organs', 'liver'),
    'direct_bilirubin': ('organs', 'liver'),
    'indirect_bilirubin': ('organs', 'liver'),
    'bun': ('organs', 'kidney'),
    'growth_hormone': ('organs', 'endocrine'),
    'blood_sugar': ('blood', None),
    'co2': ('blood', None),
    'folic_acid': ('vitamins', None),
    'transferrin_saturation': ('vitamins', None),
    'vitamin_c': ('vitamins', None),
    'vitamin_e': ('vitamins', None),
    'zinc': ('vitamins', None),
    'magnesium': ('vitamins', None),
    'calcium': ('vitamins', None),
    'body_fat_percentage': (CUSTOM_CATEGORY, None),
    'muscle_mass': (CUSTOM_CATEGORY, None),
}

_SUPPLEMENTARY_DISPLAY_NAMES = {
    'blood_sugar': 'Blood Sugar',
}

_SOURCE_DISPLAY = {
    MetricSource.MANUAL: 'Manual Entry',
    MetricSource.REPORT: 'Medical Report',
    MetricSource.DEVICE: 'Connected Device',
}

_AI_STATUS_MAP = {
    'normal': MetricStatus.NORMAL,
    'elevated': MetricStatus.HIGH,
    'high': MetricStatus.HIGH,
    'low': MetricStatus.HIGH,
    'decreased': MetricStatus.HIGH,
    'increased': MetricStatus.HIGH,
    'borderline': MetricStatus.BORDERLINE,
    'slightly': MetricStatus.BORDERLINE,
    'mild': MetricStatus.BORDERLINE,
}

_NUMERIC_PATTERN = re.compile(r'^-?\d+(\.\d+)?$')
_LEADING_NUMBER_PATTERN = re.compile(r'^(\d+\.?\d*)')


def get_display_name(metric_type: str) -> str:
    """Human readable name, falling back to title-cased type."""
    mapping = get_standard_mapping(metric_type)
    if mapping:
        return mapping.display_name
    if metric_type in _SUPPLEMENTARY_DISPLAY_NAMES:
        return _SUPPLEMENTARY_DISPLAY_NAMES[metric_type]
    return metric_type.replace('_', ' ').title()


def category_for(metric_type: str) -> Tuple[str, Optional[str]]:
    """(category, subcategory) for a type; unknown types land in custom."""
    mapping = get_standard_mapping(metric_type)
    if mapping:
        return mapping.category, mapping.subcategory
    if metric_type in _SUPPLEMENTARY_CATEGORIES:
        return _SUPPLEMENTARY_CATEGORIES[metric_type]

    logger.info(f"Unknown metric type '{metric_type}', assigned to custom category")
    return CUSTOM_CATEGORY, None


def get_reference_ranges(metric_type: str) -> Optional[Dict[str, Any]]:
    ranges = get_reference_range(metric_type)
    return ranges.to_dict() if ranges else None


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return bool(_NUMERIC_PATTERN.match(str(value).strip()))


def numeric_value(metric_type: str, value: Any) -> Optional[float]:
    """
    Number used for status calculation.

    Plain numbers are used as-is, blood pressure uses the systolic reading,
    anything else uses its leading number if it has one.
    """
    if value is None:
        return None
    if is_numeric(value):
        return float(value)

    text = str(value).strip()
    if metric_type == 'blood_pressure' and '/' in text:
        systolic = text.split('/', 1)[0].strip()
        return float(systolic) if is_numeric(systolic) else None

    match = _LEADING_NUMBER_PATTERN.match(text)
    if match:
        return float(match.group(1))
    return None


def calculate_status(
    metric_type: str,
    value: Any,
    ranges: Optional[ReferenceRange] = None,
) -> MetricStatus:
    if ranges is None:
        ranges = get_reference_range(metric_type)
    if ranges is None:
        return MetricStatus.NORMAL

    number = numeric_value(metric_type, value)
    if number is None:
        return MetricStatus.NORMAL

    # Critical low is reported as high concern too
    if ranges.critical_low is not None and number <= ranges.critical_low:
        return MetricStatus.HIGH
    if ranges.critical_high is not None and number >= ranges.critical_high:
        return MetricStatus.HIGH

    if ranges.warning_low is not None and number <= ranges.warning_low:
        return MetricStatus.BORDERLINE
    if ranges.warning_high is not None and number >= ranges.warning_high:
        return MetricStatus.BORDERLINE

    if ranges.min is not None and ranges.max is not None:
        if number < ranges.min or number > ranges.max:
            return MetricStatus.BORDERLINE

    return MetricStatus.NORMAL


def map_ai_status(ai_status: Optional[str]) -> MetricStatus:
    """Map a provider's status hint onto the three stored flags."""
    return _AI_STATUS_MAP.get(str(ai_status or '').strip().lower(), MetricStatus.NORMAL)


@dataclass
class HealthMetric:
    patient_id: Optional[Union[int, str]]
    type: str
    value: str
    unit: str
    measured_at: Union[date, datetime, str]
    notes: str = ""
    source: MetricSource = MetricSource.REPORT
    context: str = "medical_test"
    status: MetricStatus = MetricStatus.NORMAL
    category: str = CUSTOM_CATEGORY
    subcategory: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        patient_id: Optional[Union[int, str]],
        metric_type: str,
        value: Any,
        unit: str,
        measured_at: Union[date, datetime, str],
        notes: str = "",
        source: MetricSource = MetricSource.REPORT,
        context: str = "medical_test",
        ai_status: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "HealthMetric":
        """
        Build a draft with category and status fixed at creation.

        The range-based status is used when the value is numeric and the
        type has reference ranges; otherwise the AI hint decides.
        """
        category, subcategory = category_for(metric_type)
        ranges = get_reference_range(metric_type)

        if ranges is not None and numeric_value(metric_type, value) is not None:
            status = calculate_status(metric_type, value, ranges)
        else:
            status = map_ai_status(ai_status)

        return cls(
            patient_id=patient_id,
            type=metric_type,
            value=str(value),
            unit=unit,
            measured_at=measured_at,
            notes=notes,
            source=source,
            context=context,
            status=status,
            category=category,
            subcategory=subcategory,
            metadata=dict(metadata or {}),
        )

    @property
    def display_name(self) -> str:
        return get_display_name(self.type)

    @property
    def source_display(self) -> str:
        return _SOURCE_DISPLAY.get(self.source, 'Unknown Source')

    def calculate_status(self) -> MetricStatus:
        return calculate_status(self.type, self.value)

    def to_dict(self) -> Dict[str, Any]:
        measured_at = self.measured_at
        if isinstance(measured_at, (date, datetime)):
            measured_at = measured_at.isoformat()

        return {
            'patient_id': self.patient_id,
            'type': self.type,
            'display_name': self.display_name,
            'value': self.value,
            'unit': self.unit,
            'measured_at': measured_at,
            'notes': self.notes,
            'source': self.source.value,
            'context': self.context,
            'status': self.status.value,
            'category': self.category,
            'subcategory': self.subcategory,
            'metadata': self.metadata,
        }
