# ============================================================================
# src/health_metrics/validators/metric_validator.py
# ============================================================================
"""
Metric Validator

Sanity checks for a mapped metric draft before it is stored:
- Required fields (type, value, unit)
- Value shape (numeric, blood pressure "XXX/YYY", dash range)
- Unit against historically valid units and the compatibility table
- Critical / unusual absolute bounds (likely extraction errors)
- Human plausibility bounds

Issues never block ingestion. Errors make a metric invalid, warnings only
lower its quality score. Batch results are used to monitor provider
quality over time.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

from ..constants.standard_metrics import ValueType, get_standard_mapping
from ..constants.validation_rules import (
    ERROR_PENALTIES,
    MAX_UNIT_LENGTH,
    MEDICAL_RANGES,
    PLAUSIBILITY_RANGES,
    UNIT_COMPATIBILITY,
    VALID_UNITS,
    WARNING_PENALTIES,
)
from ..core.context.health_metric import HealthMetric, is_numeric


REQUIRED_FIELDS = ('type', 'value', 'unit')

_NUMERIC_VALUE = re.compile(r'^\d+\.?\d*$')
_BLOOD_PRESSURE_VALUE = re.compile(r'^\d+/\d+$')
_RANGE_VALUE = re.compile(r'^\d+\.?\d*\s*-\s*\d+\.?\d*$')


@dataclass
class ValidationIssue:
    type: str
    message: str
    severity: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {'type': self.type, 'message': self.message, 'severity': self.severity}
        data.update(self.details)
        return data


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    quality_score: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'errors': [issue.to_dict() for issue in self.errors],
            'warnings': [issue.to_dict() for issue in self.warnings],
            'quality_score': self.quality_score,
        }


MetricInput = Union[HealthMetric, Mapping[str, Any]]


class MetricValidator:
    """Range and shape checks producing a quality score."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_validation_rules(self, metric_type: str) -> Dict[str, Any]:
        mapping = get_standard_mapping(metric_type)
        value_type = mapping.value_type if mapping else ValueType.NUMERIC
        return {
            'value_type': value_type.value,
            'valid_units': list(VALID_UNITS.get(metric_type, ())),
            'required_fields': list(REQUIRED_FIELDS),
        }

    @staticmethod
    def _as_dict(metric: MetricInput) -> Dict[str, Any]:
        if isinstance(metric, HealthMetric):
            return {'type': metric.type, 'value': metric.value, 'unit': metric.unit}
        return dict(metric)

    def validate(self, metric: MetricInput) -> ValidationResult:
        data = self._as_dict(metric)
        result = ValidationResult()

        self._check_required_fields(data, result)
        self._check_formats(data, result)
        self._check_medical_ranges(data, result)
        self._check_unit_compatibility(data, result)
        self._check_plausibility(data, result)

        result.quality_score = self.calculate_quality_score(result)
        result.valid = not result.errors

        self.logger.debug(
            f"Metric validation completed: type={data.get('type', 'unknown')} "
            f"valid={result.valid} quality={result.quality_score} "
            f"errors={len(result.errors)} warnings={len(result.warnings)}"
        )
        return result

    def validate_batch(self, metrics: List[MetricInput]) -> Dict[str, Any]:
        results = [self.validate(metric) for metric in metrics]

        error_counts: Counter = Counter()
        warning_counts: Counter = Counter()
        for result in results:
            error_counts.update(issue.type for issue in result.errors)
            warning_counts.update(issue.type for issue in result.warnings)

        total = len(results)
        valid = sum(1 for result in results if result.valid)
        average = round(sum(result.quality_score for result in results) / total, 3) if total else 0.0

        return {
            'results': results,
            'stats': {
                'total': total,
                'valid': valid,
                'invalid': total - valid,
                'average_quality_score': average,
                'common_errors': dict(error_counts),
                'common_warnings': dict(warning_counts),
            },
        }

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_required_fields(data: Dict[str, Any], result: ValidationResult):
        for name in REQUIRED_FIELDS:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                result.errors.append(ValidationIssue(
                    type='missing_required_field',
                    message=f"Required field '{name}' is missing or empty",
                    severity='high',
                    details={'field': name},
                ))

    def _check_formats(self, data: Dict[str, Any], result: ValidationResult):
        rules = self.get_validation_rules(str(data.get('type') or ''))
        value_type = data.get('value_type') or rules['value_type']

        value = data.get('value')
        if value is not None and str(value).strip():
            value = str(value).strip()
            if value_type == ValueType.NUMERIC.value:
                if not is_numeric(value) and not _NUMERIC_VALUE.match(value):
                    result.errors.append(ValidationIssue(
                        type='invalid_value_format',
                        message=f"Value '{value}' is not a valid number",
                        severity='high',
                        details={'expected': 'numeric', 'received': value},
                    ))
            elif value_type == ValueType.BLOOD_PRESSURE.value:
                if not _BLOOD_PRESSURE_VALUE.match(value):
                    result.errors.append(ValidationIssue(
                        type='invalid_blood_pressure_format',
                        message=f"Blood pressure '{value}' should be in format 'XXX/YYY'",
                        severity='high',
                        details={'expected': 'XXX/YYY format', 'received': value},
                    ))
            elif value_type == ValueType.RANGE.value:
                if not _RANGE_VALUE.match(value):
                    result.warnings.append(ValidationIssue(
                        type='unusual_range_format',
                        message=f"Range value '{value}' may not be in standard format",
                        severity='low',
                    ))

        unit = data.get('unit')
        if unit is not None and str(unit) != '':
            unit = str(unit)
            valid_units = rules['valid_units']
            if valid_units and unit not in valid_units:
                result.warnings.append(ValidationIssue(
                    type='unexpected_unit',
                    message=f"Unit '{unit}' is not commonly used for this metric type",
                    severity='medium',
                    details={'expected': valid_units, 'received': unit},
                ))
            if len(unit) > MAX_UNIT_LENGTH:
                result.warnings.append(ValidationIssue(
                    type='unusual_unit_length',
                    message=f"Unit '{unit}' is unusually long",
                    severity='low',
                ))

    @staticmethod
    def _check_medical_ranges(data: Dict[str, Any], result: ValidationResult):
        metric_type = data.get('type')
        value = data.get('value')
        if metric_type not in MEDICAL_RANGES or value is None or not is_numeric(value):
            return

        number = float(value)
        critical_min, critical_max, unusual_min, unusual_max = MEDICAL_RANGES[metric_type]

        if number < critical_min:
            result.errors.append(ValidationIssue(
                type='critically_low_value',
                message=f"Value {value} is critically low for {metric_type}",
                severity='high',
                details={'value': number, 'critical_min': critical_min},
            ))
        if number > critical_max:
            result.errors.append(ValidationIssue(
                type='critically_high_value',
                message=f"Value {value} is critically high for {metric_type}",
                severity='high',
                details={'value': number, 'critical_max': critical_max},
            ))

        if number < unusual_min:
            result.warnings.append(ValidationIssue(
                type='unusually_low_value',
                message=f"Value {value} is unusually low for {metric_type}",
                severity='medium',
                details={'value': number, 'unusual_min': unusual_min},
            ))
        if number > unusual_max:
            result.warnings.append(ValidationIssue(
                type='unusually_high_value',
                message=f"Value {value} is unusually high for {metric_type}",
                severity='medium',
                details={'value': number, 'unusual_max': unusual_max},
            ))

    @staticmethod
    def _check_unit_compatibility(data: Dict[str, Any], result: ValidationResult):
        metric_type = data.get('type')
        if metric_type not in UNIT_COMPATIBILITY:
            return

        unit = str(data.get('unit') or '')
        valid_units = list(UNIT_COMPATIBILITY[metric_type])
        if unit not in valid_units:
            result.warnings.append(ValidationIssue(
                type='unit_incompatibility',
                message=f"Unit '{unit}' may not be compatible with {metric_type}",
                severity='medium',
                details={'valid_units': valid_units, 'received_unit': unit},
            ))

    @staticmethod
    def _check_plausibility(data: Dict[str, Any], result: ValidationResult):
        metric_type = data.get('type')
        value = data.get('value')
        if metric_type not in PLAUSIBILITY_RANGES or value is None or not is_numeric(value):
            return

        number = float(value)
        low, high = PLAUSIBILITY_RANGES[metric_type]
        if number < low or number > high:
            result.warnings.append(ValidationIssue(
                type='implausible_value',
                message=f"Value {value} {data.get('unit') or ''} seems implausible for {metric_type}",
                severity='high',
                details={'value': number, 'plausible_range': {'min': low, 'max': high}},
            ))

    @staticmethod
    def calculate_quality_score(result: ValidationResult) -> float:
        score = 1.0
        for issue in result.errors:
            score -= ERROR_PENALTIES.get(issue.severity, 0.0)
        for issue in result.warnings:
            score -= WARNING_PENALTIES.get(issue.severity, 0.0)
        return max(0.0, round(score, 3))
