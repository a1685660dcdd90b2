# ============================================================================
# FILE: tests/unit/test_metric_validator.py
# ============================================================================
"""
Unit tests for MetricValidator
"""

import pytest

from src.health_metrics.core.context.health_metric import HealthMetric
from src.health_metrics.validators.metric_validator import (
    MetricValidator,
    ValidationIssue,
    ValidationResult,
)


@pytest.fixture
def validator():
    return MetricValidator()


def _types(issues):
    return [issue.type for issue in issues]


def test_valid_metric(validator):
    result = validator.validate({"type": "hdl", "value": "45", "unit": "mg/dL"})

    assert result.valid is True
    assert result.errors == []
    assert result.warnings == []
    assert result.quality_score == 1.0


def test_accepts_health_metric(validator):
    metric = HealthMetric.create(
        patient_id=1, metric_type="ldl", value="120", unit="mg/dL", measured_at="2024-01-15"
    )
    result = validator.validate(metric)
    assert result.valid is True


def test_missing_required_fields(validator):
    result = validator.validate({"type": "weight", "value": "", "unit": None})

    assert result.valid is False
    assert _types(result.errors) == ["missing_required_field", "missing_required_field"]
    assert result.errors[0].details["field"] == "value"
    assert result.quality_score == pytest.approx(0.4)


def test_invalid_numeric_value(validator):
    result = validator.validate({"type": "hdl", "value": "abc", "unit": "mg/dL"})

    assert result.valid is False
    assert "invalid_value_format" in _types(result.errors)


def test_decimal_value_is_numeric(validator):
    result = validator.validate({"type": "creatinine", "value": "1.1", "unit": "mg/dL"})
    assert result.valid is True


class TestBloodPressure:

    def test_valid_format(self, validator):
        result = validator.validate({"type": "blood_pressure", "value": "120/80", "unit": "mmHg"})
        assert result.valid is True
        assert result.quality_score == 1.0

    def test_invalid_format(self, validator):
        result = validator.validate({"type": "blood_pressure", "value": "120-80", "unit": "mmHg"})

        assert result.valid is False
        assert _types(result.errors) == ["invalid_blood_pressure_format"]
        assert result.errors[0].severity == "high"

    def test_unexpected_unit(self, validator):
        result = validator.validate({"type": "blood_pressure", "value": "120/80", "unit": "kPa"})

        assert result.valid is True
        assert "unexpected_unit" in _types(result.warnings)
        assert "unit_incompatibility" in _types(result.warnings)


def test_range_value_type_warning(validator):
    result = validator.validate({
        "type": "custom_range",
        "value": "between ten and twenty",
        "unit": "mg/dL",
        "value_type": "range",
    })

    assert result.valid is True
    assert _types(result.warnings) == ["unusual_range_format"]
    assert result.warnings[0].severity == "low"
    assert result.quality_score == pytest.approx(0.95)


def test_range_value_type_accepts_dash_range(validator):
    result = validator.validate({"type": "custom_range", "value": "10 - 20", "unit": "mg/dL", "value_type": "range"})
    assert result.warnings == []


def test_unusual_unit_length(validator):
    result = validator.validate({"type": "weight", "value": "70", "unit": "kilograms-per-person-x"})

    assert _types(result.warnings) == ["unusual_unit_length"]
    assert result.quality_score == pytest.approx(0.95)


class TestMedicalRanges:

    def test_critically_low_hdl(self, validator):
        result = validator.validate({"type": "hdl", "value": "3", "unit": "mg/dL"})

        assert result.valid is False
        assert _types(result.errors) == ["critically_low_value"]
        assert "unusually_low_value" in _types(result.warnings)
        assert "implausible_value" in _types(result.warnings)
        # 1 - 0.3 (high error) - 0.1 (medium warning) - 0.15 (high warning)
        assert result.quality_score == pytest.approx(0.45)

    def test_critically_high_glucose(self, validator):
        result = validator.validate({"type": "glucose_fasting", "value": "950", "unit": "mg/dL"})

        assert result.valid is False
        assert "critically_high_value" in _types(result.errors)
        assert "unusually_high_value" in _types(result.warnings)

    def test_unusual_is_only_a_warning(self, validator):
        result = validator.validate({"type": "hdl", "value": "160", "unit": "mg/dL"})

        assert result.valid is True
        assert _types(result.warnings) == ["unusually_high_value"]
        assert result.quality_score == pytest.approx(0.9)

    def test_non_numeric_value_skips_range_checks(self, validator):
        result = validator.validate({"type": "tsh", "value": "<0.01", "unit": "mIU/L"})

        assert "critically_low_value" not in _types(result.errors)
        assert "implausible_value" not in _types(result.warnings)


def test_unit_incompatibility(validator):
    result = validator.validate({"type": "vitamin_d", "value": "35", "unit": "mg/dL"})

    assert result.valid is True
    assert _types(result.warnings) == ["unit_incompatibility"]
    assert result.warnings[0].details["valid_units"] == ["ng/mL", "nmol/L"]


def test_quality_score_floor():
    result = ValidationResult(errors=[
        ValidationIssue(type="missing_required_field", message="x", severity="high")
        for _ in range(5)
    ])
    assert MetricValidator.calculate_quality_score(result) == 0.0


def test_validation_rules(validator):
    rules = validator.get_validation_rules("blood_pressure")
    assert rules["value_type"] == "blood_pressure"
    assert rules["valid_units"] == ["mmHg"]
    assert rules["required_fields"] == ["type", "value", "unit"]

    assert validator.get_validation_rules("unknown_type")["value_type"] == "numeric"


def test_validate_batch(validator):
    batch = validator.validate_batch([
        {"type": "hdl", "value": "45", "unit": "mg/dL"},
        {"type": "hdl", "value": "3", "unit": "mg/dL"},
        {"type": "blood_pressure", "value": "high", "unit": "mmHg"},
    ])
    stats = batch["stats"]

    assert stats["total"] == 3
    assert stats["valid"] == 1
    assert stats["invalid"] == 2
    assert stats["common_errors"] == {"critically_low_value": 1, "invalid_blood_pressure_format": 1}
    assert stats["common_warnings"]["implausible_value"] == 1
    assert len(batch["results"]) == 3


def test_validate_batch_empty(validator):
    stats = validator.validate_batch([])["stats"]
    assert stats["total"] == 0
    assert stats["average_quality_score"] == 0.0


def test_to_dict_flattens_details(validator):
    data = validator.validate({"type": "hdl", "value": "3", "unit": "mg/dL"}).to_dict()
    assert data["valid"] is False
    assert data["errors"][0]["type"] == "critically_low_value"
    assert data["errors"][0]["critical_min"] == 5
