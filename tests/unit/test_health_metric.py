# ============================================================================
# FILE: tests/unit/test_health_metric.py
# ============================================================================
"""
Unit tests for HealthMetric drafts and status calculation
"""

from datetime import date

import pytest

from src.health_metrics.core.context.enums import MetricSource, MetricStatus
from src.health_metrics.core.context.health_metric import (
    HealthMetric,
    calculate_status,
    category_for,
    get_display_name,
    get_reference_ranges,
    map_ai_status,
    numeric_value,
)


class TestCalculateStatus:

    def test_total_cholesterol_220_is_borderline(self):
        assert calculate_status("total_cholesterol", "220") == MetricStatus.BORDERLINE

    @pytest.mark.parametrize("value,expected", [
        ("180", MetricStatus.NORMAL),
        ("200", MetricStatus.NORMAL),
        ("240", MetricStatus.BORDERLINE),
        ("300", MetricStatus.HIGH),
        ("100", MetricStatus.BORDERLINE),
    ])
    def test_total_cholesterol_bands(self, value, expected):
        assert calculate_status("total_cholesterol", value) == expected

    def test_critical_low_is_high_concern(self):
        assert calculate_status("hemoglobin", "7.5") == MetricStatus.HIGH

    def test_warning_low(self):
        assert calculate_status("hemoglobin", "10.9") == MetricStatus.BORDERLINE

    @pytest.mark.parametrize("value,expected", [
        ("120/80", MetricStatus.NORMAL),
        ("150/95", MetricStatus.BORDERLINE),
        ("185/110", MetricStatus.HIGH),
    ])
    def test_blood_pressure_uses_systolic(self, value, expected):
        assert calculate_status("blood_pressure", value) == expected

    def test_no_reference_ranges(self):
        assert calculate_status("height", "250") == MetricStatus.NORMAL

    def test_non_numeric_value(self):
        assert calculate_status("total_cholesterol", "positive") == MetricStatus.NORMAL

    def test_leading_number(self):
        assert numeric_value("tsh", "2.5 mIU/L") == 2.5
        assert calculate_status("tsh", "12 mIU/L") == MetricStatus.HIGH

    def test_numeric_value_edge_cases(self):
        assert numeric_value("hdl", None) is None
        assert numeric_value("hdl", 45) == 45.0
        assert numeric_value("blood_pressure", "abc/80") is None


@pytest.mark.parametrize("hint,expected", [
    ("normal", MetricStatus.NORMAL),
    ("Elevated", MetricStatus.HIGH),
    ("low", MetricStatus.HIGH),
    ("increased", MetricStatus.HIGH),
    ("borderline", MetricStatus.BORDERLINE),
    ("mild", MetricStatus.BORDERLINE),
    ("unknown", MetricStatus.NORMAL),
    (None, MetricStatus.NORMAL),
])
def test_map_ai_status(hint, expected):
    assert map_ai_status(hint) == expected


class TestLookups:

    def test_display_name(self):
        assert get_display_name("hba1c") == "HbA1c"
        assert get_display_name("blood_sugar") == "Blood Sugar"
        assert get_display_name("body_fat_percentage") == "Body Fat Percentage"

    def test_category_for(self):
        assert category_for("tsh") == ("organs", "thyroid")
        assert category_for("vitamin_d") == ("vitamins", None)
        assert category_for("bun") == ("organs", "kidney")
        assert category_for("mystery_marker") == ("custom", None)

    def test_reference_ranges(self):
        ranges = get_reference_ranges("ldl")
        assert ranges["unit"] == "mg/dL"
        assert ranges["critical_high"] == 190
        assert get_reference_ranges("height") is None


class TestHealthMetric:

    def test_create_uses_reference_ranges(self):
        metric = HealthMetric.create(
            patient_id=42,
            metric_type="total_cholesterol",
            value="220",
            unit="mg/dL",
            measured_at=date(2024, 1, 15),
            ai_status="normal",
        )

        assert metric.status == MetricStatus.BORDERLINE
        assert metric.category == "organs"
        assert metric.subcategory == "heart"
        assert metric.source == MetricSource.REPORT
        assert metric.context == "medical_test"

    def test_create_falls_back_to_ai_status(self):
        metric = HealthMetric.create(
            patient_id=42, metric_type="height", value="180", unit="cm",
            measured_at="2024-01-15", ai_status="high",
        )
        assert metric.status == MetricStatus.HIGH

        metric = HealthMetric.create(
            patient_id=42, metric_type="total_cholesterol", value="see notes", unit="mg/dL",
            measured_at="2024-01-15", ai_status="borderline",
        )
        assert metric.status == MetricStatus.BORDERLINE

    def test_status_fixed_at_creation(self):
        metric = HealthMetric.create(
            patient_id=1, metric_type="hdl", value="45", unit="mg/dL", measured_at="2024-01-15"
        )
        metric.value = "20"

        assert metric.status == MetricStatus.NORMAL
        assert metric.calculate_status() == MetricStatus.HIGH

    def test_value_stored_as_string(self):
        metric = HealthMetric.create(
            patient_id=1, metric_type="hdl", value=45, unit="mg/dL", measured_at="2024-01-15"
        )
        assert metric.value == "45"

    def test_to_dict(self):
        metric = HealthMetric.create(
            patient_id=7,
            metric_type="vitamin_d",
            value="18",
            unit="ng/mL",
            measured_at=date(2024, 3, 1),
            notes="Auto-extracted from medical report (ID: 3)",
            metadata={"original_name": "Vit D"},
        )
        data = metric.to_dict()

        assert data["display_name"] == "Vitamin D"
        assert data["measured_at"] == "2024-03-01"
        assert data["status"] == "borderline"
        assert data["source"] == "report"
        assert data["category"] == "vitamins"
        assert data["metadata"] == {"original_name": "Vit D"}
        assert metric.source_display == "Medical Report"
