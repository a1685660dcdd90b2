# ============================================================================
# FILE: tests/unit/test_metric_mapper.py
# ============================================================================
"""
Unit tests for StandardMetricMapper
"""

import pytest

from src.health_metrics.constants.metric_aliases import METRIC_ALIASES
from src.health_metrics.constants.standard_metrics import STANDARD_MAPPINGS
from src.health_metrics.core.context.enums import MatchMethod
from src.health_metrics.mapping.metric_mapper import (
    StandardMetricMapper,
    clean_parameter_name,
    normalize_name,
)


@pytest.fixture
def mapper():
    return StandardMetricMapper()


class TestNameCleaning:

    def test_normalize_lowercases_and_strips_punctuation(self):
        assert normalize_name("  Total   Cholesterol!! ") == "total cholesterol"
        assert normalize_name("HDL-C") == "hdl-c"

    def test_clean_strips_qualifiers(self):
        assert clean_parameter_name("Serum Sodium") == "sodium"
        assert clean_parameter_name("Hemoglobin Level") == "hemoglobin"
        assert clean_parameter_name("Free T4") == "t4"

    def test_empty_name(self):
        assert normalize_name(None) == ""
        assert clean_parameter_name("") == ""


class TestCascade:

    @pytest.mark.parametrize("metric_type", sorted(STANDARD_MAPPINGS))
    def test_exact_reflexivity(self, mapper, metric_type):
        result = mapper.map_to_standard_type(metric_type)
        assert result is not None
        assert result.type == metric_type
        assert result.match_method == MatchMethod.EXACT

    @pytest.mark.parametrize("alias,target", sorted(METRIC_ALIASES.items()))
    def test_alias_equivalence(self, mapper, alias, target):
        result = mapper.map_to_standard_type(alias)
        assert result is not None
        assert result.type == target

    def test_display_style_names_are_exact(self, mapper):
        assert mapper.map_to_standard_type("Total Cholesterol").type == "total_cholesterol"
        assert mapper.map_to_standard_type("Free T4").type == "free_t4"
        assert mapper.map_to_standard_type("RBC Count").type == "rbc_count"

    def test_qualifier_stripped_exact(self, mapper):
        result = mapper.map_to_standard_type("Serum Sodium")
        assert result.type == "sodium"
        assert result.match_method == MatchMethod.EXACT

    def test_alias_match_method(self, mapper):
        result = mapper.map_to_standard_type("SGPT")
        assert result.type == "alt"
        assert result.match_method == MatchMethod.ALIAS

    def test_fuzzy_match(self, mapper):
        result = mapper.map_to_standard_type("Vitamin B12 (Cobalamin) serum")
        assert result.type == "vitamin_b12"
        assert result.match_method == MatchMethod.FUZZY

    def test_fuzzy_prefers_specific_vitamin(self, mapper):
        assert mapper.map_to_standard_type("Vitamin D 25-OH").type == "vitamin_d"
        assert mapper.map_to_standard_type("Vitamin B6 (pyridoxine)").type == "vitamin_b6"

    def test_contextual_unit_match(self, mapper):
        result = mapper.map_to_standard_type("Patient TSH3 reading", {"value": "2.1", "unit": "mIU/L"})
        assert result.type == "tsh"
        assert result.match_method == MatchMethod.CONTEXTUAL

    def test_blood_pressure_by_value_shape(self, mapper):
        result = mapper.map_to_standard_type("Reading", {"value": "120/80", "unit": "mmHg"})
        assert result.type == "blood_pressure"

        result = mapper.map_to_standard_type("BP", {"value": "120/80", "unit": "mmHg"})
        assert result.type == "blood_pressure"

    def test_blood_pressure_shape_wins_over_name(self, mapper):
        result = mapper.map_to_standard_type("Hemoglobin", {"value": "120/80", "unit": "mmHg"})
        assert result.type == "blood_pressure"

    def test_unknown_name(self, mapper):
        assert mapper.map_to_standard_type("xyzzy") is None
        assert mapper.map_to_standard_type("") is None

    def test_short_name_no_reverse_fuzzy(self, mapper):
        # "ol" is inside "cholesterol" but too short to count
        assert mapper.map_to_standard_type("ol") is None

    def test_can_handle(self, mapper):
        assert mapper.can_handle("HbA1c")
        assert mapper.can_handle("glycated hemoglobin")
        assert not mapper.can_handle("xyzzy")


class TestConfidence:

    def test_total_cholesterol_full_confidence(self, mapper):
        result = mapper.map_to_standard_type("Total Cholesterol", {"value": "220", "unit": "mg/dL"})
        assert result.type == "total_cholesterol"
        assert result.mapping_confidence == 1.0
        assert result.detected_unit == "mg/dL"

    def test_confidence_without_unit(self, mapper):
        result = mapper.map_to_standard_type("Total Cholesterol")
        assert result.mapping_confidence == pytest.approx(0.85)

    def test_low_priority_confidence(self, mapper):
        result = mapper.map_to_standard_type("BMI")
        assert result.mapping_confidence == pytest.approx(0.8)

    @pytest.mark.parametrize("metric_type", sorted(STANDARD_MAPPINGS))
    def test_confidence_monotone_and_clamped(self, metric_type):
        mapping = STANDARD_MAPPINGS[metric_type]
        without_unit = StandardMetricMapper.calculate_confidence(mapping, {})
        wrong_unit = StandardMetricMapper.calculate_confidence(mapping, {"unit": "parsecs"})
        matching_unit = StandardMetricMapper.calculate_confidence(mapping, {"unit": mapping.default_unit})

        assert 0.0 <= without_unit <= 1.0
        assert 0.0 <= matching_unit <= 1.0
        assert wrong_unit == without_unit
        assert matching_unit >= without_unit


class TestEnrichment:

    def test_validation_hints(self, mapper):
        result = mapper.map_to_standard_type("LDL", {"value": "150", "unit": "mg/dL"})
        hints = result.validation_hints

        assert hints["expected_unit"] == "mg/dL"
        assert hints["value_type"] == "numeric"
        assert hints["reference_ranges"]["max"] == 100

    def test_no_reference_ranges(self, mapper):
        result = mapper.map_to_standard_type("Height")
        assert result.reference_ranges is None
        assert "reference_ranges" not in result.validation_hints

    def test_match_method_excluded_from_equality(self, mapper):
        exact = mapper.map_to_standard_type("sodium")
        stripped = mapper.map_to_standard_type("Plasma Sodium")
        assert exact == stripped

    def test_to_dict(self, mapper):
        data = mapper.map_to_standard_type("hba1c", {"unit": "%"}).to_dict()
        assert data["type"] == "hba1c"
        assert data["category"] == "blood"
        assert data["match_method"] == "exact"
        assert data["mapping_confidence"] == 1.0


class TestIntrospection:

    def test_mapping_statistics(self, mapper):
        stats = mapper.get_mapping_statistics()
        assert stats["total_mappings"] == len(STANDARD_MAPPINGS)
        assert "organs" in stats["categories"]
        assert stats["by_category"]["vitamins"] >= 5

    def test_available_metric_types_sorted_by_priority(self, mapper):
        grouped = mapper.get_available_metric_types()
        heart = grouped["organs"]["heart"]
        priorities = [item["priority"] for item in heart]
        assert priorities == sorted(priorities)
        assert "hdl" in [item["type"] for item in heart]
