# ============================================================================
# src/health_metrics/constants/standard_metrics.py
# ============================================================================
"""
Standard Metric Taxonomy
- One StandardMapping per canonical metric type
- Category / subcategory, display name, default unit
- Priority (tie-break rank, lower wins)
- Value shape (numeric, blood_pressure, range)

Built once at import time and exposed read-only.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional


class ValueType(str, Enum):
    NUMERIC = "numeric"
    BLOOD_PRESSURE = "blood_pressure"
    RANGE = "range"


@dataclass(frozen=True)
class StandardMapping:
    type: str
    category: str
    subcategory: Optional[str]
    display_name: str
    default_unit: str
    priority: int
    value_type: ValueType = ValueType.NUMERIC

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type,
            "category": self.category,
            "subcategory": self.subcategory,
            "display_name": self.display_name,
            "default_unit": self.default_unit,
            "priority": self.priority,
            "value_type": self.value_type.value,
        }


def _m(type_, category, subcategory, display_name, default_unit, priority,
       value_type=ValueType.NUMERIC):
    return type_, StandardMapping(
        type=type_,
        category=category,
        subcategory=subcategory,
        display_name=display_name,
        default_unit=default_unit,
        priority=priority,
        value_type=value_type,
    )


_MAPPINGS = [
    # Lipid panel
    _m("hdl", "organs", "heart", "HDL Cholesterol", "mg/dL", 1),
    _m("ldl", "organs", "heart", "LDL Cholesterol", "mg/dL", 1),
    _m("total_cholesterol", "organs", "heart", "Total Cholesterol", "mg/dL", 1),
    _m("triglycerides", "organs", "heart", "Triglycerides", "mg/dL", 1),
    _m("vldl", "organs", "heart", "VLDL Cholesterol", "mg/dL", 2),
    _m("non_hdl_cholesterol", "organs", "heart", "Non-HDL Cholesterol", "mg/dL", 2),

    # Thyroid function
    _m("tsh", "organs", "thyroid", "TSH", "mIU/L", 1),
    _m("t3", "organs", "thyroid", "T3", "ng/dL", 2),
    _m("t4", "organs", "thyroid", "T4", "μg/dL", 2),
    _m("free_t3", "organs", "thyroid", "Free T3", "pg/mL", 2),
    _m("free_t4", "organs", "thyroid", "Free T4", "ng/dL", 2),

    # Vitamins and minerals
    _m("vitamin_d", "vitamins", None, "Vitamin D", "ng/mL", 1),
    _m("vitamin_b12", "vitamins", None, "Vitamin B12", "pg/mL", 1),
    _m("vitamin_b6", "vitamins", None, "Vitamin B6", "ng/mL", 3),
    _m("folate", "vitamins", None, "Folate", "ng/mL", 2),
    _m("iron", "vitamins", None, "Iron", "μg/dL", 2),
    _m("ferritin", "vitamins", None, "Ferritin", "ng/mL", 2),
    _m("tibc", "vitamins", None, "TIBC", "μg/dL", 3),

    # Liver function
    _m("alt", "organs", "liver", "ALT", "U/L", 1),
    _m("ast", "organs", "liver", "AST", "U/L", 1),
    _m("alp", "organs", "liver", "ALP", "U/L", 2),
    _m("bilirubin", "organs", "liver", "Bilirubin", "mg/dL", 1),

    # Kidney function
    _m("creatinine", "organs", "kidney", "Creatinine", "mg/dL", 1),
    _m("blood_urea_nitrogen", "organs", "kidney", "Blood Urea Nitrogen", "mg/dL", 1),
    _m("uric_acid", "organs", "kidney", "Uric Acid", "mg/dL", 2),
    _m("egfr", "organs", "kidney", "eGFR", "mL/min/1.73m²", 2),

    # Blood count and chemistry
    _m("hemoglobin", "blood", None, "Hemoglobin", "g/dL", 1),
    _m("hematocrit", "blood", None, "Hematocrit", "%", 2),
    _m("rbc_count", "blood", None, "RBC Count", "million/µL", 2),
    _m("wbc_count", "blood", None, "WBC Count", "thousand/µL", 2),
    _m("platelet_count", "blood", None, "Platelet Count", "thousand/µL", 2),
    _m("glucose_fasting", "blood", None, "Fasting Glucose", "mg/dL", 1),
    _m("hba1c", "blood", None, "HbA1c", "%", 1),
    _m("sodium", "blood", None, "Sodium", "mEq/L", 2),
    _m("potassium", "blood", None, "Potassium", "mEq/L", 2),
    _m("chloride", "blood", None, "Chloride", "mEq/L", 3),

    # Cardiac markers
    _m("troponin", "organs", "heart", "Troponin", "ng/mL", 2),
    _m("ck_mb", "organs", "heart", "CK-MB", "ng/mL", 3),
    _m("bnp", "organs", "heart", "BNP", "pg/mL", 3),

    # Hormones
    _m("testosterone", "organs", "endocrine", "Testosterone", "ng/dL", 3),
    _m("estrogen", "organs", "endocrine", "Estrogen", "pg/mL", 3),
    _m("cortisol", "organs", "endocrine", "Cortisol", "μg/dL", 3),
    _m("insulin", "organs", "endocrine", "Insulin", "μIU/mL", 3),

    # Vitals
    _m("blood_pressure", "organs", "heart", "Blood Pressure", "mmHg", 1, ValueType.BLOOD_PRESSURE),

    # Body measurements
    _m("weight", "custom", None, "Weight", "kg", 4),
    _m("height", "custom", None, "Height", "cm", 4),
    _m("bmi", "custom", None, "BMI", "kg/m²", 4),
]

STANDARD_MAPPINGS: Mapping[str, StandardMapping] = MappingProxyType(dict(_MAPPINGS))

# Category used for types that have no standard mapping
CUSTOM_CATEGORY = "custom"


def get_standard_mapping(metric_type: str) -> Optional[StandardMapping]:
    return STANDARD_MAPPINGS.get(metric_type)
