# ============================================================================
# src/health_metrics/constants/reference_ranges.py
# ============================================================================
"""
Reference Ranges
- Normal range (min / max)
- Warning thresholds (borderline)
- Critical thresholds (high concern)

Blood pressure thresholds are expressed on the systolic reading, which is
the number status calculation compares against.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ReferenceRange:
    unit: str
    min: Optional[float] = None
    max: Optional[float] = None
    warning_low: Optional[float] = None
    warning_high: Optional[float] = None
    critical_low: Optional[float] = None
    critical_high: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value for key, value in (
                ("min", self.min),
                ("max", self.max),
                ("unit", self.unit),
                ("warning_low", self.warning_low),
                ("warning_high", self.warning_high),
                ("critical_low", self.critical_low),
                ("critical_high", self.critical_high),
            )
            if value is not None
        }


R = ReferenceRange

REFERENCE_RANGES: Mapping[str, ReferenceRange] = MappingProxyType({
    # Cholesterol panel
    'hdl': R('mg/dL', min=40, max=60, warning_low=35, critical_low=25),
    'ldl': R('mg/dL', min=0, max=100, warning_high=130, critical_high=190),
    'total_cholesterol': R('mg/dL', min=125, max=200, warning_high=240, critical_high=300),
    'triglycerides': R('mg/dL', min=0, max=150, warning_high=200, critical_high=500),
    'vldl': R('mg/dL', min=5, max=40, warning_high=50, critical_high=100),

    # Thyroid function
    'tsh': R('mIU/L', min=0.4, max=4.0, warning_low=0.1, warning_high=6.0,
             critical_low=0.01, critical_high=10.0),
    't3': R('ng/dL', min=80, max=200, warning_low=70, warning_high=220),
    't4': R('μg/dL', min=5.1, max=14.1, warning_low=4.5, warning_high=15.0),
    'free_t3': R('pg/mL', min=2.0, max=4.4, warning_low=1.8, warning_high=5.0),
    'free_t4': R('ng/dL', min=0.82, max=1.77, warning_low=0.7, warning_high=2.0),

    # Vitamins
    'vitamin_d': R('ng/mL', min=30, max=100, warning_low=20, critical_low=12, critical_high=150),
    'vitamin_b12': R('pg/mL', min=200, max=900, warning_low=300, critical_low=200),
    'folate': R('ng/mL', min=2.7, max=17.0, warning_low=3.0, critical_low=2.0),
    'iron': R('μg/dL', min=60, max=170, warning_low=50, critical_low=30,
              warning_high=200, critical_high=300),
    'ferritin': R('ng/mL', min=12, max=300, warning_low=15, critical_low=10,
                  warning_high=400, critical_high=1000),

    # Blood count
    'hemoglobin': R('g/dL', min=12.0, max=17.5, warning_low=11.0, critical_low=8.0,
                    warning_high=18.0, critical_high=20.0),
    'hematocrit': R('%', min=36, max=52, warning_low=32, critical_low=28,
                    warning_high=54, critical_high=60),
    'rbc_count': R('million/µL', min=4.5, max=5.5, warning_low=4.0, critical_low=3.5,
                   warning_high=6.0, critical_high=7.0),
    'wbc_count': R('thousand/µL', min=4.5, max=11.0, warning_low=4.0, critical_low=2.0,
                   warning_high=12.0, critical_high=20.0),
    'platelet_count': R('thousand/µL', min=150, max=450, warning_low=100, critical_low=50,
                        warning_high=500, critical_high=1000),

    # Glucose / diabetes
    'glucose_fasting': R('mg/dL', min=70, max=99, warning_low=65, warning_high=125,
                         critical_low=55, critical_high=180),
    'hba1c': R('%', min=4.0, max=5.6, warning_high=6.4, critical_high=10.0),

    # Liver function
    'alt': R('U/L', min=7, max=40, warning_high=50, critical_high=200),
    'ast': R('U/L', min=8, max=40, warning_high=50, critical_high=200),
    'alp': R('U/L', min=44, max=147, warning_high=200, critical_high=400),
    'bilirubin': R('mg/dL', min=0.1, max=1.2, warning_high=2.0, critical_high=5.0),

    # Kidney function
    'creatinine': R('mg/dL', min=0.7, max=1.3, warning_high=1.5, critical_high=2.0),
    'blood_urea_nitrogen': R('mg/dL', min=7, max=20, warning_high=25, critical_high=50),
    'uric_acid': R('mg/dL', min=3.4, max=7.0, warning_high=8.0, critical_high=10.0),
    'egfr': R('mL/min/1.73m²', min=90, max=120, warning_low=60, critical_low=30),

    # Electrolytes
    'sodium': R('mEq/L', min=136, max=145, warning_low=135, warning_high=146,
                critical_low=130, critical_high=150),
    'potassium': R('mEq/L', min=3.5, max=5.0, warning_low=3.3, warning_high=5.2,
                   critical_low=3.0, critical_high=6.0),
    'chloride': R('mEq/L', min=98, max=107, warning_low=96, warning_high=109,
                  critical_low=90, critical_high=115),

    # Cardiac markers
    'troponin': R('ng/mL', min=0, max=0.04, warning_high=0.1, critical_high=2.0),
    'ck_mb': R('ng/mL', min=0, max=3.0, warning_high=5.0, critical_high=10.0),
    'bnp': R('pg/mL', min=0, max=100, warning_high=300, critical_high=900),

    # Hormones
    'testosterone': R('ng/dL', min=300, max=1000, warning_low=250, critical_low=150),
    'estrogen': R('pg/mL', min=15, max=350, warning_low=10, warning_high=400),
    'cortisol': R('μg/dL', min=6.2, max=19.4, warning_low=5.0, warning_high=23.0,
                  critical_low=3.0, critical_high=30.0),
    'insulin': R('μIU/mL', min=2.6, max=24.9, warning_high=30.0, critical_high=50.0),

    # Blood pressure (systolic)
    'blood_pressure': R('mmHg', min=90, max=120, warning_low=90, warning_high=140,
                        critical_high=180),

    # Physical measurements
    'weight': R('kg', min=40, max=150),
    'bmi': R('kg/m²', min=18.5, max=24.9, warning_low=18.0, warning_high=29.9,
             critical_low=16.0, critical_high=40.0),
})


def get_reference_range(metric_type: str) -> Optional[ReferenceRange]:
    return REFERENCE_RANGES.get(metric_type)
