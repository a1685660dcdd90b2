# ============================================================================
# src/health_metrics/constants/validation_rules.py
# ============================================================================
"""
Metric Validation Tables
- Historically valid units per metric type
- Critical / unusual absolute bounds (extraction-error detection)
- Unit compatibility per metric type
- Human plausibility bounds

Critical bounds flag values that are almost certainly extraction errors.
Plausibility bounds are a separate, looser per-type table.
"""

from types import MappingProxyType
from typing import Mapping, Tuple


VALID_UNITS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'blood_pressure': ('mmHg',),
    'hdl': ('mg/dL', 'mmol/L'),
    'ldl': ('mg/dL', 'mmol/L'),
    'hba1c': ('%', 'mmol/mol'),
})

# (critical_min, critical_max, unusual_min, unusual_max)
MEDICAL_RANGES: Mapping[str, Tuple[float, float, float, float]] = MappingProxyType({
    'hdl': (5, 200, 20, 150),
    'ldl': (5, 500, 30, 300),
    'total_cholesterol': (50, 800, 100, 500),
    'glucose_fasting': (20, 800, 40, 400),
    'hemoglobin': (3, 25, 6, 20),
    'creatinine': (0.1, 15, 0.3, 8),
    'tsh': (0.001, 200, 0.01, 50),
    'vitamin_d': (1, 300, 5, 200),
})

UNIT_COMPATIBILITY: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'hdl': ('mg/dL', 'mmol/L'),
    'ldl': ('mg/dL', 'mmol/L'),
    'total_cholesterol': ('mg/dL', 'mmol/L'),
    'triglycerides': ('mg/dL', 'mmol/L'),
    'glucose_fasting': ('mg/dL', 'mmol/L'),
    'hba1c': ('%', 'mmol/mol'),
    'tsh': ('mIU/L', 'μIU/mL'),
    'vitamin_d': ('ng/mL', 'nmol/L'),
    'hemoglobin': ('g/dL', 'g/L'),
    'creatinine': ('mg/dL', 'μmol/L'),
    'blood_pressure': ('mmHg',),
})

# (min, max)
PLAUSIBILITY_RANGES: Mapping[str, Tuple[float, float]] = MappingProxyType({
    'hdl': (5, 200),
    'ldl': (10, 500),
    'total_cholesterol': (50, 800),
    'glucose_fasting': (20, 800),
    'hemoglobin': (3, 25),
    'creatinine': (0.1, 15),
    'tsh': (0.01, 200),
    'vitamin_d': (1, 300),
})

MAX_UNIT_LENGTH = 20

# Quality score deductions by severity
ERROR_PENALTIES: Mapping[str, float] = MappingProxyType({'high': 0.3, 'medium': 0.2, 'low': 0.1})
WARNING_PENALTIES: Mapping[str, float] = MappingProxyType({'high': 0.15, 'medium': 0.1, 'low': 0.05})
