# ============================================================================
# src/health_metrics/constants/metric_aliases.py
# ============================================================================
"""
Metric Name Aliases & Matching Hints
- Synonyms, abbreviations and long forms → canonical metric type
- Priority-ordered fuzzy stems (specific before generic)
- Unit → candidate types for contextual matching
"""

from types import MappingProxyType
from typing import Mapping, Tuple


# Raw alias spellings as they appear in reports. StandardMetricMapper
# normalizes the keys with the same cleaning it applies to input names.
METRIC_ALIASES: Mapping[str, str] = MappingProxyType({
    # Cholesterol variations
    'hdl cholesterol': 'hdl',
    'hdl-c': 'hdl',
    'high density lipoprotein': 'hdl',
    'high-density lipoprotein': 'hdl',
    'ldl cholesterol': 'ldl',
    'ldl-c': 'ldl',
    'low density lipoprotein': 'ldl',
    'low-density lipoprotein': 'ldl',
    'cholesterol': 'total_cholesterol',
    'chol': 'total_cholesterol',
    'triglyceride': 'triglycerides',
    'tg': 'triglycerides',
    'vldl cholesterol': 'vldl',
    'non hdl cholesterol': 'non_hdl_cholesterol',

    # Thyroid variations
    'thyroid stimulating hormone': 'tsh',
    'thyrotropin': 'tsh',
    'triiodothyronine': 't3',
    'thyroxine': 't4',
    'total triiodothyronine (t3)': 't3',
    'total triiodothyronine': 't3',
    'total thyroxine (t4)': 't4',
    'total thyroxine': 't4',
    'tsh - ultrasensitive': 'tsh',
    'tsh ultrasensitive': 'tsh',
    'tsh-ultrasensitive': 'tsh',

    # Vitamin variations
    'vit d': 'vitamin_d',
    '25-hydroxy vitamin d': 'vitamin_d',
    'vitamin d3': 'vitamin_d',
    'vit b12': 'vitamin_b12',
    'cobalamin': 'vitamin_b12',
    'folic acid': 'folate',

    # Liver function variations
    'alanine aminotransferase': 'alt',
    'sgpt': 'alt',
    'aspartate aminotransferase': 'ast',
    'sgot': 'ast',
    'alkaline phosphatase': 'alp',
    'total bilirubin': 'bilirubin',

    # Kidney function variations
    'serum creatinine': 'creatinine',
    'bun': 'blood_urea_nitrogen',
    'estimated gfr': 'egfr',

    # Blood variations
    'hb': 'hemoglobin',
    'haemoglobin': 'hemoglobin',
    'hct': 'hematocrit',
    'red blood cell count': 'rbc_count',
    'white blood cell count': 'wbc_count',
    'platelets': 'platelet_count',

    # Glucose variations
    'glucose': 'glucose_fasting',
    'blood sugar': 'glucose_fasting',
    'fasting glucose': 'glucose_fasting',
    'glycated hemoglobin': 'hba1c',
    'glycosylated hemoglobin': 'hba1c',

    # Blood pressure variations
    'bp': 'blood_pressure',
    'systolic': 'blood_pressure',
    'diastolic': 'blood_pressure',
})


# Checked in order; the first stem contained in the name (or containing it)
# wins. Specific vitamin stems precede the generic "vitamin" default.
FUZZY_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ('cholesterol', 'total_cholesterol'),
    ('b12', 'vitamin_b12'),
    ('b6', 'vitamin_b6'),
    ('folate', 'folate'),
    ('vitamin d', 'vitamin_d'),
    ('vitamin', 'vitamin_d'),
    ('sugar', 'glucose_fasting'),
    ('pressure', 'blood_pressure'),
    ('hemoglobin', 'hemoglobin'),
    ('creatinine', 'creatinine'),
    ('bilirubin', 'bilirubin'),
    ('thyroid', 'tsh'),
)


# Lowercased unit → candidate types, first stem found in the name wins
UNIT_CANDIDATES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'mg/dl': ('hdl', 'ldl', 'triglycerides'),
    'miu/l': ('tsh',),
    'ng/ml': ('vitamin_d', 'ferritin'),
    'pg/ml': ('vitamin_b12',),
    'u/l': ('alt', 'ast', 'alp'),
    'g/dl': ('hemoglobin',),
    '%': ('hba1c', 'hematocrit'),
})
