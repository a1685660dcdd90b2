# ============================================================================
# src/health_metrics/mapping/metric_mapper.py
# ============================================================================
"""
Standard Metric Mapper

Maps a raw parameter name from an AI finding onto the standard metric
taxonomy. Matching cascade, first hit wins:

1. Exact      - cleaned name found in the standard table
2. Alias      - cleaned name found in the alias table
3. Fuzzy      - priority-ordered stem containment (either direction)
4. Contextual - unit / value shape disambiguation

Names are tried in their normalized form first and then with leading
qualifiers (serum, plasma, blood, total, free) and trailing qualifiers
(level, concentration, count) stripped, so "Free T4" stays free_t4 and
"RBC Count" stays rbc_count while "Serum Sodium" still finds sodium.

A "120/80" value with an mmHg unit is blood pressure whatever the name,
and that rule is evaluated before the cascade.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..constants.metric_aliases import FUZZY_PATTERNS, METRIC_ALIASES, UNIT_CANDIDATES
from ..constants.reference_ranges import get_reference_range
from ..constants.standard_metrics import STANDARD_MAPPINGS, StandardMapping
from ..core.context.enums import MatchMethod


BASE_CONFIDENCE = 0.8
UNIT_MATCH_BONUS = 0.15
PRIORITY_BONUS = 0.05
HIGH_PRIORITY_THRESHOLD = 2

# Reverse containment (name inside a stem) needs at least this many chars
MIN_REVERSE_FUZZY_LENGTH = 3

_LEADING_QUALIFIER = re.compile(r'^(serum|plasma|blood|total|free)\s+')
_TRAILING_QUALIFIER = re.compile(r'\s+(level|concentration|count)$')
_WHITESPACE = re.compile(r'\s+')
_SPECIAL_CHARS = re.compile(r'[^\w\s\-°µ]')
_BLOOD_PRESSURE_VALUE = re.compile(r'^\s*\d+\s*/\s*\d+\s*$')

logger = logging.getLogger(__name__)


def normalize_name(raw_name: Any) -> str:
    """Lowercase, collapse whitespace and drop punctuation (keeps - ° µ)."""
    clean = _WHITESPACE.sub(' ', str(raw_name or '').strip().lower())
    clean = _SPECIAL_CHARS.sub('', clean)
    return _WHITESPACE.sub(' ', clean).strip()


def clean_parameter_name(raw_name: Any) -> str:
    """normalize_name() plus removal of leading / trailing qualifiers."""
    clean = normalize_name(raw_name)
    clean = _LEADING_QUALIFIER.sub('', clean)
    clean = _TRAILING_QUALIFIER.sub('', clean)
    return clean.strip()


@dataclass(frozen=True)
class MappingResult:
    mapping: StandardMapping
    mapping_confidence: float
    detected_unit: Optional[str] = None
    validation_hints: Dict[str, Any] = field(default_factory=dict)
    reference_ranges: Optional[Dict[str, Any]] = None
    match_method: MatchMethod = field(default=MatchMethod.EXACT, compare=False)

    @property
    def type(self) -> str:
        return self.mapping.type

    @property
    def category(self) -> str:
        return self.mapping.category

    @property
    def subcategory(self) -> Optional[str]:
        return self.mapping.subcategory

    @property
    def default_unit(self) -> str:
        return self.mapping.default_unit

    def to_dict(self) -> Dict[str, Any]:
        data = self.mapping.to_dict()
        data.update({
            'mapping_confidence': self.mapping_confidence,
            'detected_unit': self.detected_unit,
            'validation_hints': self.validation_hints,
            'reference_ranges': self.reference_ranges,
            'match_method': self.match_method.value,
        })
        return data


class StandardMetricMapper:
    """Maps raw finding names to standard metric types."""

    def __init__(
        self,
        mappings: Mapping[str, StandardMapping] = STANDARD_MAPPINGS,
        aliases: Mapping[str, str] = METRIC_ALIASES,
        fuzzy_patterns: Tuple[Tuple[str, str], ...] = FUZZY_PATTERNS,
        unit_candidates: Mapping[str, Tuple[str, ...]] = UNIT_CANDIDATES,
    ):
        self.mappings = mappings
        self.fuzzy_patterns = fuzzy_patterns
        self.unit_candidates = unit_candidates
        self.logger = logging.getLogger(self.__class__.__name__)

        # Alias keys go through the same cleaning as input names
        self._aliases: Dict[str, str] = {}
        self._stripped_aliases: Dict[str, str] = {}
        for alias, metric_type in aliases.items():
            if metric_type not in mappings:
                self.logger.warning(f"Alias '{alias}' points to unknown type '{metric_type}'")
                continue
            self._aliases.setdefault(normalize_name(alias), metric_type)
            self._stripped_aliases.setdefault(clean_parameter_name(alias), metric_type)

    @property
    def name(self) -> str:
        return 'standard_metric_mapper'

    @property
    def priority(self) -> int:
        return 1

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def map_to_standard_type(
        self,
        raw_name: Any,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[MappingResult]:
        """
        Map a raw parameter name to a standard metric.

        Args:
            raw_name: Name as written by the AI provider
            context: Optional {value, unit, status} from the finding

        Returns:
            MappingResult, or None when nothing matches
        """
        context = context or {}
        normalized = normalize_name(raw_name)
        clean = clean_parameter_name(raw_name)

        self.logger.debug(f"Mapping parameter '{raw_name}' (clean: '{clean}')")

        if self._is_blood_pressure_reading(context) and 'blood_pressure' in self.mappings:
            return self._build_result(self.mappings['blood_pressure'], context, MatchMethod.CONTEXTUAL)

        for method, finder in (
            (MatchMethod.EXACT, lambda: self._find_exact(normalized) or self._find_exact(clean)),
            (MatchMethod.ALIAS, lambda: self._find_alias(normalized, clean)),
            (MatchMethod.FUZZY, lambda: self._find_fuzzy(clean)),
            (MatchMethod.CONTEXTUAL, lambda: self._find_contextual(clean, context)),
        ):
            mapping = finder()
            if mapping is not None:
                self.logger.debug(f"Found {method.value} match: '{raw_name}' -> {mapping.type}")
                return self._build_result(mapping, context, method)

        self.logger.info(f"No mapping found for parameter '{raw_name}' (clean: '{clean}')")
        return None

    def can_handle(self, raw_name: Any, context: Optional[Mapping[str, Any]] = None) -> bool:
        normalized = normalize_name(raw_name)
        clean = clean_parameter_name(raw_name)
        return (
            self._find_exact(normalized) is not None
            or self._find_exact(clean) is not None
            or self._find_alias(normalized, clean) is not None
            or self._find_fuzzy(clean) is not None
        )

    def _find_exact(self, name: str) -> Optional[StandardMapping]:
        if not name:
            return None
        return self.mappings.get(name) or self.mappings.get(name.replace(' ', '_'))

    def _find_alias(self, normalized: str, clean: str) -> Optional[StandardMapping]:
        metric_type = self._aliases.get(normalized) or self._stripped_aliases.get(clean)
        return self.mappings.get(metric_type) if metric_type else None

    def _find_fuzzy(self, clean: str) -> Optional[StandardMapping]:
        if not clean:
            return None
        for stem, metric_type in self.fuzzy_patterns:
            if stem in clean or (len(clean) >= MIN_REVERSE_FUZZY_LENGTH and clean in stem):
                mapping = self.mappings.get(metric_type)
                if mapping is not None:
                    return mapping
        return None

    @staticmethod
    def _is_blood_pressure_reading(context: Mapping[str, Any]) -> bool:
        value = str(context.get('value') or '')
        unit = str(context.get('unit') or '').lower()
        return bool(_BLOOD_PRESSURE_VALUE.match(value)) and 'mmhg' in unit

    def _find_contextual(self, clean: str, context: Mapping[str, Any]) -> Optional[StandardMapping]:
        if self._is_blood_pressure_reading(context):
            return self.mappings.get('blood_pressure')

        unit = str(context.get('unit') or '').strip().lower()
        for candidate in self.unit_candidates.get(unit, ()):
            if candidate in clean or candidate.replace('_', ' ') in clean:
                mapping = self.mappings.get(candidate)
                if mapping is not None:
                    return mapping
        return None

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def _build_result(
        self,
        mapping: StandardMapping,
        context: Mapping[str, Any],
        method: MatchMethod,
    ) -> MappingResult:
        unit = context.get('unit') or None
        ranges = get_reference_range(mapping.type)
        ranges_dict = ranges.to_dict() if ranges else None

        return MappingResult(
            mapping=mapping,
            mapping_confidence=self.calculate_confidence(mapping, context),
            detected_unit=unit,
            validation_hints=self.get_validation_hints(mapping, ranges_dict),
            reference_ranges=ranges_dict,
            match_method=method,
        )

    @staticmethod
    def calculate_confidence(mapping: StandardMapping, context: Mapping[str, Any]) -> float:
        confidence = BASE_CONFIDENCE

        unit = context.get('unit')
        if unit and mapping.default_unit and str(unit).strip().lower() == mapping.default_unit.lower():
            confidence += UNIT_MATCH_BONUS

        if mapping.priority <= HIGH_PRIORITY_THRESHOLD:
            confidence += PRIORITY_BONUS

        return round(min(1.0, max(0.0, confidence)), 4)

    @staticmethod
    def get_validation_hints(mapping: StandardMapping, ranges: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        hints: Dict[str, Any] = {}
        if ranges:
            hints['reference_ranges'] = ranges
        if mapping.default_unit:
            hints['expected_unit'] = mapping.default_unit
        hints['value_type'] = mapping.value_type.value
        return hints

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_available_metric_types(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        """Standard types grouped by category and subcategory, by priority."""
        grouped: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
        for metric_type, mapping in self.mappings.items():
            subcategory = mapping.subcategory or 'general'
            grouped.setdefault(mapping.category, {}).setdefault(subcategory, []).append({
                'type': metric_type,
                'display_name': mapping.display_name,
                'default_unit': mapping.default_unit,
                'priority': mapping.priority,
            })

        for subcategories in grouped.values():
            for metrics in subcategories.values():
                metrics.sort(key=lambda item: item['priority'])

        return grouped

    def get_mapping_statistics(self) -> Dict[str, Any]:
        by_category: Dict[str, int] = {}
        by_priority: Dict[int, int] = {}
        subcategories = []
        for mapping in self.mappings.values():
            by_category[mapping.category] = by_category.get(mapping.category, 0) + 1
            by_priority[mapping.priority] = by_priority.get(mapping.priority, 0) + 1
            if mapping.subcategory and mapping.subcategory not in subcategories:
                subcategories.append(mapping.subcategory)

        return {
            'total_mappings': len(self.mappings),
            'categories': sorted(by_category),
            'subcategories': subcategories,
            'by_category': by_category,
            'by_priority': dict(sorted(by_priority.items())),
            'aliases_count': len(self._aliases),
            'fuzzy_patterns': len(self.fuzzy_patterns),
        }
