# ============================================================================
# src/health_metrics/core/context/findings.py
# ============================================================================
"""
AI finding representations

Providers emit findings either as free text ("Glucose: 95 mg/dL") or as
objects ({"finding": ..., "value": ..., "unit": ...}). Both shapes are
wrapped once at parse time (StringFinding | StructuredFinding) and resolved
into a single RawFinding; nothing downstream branches on the shape again.
"""

import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union


PLACEHOLDER_VALUES = frozenset({"", "n/a", "na", "none", "null"})

_UNIT = r"([a-zA-Z\/\%µμ°]+)?"

# "Elevated level of LDL 160 mg/dL"
_STATUS_LEVEL_PATTERN = re.compile(
    r"^(normal|elevated|high|low|decreased|increased|borderline|slightly)\s+level\s+of\s+(.+?)\s+([\d\.]+)\s*" + _UNIT,
    re.IGNORECASE,
)
# "Glucose: 95 mg/dL"
_COLON_PATTERN = re.compile(r"^(.+?):\s*([\d\.]+)\s*" + _UNIT, re.IGNORECASE)
# "HDL 45 mg/dL (normal)"
_TRAILING_STATUS_PATTERN = re.compile(
    r"^(.+?)\s+([\d\.]+)\s*" + _UNIT + r"\s*\((normal|high|low|elevated|decreased)\)",
    re.IGNORECASE,
)


def is_placeholder(value: Any) -> bool:
    """True for empty values and literal "N/A" style placeholders."""
    if value is None:
        return True
    return str(value).strip().lower() in PLACEHOLDER_VALUES


@dataclass(frozen=True)
class RawFinding:
    """One clinical observation in canonical shape. Never persisted as-is."""
    name: str
    value: str
    unit: str = ""
    reference: str = ""
    status: str = "unknown"
    description: str = ""

    def mapping_context(self) -> Dict[str, str]:
        return {"value": self.value, "unit": self.unit, "status": self.status}

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class StringFinding:
    text: str

    def to_raw_finding(self) -> Optional[RawFinding]:
        text = self.text.strip()
        if is_placeholder(text):
            return None

        match = _STATUS_LEVEL_PATTERN.match(text)
        if match:
            return RawFinding(
                name=match.group(2).strip(),
                value=match.group(3),
                unit=match.group(4) or "",
                status=match.group(1).lower(),
                description=text,
            )

        match = _COLON_PATTERN.match(text)
        if match:
            return RawFinding(
                name=match.group(1).strip(),
                value=match.group(2),
                unit=match.group(3) or "",
                description=text,
            )

        match = _TRAILING_STATUS_PATTERN.match(text)
        if match:
            return RawFinding(
                name=match.group(1).strip(),
                value=match.group(2),
                unit=match.group(3) or "",
                status=match.group(4).lower(),
                description=text,
            )

        return None


@dataclass(frozen=True)
class StructuredFinding:
    data: Dict[str, Any]

    def to_raw_finding(self) -> Optional[RawFinding]:
        name = self.data.get("finding")
        value = self.data.get("value")
        if is_placeholder(name) or is_placeholder(value):
            return None

        name = str(name).strip()
        return RawFinding(
            name=name,
            value=str(value).strip(),
            unit=str(self.data.get("unit") or "").strip(),
            reference=str(self.data.get("reference") or "").strip(),
            status=str(self.data.get("status") or "unknown").strip().lower(),
            description=str(self.data.get("description") or name),
        )


Finding = Union[StringFinding, StructuredFinding]


def parse_finding(item: Any) -> Optional[Finding]:
    """Wrap a provider finding in its tagged shape; unsupported shapes give None."""
    if isinstance(item, str):
        return StringFinding(item)
    if isinstance(item, dict):
        return StructuredFinding(item)
    return None


def to_raw_finding(item: Any) -> Optional[RawFinding]:
    finding = parse_finding(item)
    return finding.to_raw_finding() if finding is not None else None
