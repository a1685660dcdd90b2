# ============================================================================
# src/health_metrics/core/context/extraction_context.py
# ============================================================================
"""
Per-call extraction context
- Source report and patient identifiers
- Report type and date
- Prior AI summary and OCR flag

Immutable: built once by the orchestrator and passed to every provider.
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class ExtractionContext:
    report_id: Optional[Union[int, str]] = None
    patient_id: Optional[Union[int, str]] = None
    report_type: Optional[str] = None
    report_date: Optional[Union[date, datetime, str]] = None
    uploaded_by: Optional[Union[int, str]] = None
    existing_ai_summary: Optional[Any] = None
    has_ocr_data: bool = False

    @classmethod
    def from_report(
        cls,
        report: Mapping[str, Any],
        patient_id: Optional[Union[int, str]] = None,
        prior_ai_summary: Optional[Any] = None,
    ) -> "ExtractionContext":
        """
        Build a context from a report record.

        Expected keys: id, report_date, type. Optional: ocr_status,
        uploaded_by, patient_id, ai_summary.
        """
        report_type = report.get('type')
        return cls(
            report_id=report.get('id'),
            patient_id=patient_id if patient_id is not None else report.get('patient_id'),
            report_type=report_type,
            report_date=report.get('report_date'),
            uploaded_by=report.get('uploaded_by'),
            existing_ai_summary=prior_ai_summary if prior_ai_summary is not None else report.get('ai_summary'),
            has_ocr_data=report_type == 'image' and report.get('ocr_status') == 'completed',
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
