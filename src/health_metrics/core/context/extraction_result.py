# ============================================================================
# src/health_metrics/core/context/extraction_result.py
# ============================================================================
"""
Extraction result envelope
- One ExtractionAttempt per provider tried
- Success: metrics, categories, provider used, timings
- Failure: last error and the attempt log
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...utils.exceptions import AllProvidersFailedError
from .health_metric import HealthMetric


@dataclass
class ExtractionAttempt:
    provider: str
    success: bool
    error: Optional[str] = None
    retryable: Optional[bool] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'provider': self.provider,
            'success': self.success,
            'duration_ms': round(self.duration_ms, 2),
        }
        if not self.success:
            data['error'] = self.error
            data['retryable'] = self.retryable
        return data


@dataclass
class ExtractionResult:
    success: bool
    metrics: List[HealthMetric] = field(default_factory=list)
    categories_found: List[str] = field(default_factory=list)

    provider_used: Optional[str] = None
    model_used: Optional[str] = None
    ai_response: Optional[Dict[str, Any]] = None

    # Timing (milliseconds)
    duration_ms: float = 0.0
    provider_duration_ms: float = 0.0

    primary_provider: Optional[str] = None
    secondary_provider: Optional[str] = None

    error: Optional[str] = None
    attempts: List[ExtractionAttempt] = field(default_factory=list)

    @property
    def attempts_made(self) -> int:
        return len(self.attempts)

    @property
    def metrics_count(self) -> int:
        return len(self.metrics)

    def user_message(self) -> str:
        """Generic text safe to show end users."""
        if not self.success:
            return "Extraction incomplete"
        return f"Extracted {self.metrics_count} health metrics"

    def raise_for_failure(self) -> None:
        if not self.success:
            raise AllProvidersFailedError(
                self.error or "All providers failed",
                attempts=[attempt.to_dict() for attempt in self.attempts],
            )

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {
                'success': False,
                'error': self.error or "All providers failed",
                'metrics': [],
                'attempts_made': self.attempts_made,
                'extraction_attempts': [attempt.to_dict() for attempt in self.attempts],
                'primary_provider': self.primary_provider,
                'secondary_provider': self.secondary_provider,
                'duration_ms': round(self.duration_ms, 2),
            }

        return {
            'success': True,
            'provider_used': self.provider_used,
            'model_used': self.model_used,
            'metrics': [metric.to_dict() for metric in self.metrics],
            'metrics_count': self.metrics_count,
            'categories_found': list(self.categories_found),
            'ai_response': self.ai_response,
            'duration_ms': round(self.duration_ms, 2),
            'provider_duration_ms': round(self.provider_duration_ms, 2),
            'attempts_made': self.attempts_made,
            'extraction_attempts': [attempt.to_dict() for attempt in self.attempts],
            'primary_provider': self.primary_provider,
            'secondary_provider': self.secondary_provider,
        }
