# ============================================================================
# src/health_metrics/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the health metrics extraction engine.

Provider errors carry a `retryable` flag that drives the retry loop inside
a provider and the fallback decision inside the orchestrator.
"""

from typing import Any, List, Optional


class HealthMetricsError(Exception):
    """Base exception for all health metrics errors."""
    pass


class ConfigurationError(HealthMetricsError):
    """Invalid or unknown configuration."""
    pass


class CacheError(HealthMetricsError):
    """Error with the caching layer."""
    pass


class ValidationError(HealthMetricsError):
    """Error during metric validation."""
    pass


class ExtractionError(HealthMetricsError):
    """Error during health metrics extraction."""
    pass


class ProviderError(ExtractionError):
    """
    Error raised by an AI extraction provider.

    Unclassified provider errors are treated as transient.
    """
    retryable = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable


class InputError(ProviderError):
    """Input text is empty, too short or too large."""
    retryable = False


class AuthError(ProviderError):
    """Invalid or missing credentials."""
    retryable = False


class QuotaError(ProviderError):
    """Account quota exhausted."""
    retryable = False


class BadRequestError(ProviderError):
    """Malformed request rejected by the backend."""
    retryable = False


class RateLimitError(ProviderError):
    """Backend rate limit hit."""
    retryable = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class ServerError(ProviderError):
    """Backend 5xx, network failure or timeout."""
    retryable = True


class ParseError(ProviderError):
    """Response could not be parsed as JSON, even after repair."""
    retryable = True

    def __init__(self, message: str, provider: Optional[str] = None, response_text: str = ""):
        super().__init__(message, provider=provider)
        self.response_text = response_text


class ExhaustedRetriesError(ProviderError):
    """All retry attempts failed. Wraps the last underlying error."""
    retryable = False

    def __init__(self, message: str, provider: Optional[str], last_error: ProviderError, attempts: int):
        super().__init__(message, provider=provider, status_code=last_error.status_code)
        self.last_error = last_error
        self.attempts = attempts
        # Fallback classification follows the underlying cause
        self.retryable = last_error.retryable


class AllProvidersFailedError(ExtractionError):
    """Every configured provider failed for one extraction call."""

    def __init__(self, message: str, attempts: Optional[List[Any]] = None):
        super().__init__(message)
        self.attempts = attempts or []
