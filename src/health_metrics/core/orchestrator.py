# ============================================================================
# src/health_metrics/core/orchestrator.py
# ============================================================================
"""
Health Metrics Extraction Service

This is the MAIN entry point for extracting health metrics from report text.

Flow:
1. Build the extraction context from the report record
2. Try providers in configured order (primary, secondary, the rest)
3. Map each AI finding onto the standard metric taxonomy
4. Build HealthMetric drafts (status fixed at creation) and save them
5. Record per-attempt telemetry
6. Return the result envelope

Provider errors never escape: every failure is classified, recorded in the
attempt log, and the next provider is tried while fallback is enabled.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .config_manager import ConfigManager
from ..mapping.metric_mapper import StandardMetricMapper
from ..providers.base import BaseExtractionProvider, Sleeper
from ..providers.factory import create_provider
from ..providers.prompts import SAMPLE_MEDICAL_TEXT
from ..utils.cache import TTLCache
from ..utils.exceptions import ProviderError
from ..utils.metrics import ExtractionMetrics, Timer, get_metrics
from ..validators.metric_validator import MetricValidator
from .context.enums import ExtractionState, MetricSource
from .context.extraction_context import ExtractionContext
from .context.extraction_result import ExtractionAttempt, ExtractionResult
from .context.findings import to_raw_finding
from .context.health_metric import HealthMetric
from .metric_store import InMemoryMetricStore, MetricStore
from .performance import DEFAULT_PERFORMANCE_TTL, ProviderPerformanceTracker


ALL_FAILED_MESSAGE = "All providers failed"

ProviderFactory = Callable[..., BaseExtractionProvider]


class HealthMetricsExtractionService:
    """
    Multi-provider extraction with ordered fallback.

    Responsibilities:
    1. Provider ordering and fallback (explicit state machine)
    2. Finding to metric mapping
    3. Draft persistence through the MetricStore
    4. Telemetry (metrics collector + hourly performance buckets)

    Collaborators are injectable; defaults come from the environment.
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        mapper: Optional[StandardMetricMapper] = None,
        validator: Optional[MetricValidator] = None,
        store: Optional[MetricStore] = None,
        performance: Optional[ProviderPerformanceTracker] = None,
        metrics: Optional[ExtractionMetrics] = None,
        providers: Optional[Dict[str, BaseExtractionProvider]] = None,
        provider_factory: ProviderFactory = create_provider,
        sleep: Optional[Sleeper] = None,
    ):
        self.config = config_manager or ConfigManager()
        self.mapper = mapper or StandardMetricMapper()
        self.validator = validator
        self.store = store if store is not None else InMemoryMetricStore()
        self.metrics = metrics if metrics is not None else ExtractionMetrics(get_metrics())
        self.logger = logging.getLogger(self.__class__.__name__)

        if performance is None:
            settings = self.config.performance_settings()
            ttl = settings.get('ttl', DEFAULT_PERFORMANCE_TTL)
            performance = ProviderPerformanceTracker(
                cache=TTLCache(max_size=5000, default_ttl=ttl),
                ttl=ttl,
                enabled=settings.get('log_provider_performance', True),
            )
        self.performance = performance

        # Explicit provider instances take precedence over the factory
        self._providers = providers
        self._provider_factory = provider_factory
        self._sleep = sleep
        # Factory-built instances handed out so far, closed by close()
        self._opened: Dict[int, BaseExtractionProvider] = {}

        self.logger.info("Health metrics extraction service initialized")

    # ========================================================================
    # PROVIDER RESOLUTION
    # ========================================================================

    def get_provider(self, name: str) -> Optional[BaseExtractionProvider]:
        """Registered instance for name, or a factory-built one from current config."""
        if self._providers is not None:
            return self._providers.get(name)

        config = self.config.provider_config(name)
        provider = self._provider_factory(name, config, limits=self.config.limits(), sleep=self._sleep)
        self._opened[id(provider)] = provider
        return provider

    # ========================================================================
    # MAIN EXTRACTION PIPELINE
    # ========================================================================

    async def extract_metrics(
        self,
        raw_text: Union[str, bytes],
        prior_ai_summary: Optional[Any] = None,
        patient_id: Optional[Union[int, str]] = None,
        report: Optional[Mapping[str, Any]] = None,
        deadline: Optional[float] = None,
    ) -> ExtractionResult:
        """
        Extract health metrics from report text.

        Args:
            raw_text: Report text (OCR / PDF text extraction output)
            prior_ai_summary: Existing AI summary for the report, if any
            patient_id: Patient the metrics belong to
            report: Report record {id, report_date, type, ocr_status, uploaded_by}
            deadline: Optional overall timeout in seconds

        Returns:
            ExtractionResult (never raises for provider failures)

        Example:
            result = await service.extract_metrics(
                text, patient_id=42, report={"id": 7, "report_date": "2024-01-15", "type": "pdf"}
            )
        """
        context = ExtractionContext.from_report(report or {}, patient_id, prior_ai_summary)
        attempts: List[ExtractionAttempt] = []

        self.logger.info(
            f"Starting health metrics extraction: report_id={context.report_id} "
            f"patient_id={context.patient_id} text_length={len(raw_text or '')}"
        )

        with Timer(self.metrics.metrics, 'extraction.duration_ms') as timer:
            try:
                if deadline is not None:
                    result = await asyncio.wait_for(self._run(raw_text, context, attempts), timeout=deadline)
                else:
                    result = await self._run(raw_text, context, attempts)
            except asyncio.TimeoutError:
                self.logger.error(
                    f"Health metrics extraction timed out: report_id={context.report_id} deadline={deadline}s"
                )
                result = self._failure(f"Extraction timed out after {deadline}s", attempts)

        result.duration_ms = timer.duration_ms
        self.metrics.record_outcome(result.success, result.metrics_count)

        if result.success:
            self.logger.info(
                f"Health metrics extraction completed: provider={result.provider_used} "
                f"metrics_created={result.metrics_count} categories={result.categories_found} "
                f"attempts={result.attempts_made} duration_ms={result.duration_ms:.2f}"
            )
        else:
            self.logger.error(
                f"All AI providers failed for health metrics extraction: "
                f"report_id={context.report_id} attempts={result.attempts_made} error={result.error}"
            )
        return result

    async def _run(
        self,
        raw_text: Union[str, bytes],
        context: ExtractionContext,
        attempts: List[ExtractionAttempt],
    ) -> ExtractionResult:
        state = ExtractionState.NOT_STARTED
        fallback_enabled = self.config.is_fallback_enabled()
        stop_on_success = self.config.stop_on_first_success()

        first_success: Optional[ExtractionResult] = None
        last_error: Optional[str] = None

        for name in self.config.ordered_providers():
            provider = self.get_provider(name)
            if provider is None or not provider.is_available():
                self.logger.warning(f"Provider {name} not available, skipping")
                continue

            state = ExtractionState.TRYING_PROVIDER
            self.logger.info(f"Attempting extraction with provider: {name}")
            started = time.perf_counter()

            failure: Optional[Exception] = None
            retryable = True
            try:
                ai_response = await provider.extract_metrics(raw_text, context)
            except ProviderError as e:
                failure, retryable = e, e.retryable
            except Exception as e:
                # Unclassified provider bugs still fall back to the next provider
                self.logger.error(f"Unexpected error from provider {name}: {e}", exc_info=True)
                failure = e

            if failure is not None:
                duration_ms = (time.perf_counter() - started) * 1000
                attempts.append(ExtractionAttempt(
                    provider=name,
                    success=False,
                    error=str(failure),
                    retryable=retryable,
                    duration_ms=duration_ms,
                ))
                self._record_attempt(name, False, duration_ms, str(failure))
                last_error = str(failure)

                self.logger.warning(
                    f"Provider extraction failed: provider={name} "
                    f"error_type={type(failure).__name__} retryable={retryable} error={failure}"
                )

                if not fallback_enabled:
                    state = ExtractionState.ALL_FAILED
                    break
                state = ExtractionState.NEXT_PROVIDER
                continue

            duration_ms = (time.perf_counter() - started) * 1000
            attempts.append(ExtractionAttempt(provider=name, success=True, duration_ms=duration_ms))
            self._record_attempt(name, True, duration_ms)

            if first_success is None:
                metrics, categories = self.process_ai_response(ai_response, context)
                first_success = ExtractionResult(
                    success=True,
                    metrics=metrics,
                    categories_found=categories,
                    provider_used=name,
                    model_used=provider.model,
                    ai_response=ai_response,
                    provider_duration_ms=duration_ms,
                    primary_provider=self.config.primary_provider(),
                    secondary_provider=self.config.secondary_provider(),
                    attempts=attempts,
                )
            state = ExtractionState.SUCCESS

            if stop_on_success:
                break

        if first_success is not None:
            self.logger.debug(f"Extraction finished in state {ExtractionState.SUCCESS.value}")
            return first_success

        if state != ExtractionState.ALL_FAILED:
            state = ExtractionState.ALL_FAILED
        self.logger.debug(f"Extraction finished in state {state.value}")
        return self._failure(last_error or ALL_FAILED_MESSAGE, attempts)

    def _failure(self, error: str, attempts: List[ExtractionAttempt]) -> ExtractionResult:
        return ExtractionResult(
            success=False,
            error=error,
            attempts=attempts,
            primary_provider=self.config.primary_provider(),
            secondary_provider=self.config.secondary_provider(),
        )

    def _record_attempt(self, provider: str, success: bool, duration_ms: float, error: Optional[str] = None):
        self.metrics.record_attempt(provider, success, duration_ms)
        self.performance.record(provider, success, duration_ms, error)

    # ========================================================================
    # FINDING PROCESSING
    # ========================================================================

    def process_ai_response(
        self,
        ai_response: Mapping[str, Any],
        context: ExtractionContext,
    ) -> Tuple[List[HealthMetric], List[str]]:
        """
        Turn normalized provider findings into saved HealthMetric drafts.

        Returns:
            (metrics, categories found in first-seen order)
        """
        metrics: List[HealthMetric] = []
        categories: List[str] = []

        for item in ai_response.get('key_findings') or []:
            try:
                metric = self._build_metric(item, context)
            except Exception as e:
                self.logger.error(f"Error processing finding {item!r}: {e}", exc_info=True)
                continue
            if metric is None:
                continue

            try:
                saved = self.store.save(metric)
            except Exception as e:
                self.logger.error(f"Error saving health metric {metric.type}: {e}", exc_info=True)
                continue

            metrics.append(saved)
            if saved.category not in categories:
                categories.append(saved.category)

            self.logger.debug(
                f"Created health metric: type={saved.type} value={saved.value} "
                f"unit={saved.unit} status={saved.status.value}"
            )

        return metrics, categories

    def _build_metric(self, item: Any, context: ExtractionContext) -> Optional[HealthMetric]:
        """Map one finding to a validated, unsaved metric; None when it is skipped."""
        finding = to_raw_finding(item)
        if finding is None:
            self.logger.debug(f"Skipping finding without usable name/value: {item!r}")
            return None

        mapping = self.mapper.map_to_standard_type(finding.name, finding.mapping_context())
        self.metrics.record_mapping(mapping is not None)
        if mapping is None:
            self.logger.info(f"Could not map parameter to standard type: {finding.name}")
            return None

        metric = HealthMetric.create(
            patient_id=context.patient_id,
            metric_type=mapping.type,
            value=finding.value,
            unit=finding.unit or mapping.default_unit,
            measured_at=context.report_date or datetime.now(),
            notes=f"Auto-extracted from medical report (ID: {context.report_id})",
            source=MetricSource.REPORT,
            context='medical_test',
            ai_status=finding.status,
            metadata={
                'original_name': finding.name,
                'reference': finding.reference,
                'ai_status': finding.status,
                'mapping_confidence': mapping.mapping_confidence,
                'match_method': mapping.match_method.value,
            },
        )

        if self.validator is not None:
            validation = self.validator.validate(metric)
            metric.metadata['quality_score'] = validation.quality_score
            if not validation.valid:
                self.logger.warning(
                    f"Metric failed validation: type={metric.type} value={metric.value} "
                    f"errors={[issue.type for issue in validation.errors]}"
                )

        return metric

    # ========================================================================
    # ADMIN / DIAGNOSTICS
    # ========================================================================

    async def extract_with_provider(
        self,
        raw_text: Union[str, bytes],
        context: Optional[ExtractionContext],
        provider_name: str,
    ) -> Dict[str, Any]:
        """
        Run one named provider directly (no fallback, no metric creation).

        Raises:
            ConfigurationError: unknown provider name
            ProviderError: provider unavailable or extraction failed
        """
        self.config.validate_provider(provider_name)
        provider = self.get_provider(provider_name)
        if provider is None or not provider.is_available():
            raise ProviderError(f"Provider {provider_name} is not available", provider=provider_name, retryable=False)

        started = time.perf_counter()
        try:
            response = await provider.extract_metrics(raw_text, context or ExtractionContext())
        except ProviderError as e:
            self._record_attempt(provider_name, False, (time.perf_counter() - started) * 1000, str(e))
            raise

        self._record_attempt(provider_name, True, (time.perf_counter() - started) * 1000)
        return response

    async def test_provider(self, provider_name: str, sample_text: Optional[str] = None) -> Dict[str, Any]:
        """Smoke test a provider with a sample report."""
        started = time.perf_counter()
        try:
            response = await self.extract_with_provider(
                sample_text or SAMPLE_MEDICAL_TEXT,
                ExtractionContext(report_type='test'),
                provider_name,
            )
        except ProviderError as e:
            return {
                'success': False,
                'provider': provider_name,
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_ms': round((time.perf_counter() - started) * 1000, 2),
            }

        return {
            'success': True,
            'provider': provider_name,
            'model': response.get('model_used'),
            'duration_ms': round((time.perf_counter() - started) * 1000, 2),
            'findings_count': len(response.get('key_findings', [])),
            'confidence_score': response.get('confidence_score'),
        }

    async def get_service_health(self) -> Dict[str, Any]:
        providers: Dict[str, Any] = {}
        for name, config in self.config.provider_configs().items():
            providers[name] = {
                'available': config.is_available(),
                'enabled': config.enabled,
                'configured': config.is_configured(),
                'model': config.model or 'unknown',
            }

        available = [name for name, info in providers.items() if info['available']]
        return {
            'status': 'healthy' if available else 'unhealthy',
            'primary_provider': self.config.primary_provider(),
            'secondary_provider': self.config.secondary_provider(),
            'fallback_enabled': self.config.is_fallback_enabled(),
            'providers': providers,
            'configuration': self.config.configuration_summary(),
            'mapper': self.mapper.get_mapping_statistics(),
            'extraction': self.metrics.get_summary(),
        }

    def get_provider_performance(
        self,
        provider: Optional[str] = None,
        hours: int = 24,
        now: Optional[datetime] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        if provider is not None:
            self.config.validate_provider(provider)
        return self.performance.get_provider_performance(
            provider=provider,
            hours=hours,
            now=now,
            providers=self.config.provider_names(),
        )

    def get_mapping_statistics(self) -> Dict[str, Any]:
        return self.mapper.get_mapping_statistics()

    async def close(self):
        """Close network sessions of every provider this service used."""
        providers = list(self._providers.values()) if self._providers is not None else []
        providers.extend(self._opened.values())
        for provider in providers:
            await provider.close()
        self._opened.clear()
