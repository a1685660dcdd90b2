# ============================================================================
# src/health_metrics/providers/base.py
# ============================================================================
"""
Base Extraction Provider

Shared template for every AI backend:
1. validate input (InputError, no network call)
2. clean text (encoding, control characters, whitespace, length)
3. format prompt (base schema + provider instructions)
4. call backend with retry and exponential backoff
5. parse JSON (direct, fenced / embedded, repaired)
6. normalize response (defaults, N/A findings, confidence score)

Subclasses implement only _call_backend() and, optionally, fix_json().
"""

import asyncio
import json
import logging
import math
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from json_repair import repair_json

from ..core.config_manager import ProviderConfig
from ..core.context.extraction_context import ExtractionContext
from ..core.context.findings import is_placeholder
from ..utils.exceptions import (
    ExhaustedRetriesError,
    InputError,
    ParseError,
    ProviderError,
)
from .prompts import format_extraction_prompt


DEFAULT_MIN_INPUT_LENGTH = 10
DEFAULT_MAX_INPUT_LENGTH = 50000
DEFAULT_MAX_TEXT_LENGTH = 10000
MAX_MEDICAL_LINES = 100
MAX_BACKOFF_SECONDS = 10

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
# Replacement char, soft hyphen, zero width space, stray UTF-8 lead bytes
_MOJIBAKE = re.compile('[\ufffd\u00ad\u200b\u00c2\u00a2]')
_WHITESPACE = re.compile(r'\s+')

_MEDICAL_LINE_PATTERNS = (
    re.compile(r'\d+\.?\d*\s*(mg/dl|mmol/l|g/dl|%|miu/l|ng/ml|u/l)', re.IGNORECASE),
    re.compile(r'(cholesterol|glucose|hemoglobin|creatinine|vitamin|thyroid|sodium|potassium)', re.IGNORECASE),
    re.compile(r'\b(normal|high|low|elevated|decreased|abnormal)\b', re.IGNORECASE),
)

_CODE_FENCE_START = re.compile(r'^```(?:json)?\s*', re.IGNORECASE)
_CODE_FENCE_END = re.compile(r'\s*```$')
_FIRST_INTEGER = re.compile(r'(\d+)')

STRING_FIELDS = ('patient_name', 'patient_age', 'patient_gender', 'diagnosis')

Sleeper = Callable[[float], Awaitable[Any]]


def backoff_delay(attempt: int) -> int:
    """Seconds to wait after a failed attempt (1-based): 1, 2, 4, 8, 10, 10..."""
    return min(2 ** (attempt - 1), MAX_BACKOFF_SECONDS)


def normalize_confidence(score: Any) -> str:
    """Render a confidence score as "NN%" within 0-100; fractions are scaled to percent."""
    number = None
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        number = float(score)
    elif isinstance(score, str):
        try:
            number = float(score.strip())
        except ValueError:
            match = _FIRST_INTEGER.search(score)
            if match:
                return f"{min(int(match.group(1)), 100)}%"

    if number is None or math.isnan(number):
        return "0%"
    if number <= 1:
        number *= 100
    number = max(0.0, min(100.0, number))
    return f"{int(math.floor(number + 0.5))}%"


class BaseExtractionProvider(ABC):
    """
    Abstract base class for AI extraction providers.

    All backends must implement:
    - _call_backend(): one wire call returning the raw response text
    """

    provider_name: str = ""
    default_model: str = ""
    features: Dict[str, bool] = {}

    def __init__(
        self,
        config: ProviderConfig,
        limits: Optional[Dict[str, int]] = None,
        sleep: Optional[Sleeper] = None,
    ):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self._sleep = sleep or asyncio.sleep

        limits = limits or {}
        self.min_input_length = limits.get('min_input_length', DEFAULT_MIN_INPUT_LENGTH)
        self.max_input_length = limits.get('max_input_length', DEFAULT_MAX_INPUT_LENGTH)
        self.max_text_length = limits.get('max_text_length', DEFAULT_MAX_TEXT_LENGTH)

        # Common statistics
        self._request_count = 0
        self._failure_count = 0
        self._retry_count = 0
        self._success_count = 0
        self._total_latency_ms = 0.0

    @property
    def name(self) -> str:
        return self.config.name or self.provider_name

    @property
    def model(self) -> str:
        return self.config.model or self.default_model

    @property
    def timeout(self) -> int:
        return self.config.timeout

    @property
    def max_retries(self) -> int:
        return max(1, self.config.max_retries)

    def is_available(self) -> bool:
        return self.config.is_available()

    @abstractmethod
    async def _call_backend(self, prompt: str, context: Optional[ExtractionContext] = None) -> str:
        """
        Make one request to the AI backend.

        Returns:
            Raw response text (expected to contain a JSON object)

        Raises:
            ProviderError subclass classifying the failure
        """
        pass

    async def close(self):
        """Release network resources (no-op for backends without a session)."""
        return None

    # ------------------------------------------------------------------
    # Template
    # ------------------------------------------------------------------

    async def extract_metrics(
        self,
        raw_text: Union[str, bytes],
        context: Optional[ExtractionContext] = None,
    ) -> Dict[str, Any]:
        """
        Extract normalized findings from report text.

        Raises:
            InputError: text empty, too short or too long
            ExhaustedRetriesError: every attempt failed with a retryable error
            ProviderError: non-retryable backend failure
        """
        text = self._decode(raw_text)
        self.validate_input(text)

        self.logger.info(
            f"Starting health metrics extraction: provider={self.name} "
            f"model={self.model} text_length={len(text)}"
        )
        start_time = time.perf_counter()

        try:
            cleaned = self.clean_text(text)
            self.logger.debug(f"Text cleaned for AI processing: {len(text)} -> {len(cleaned)} chars")

            prompt = self.format_prompt(cleaned, context)
            raw_response = await self._call_with_retry(prompt, context)
            processed = self.process_response(raw_response)

        except ProviderError as e:
            self.logger.error(f"Provider error during extraction ({self.name}): {e}")
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error during extraction ({self.name}): {e}", exc_info=True)
            raise ProviderError(f"Health metrics extraction failed: {e}", provider=self.name) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"Health metrics extraction completed: provider={self.name} "
            f"duration_ms={duration_ms:.2f} findings={len(processed['key_findings'])} "
            f"confidence={processed['confidence_score']}"
        )
        return processed

    @staticmethod
    def _decode(raw_text: Union[str, bytes, None]) -> str:
        if raw_text is None:
            return ""
        if isinstance(raw_text, bytes):
            return raw_text.decode('utf-8', errors='replace')
        return raw_text

    def validate_input(self, text: str) -> None:
        stripped = text.strip()
        if not stripped:
            raise InputError("Input text cannot be empty", provider=self.name)
        if len(stripped) < self.min_input_length:
            raise InputError("Input text is too short for meaningful analysis", provider=self.name)
        if len(text) > self.max_input_length:
            raise InputError("Input text is too long for processing", provider=self.name)

    def clean_text(self, text: Union[str, bytes]) -> str:
        """
        Clean text for AI processing.

        Oversized text is reduced to its medically relevant lines, or
        truncated when none are found.
        """
        text = self._decode(text)
        text = _CONTROL_CHARS.sub('', text)
        text = _MOJIBAKE.sub('', text)

        collapsed = _WHITESPACE.sub(' ', text).strip()
        if len(collapsed) <= self.max_text_length:
            return collapsed

        medical_section = self.extract_medical_section(text)
        if medical_section:
            self.logger.info(f"Text reduced to medical section ({len(medical_section)} chars)")
            return medical_section

        return collapsed[:self.max_text_length] + '...'

    @staticmethod
    def extract_medical_section(text: str) -> str:
        medical_lines: List[str] = []
        for line in text.splitlines():
            line = _WHITESPACE.sub(' ', line).strip()
            if not line:
                continue

            if any(pattern.search(line) for pattern in _MEDICAL_LINE_PATTERNS):
                medical_lines.append(line)
                if len(medical_lines) >= MAX_MEDICAL_LINES:
                    break

        return '\n'.join(medical_lines)

    def format_prompt(self, cleaned_text: str, context: Optional[ExtractionContext] = None) -> str:
        return format_extraction_prompt(self.name, cleaned_text)

    async def _call_with_retry(self, prompt: str, context: Optional[ExtractionContext] = None) -> Dict[str, Any]:
        last_error: Optional[ProviderError] = None

        for attempt in range(1, self.max_retries + 1):
            self._request_count += 1
            started = time.perf_counter()

            try:
                response_text = await self._call_backend(prompt, context)
                parsed = self.parse_response(response_text)

                self._success_count += 1
                self._total_latency_ms += (time.perf_counter() - started) * 1000
                return parsed

            except ProviderError as e:
                self._failure_count += 1
                self._total_latency_ms += (time.perf_counter() - started) * 1000
                if e.provider is None:
                    e.provider = self.name
                last_error = e

                if not e.retryable:
                    raise

                if attempt < self.max_retries:
                    delay = backoff_delay(attempt)
                    self._retry_count += 1
                    self.logger.warning(
                        f"AI provider call failed, retrying: provider={self.name} "
                        f"attempt={attempt}/{self.max_retries} delay={delay}s error={e}"
                    )
                    await self._sleep(delay)

        raise ExhaustedRetriesError(
            f"Failed to extract metrics after {self.max_retries} attempts: {last_error}",
            provider=self.name,
            last_error=last_error,
            attempts=self.max_retries,
        )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def fix_json(self, content: str) -> str:
        """Provider specific cleanup; the result is used only if it parses."""
        return content

    @staticmethod
    def extract_json_block(response_text: str) -> Optional[str]:
        """Strip a code fence and return the first balanced {...} span."""
        content = _CODE_FENCE_START.sub('', response_text.strip())
        content = _CODE_FENCE_END.sub('', content)

        start_idx = content.find('{')
        if start_idx == -1:
            return None

        # Count braces to find matching close
        depth = 0
        in_string = False
        escaped = False
        for i, char in enumerate(content[start_idx:], start=start_idx):
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return content[start_idx:i + 1]

        # Unbalanced: hand the remainder to the repair step
        return content[start_idx:]

    def parse_response(self, response_text: Optional[str]) -> Dict[str, Any]:
        """
        Parse a JSON object from the backend response.

        Accepts pure JSON, or JSON wrapped in a code fence / surrounded by
        prose. Anything else raises ParseError (retryable).
        """
        if not response_text or not response_text.strip():
            raise ParseError(f"Empty response from {self.name}", provider=self.name)

        # Try 1: Direct parse of entire response
        try:
            parsed = json.loads(response_text.strip())
            if isinstance(parsed, dict):
                return parsed
        except ValueError:
            pass

        # Try 2: Code fence / embedded object
        block = self.extract_json_block(response_text)
        if block is None:
            raise ParseError(
                f"No JSON object found in {self.name} response",
                provider=self.name,
                response_text=response_text[:500],
            )

        try:
            parsed = json.loads(block)
            if isinstance(parsed, dict):
                return parsed
        except ValueError:
            pass

        # Try 3: Provider fix, kept only when it yields valid JSON
        fixed = self.fix_json(block)
        if fixed != block:
            try:
                parsed = json.loads(fixed)
                if isinstance(parsed, dict):
                    self.logger.debug(f"{self.name} JSON fix applied")
                    return parsed
            except ValueError:
                pass

        # Try 4: json_repair on the untouched block
        try:
            repaired = repair_json(block, return_objects=True)
            if isinstance(repaired, dict):
                self.logger.debug(f"json_repair fixed {self.name} response")
                return repaired
        except Exception as e:
            self.logger.debug(f"json_repair failed on {self.name} response: {e}")

        self.logger.warning(f"Could not parse JSON from {self.name} response: {response_text[:200]}...")
        raise ParseError(
            f"Failed to parse {self.name} response as JSON",
            provider=self.name,
            response_text=response_text[:500],
        )

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def process_response(self, raw_response: Dict[str, Any]) -> Dict[str, Any]:
        processed: Dict[str, Any] = {}
        for key in STRING_FIELDS:
            value = raw_response.get(key)
            processed[key] = value if value not in (None, '') else 'N/A'

        findings = raw_response.get('key_findings')
        recommendations = raw_response.get('recommendations')

        processed['key_findings'] = self.validate_key_findings(findings if isinstance(findings, list) else [])
        processed['recommendations'] = recommendations if isinstance(recommendations, list) else []
        processed['confidence_score'] = normalize_confidence(raw_response.get('confidence_score', '0'))
        processed['provider_used'] = self.name
        processed['model_used'] = self.model
        processed['processed_at'] = datetime.now(timezone.utc).isoformat()
        return processed

    @staticmethod
    def validate_key_findings(findings: List[Any]) -> List[Any]:
        """Drop empty / N/A findings and give dict findings their canonical keys."""
        validated: List[Any] = []
        for finding in findings:
            if isinstance(finding, str):
                if not is_placeholder(finding):
                    validated.append(finding.strip())

            elif isinstance(finding, dict):
                name = finding.get('finding')
                value = finding.get('value')
                if is_placeholder(name) or is_placeholder(value):
                    continue
                validated.append({
                    'finding': str(name).strip(),
                    'value': value,
                    'unit': finding.get('unit') or '',
                    'reference': finding.get('reference') or '',
                    'status': finding.get('status') or 'unknown',
                    'description': finding.get('description') or name,
                })

        return validated

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    async def health_check(self) -> Dict[str, Any]:
        """Configuration status only; no request is sent to the backend."""
        configured = self.config.is_configured()
        if not self.config.enabled:
            details = "Provider disabled"
        elif not configured:
            details = "Missing API key, model or endpoint"
        else:
            details = "Provider configured"

        return {
            "healthy": self.is_available(),
            "provider": self.name,
            "model": self.model,
            "enabled": self.config.enabled,
            "configured": configured,
            "details": details,
        }

    def get_provider_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "model": self.model,
            "base_url": self.config.base_url,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "available": self.is_available(),
            "features": dict(self.features),
        }

    def get_statistics(self) -> Dict[str, Any]:
        """Get request, failure and latency statistics."""
        avg_latency = (
            self._total_latency_ms / self._request_count
            if self._request_count > 0
            else 0.0
        )

        return {
            "provider": self.name,
            "model": self.model,
            "request_count": self._request_count,
            "success_count": self._success_count,
            "failure_count": self._failure_count,
            "retry_count": self._retry_count,
            "total_latency_ms": self._total_latency_ms,
            "average_latency_ms": avg_latency,
        }
