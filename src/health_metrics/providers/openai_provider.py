# ============================================================================
# src/health_metrics/providers/openai_provider.py
# ============================================================================
"""
OpenAI Extraction Provider

Uses the official openai SDK. The client is synchronous, so each call runs
in the default executor and is bounded by asyncio.wait_for. SDK-level
retries are disabled; retrying is owned by the shared provider template.
"""

import asyncio
from typing import Optional

import openai

from ..core.context.extraction_context import ExtractionContext
from ..utils.exceptions import (
    AuthError,
    BadRequestError,
    ProviderError,
    QuotaError,
    RateLimitError,
    ServerError,
)
from .base import BaseExtractionProvider
from .http_provider import MAX_TOKENS, TEMPERATURE
from .prompts import SYSTEM_MESSAGE


_AUTH_CODES = ('invalid_api_key', 'invalid_organization')
_SERVER_CODES = ('server_error', 'service_unavailable')


def classify_openai_error(provider: str, error: Exception) -> ProviderError:
    """Map an openai SDK exception onto the provider error taxonomy."""
    code = getattr(error, 'code', None) or getattr(error, 'type', None)
    status = getattr(error, 'status_code', None)
    message = str(error)

    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)) or code in _AUTH_CODES:
        return AuthError(f"OpenAI API authentication failed: {message}", provider=provider, status_code=status)

    if isinstance(error, openai.RateLimitError):
        if code == 'insufficient_quota':
            return QuotaError(f"OpenAI API quota exceeded: {message}", provider=provider, status_code=status)
        retry_after = None
        response = getattr(error, 'response', None)
        if response is not None:
            try:
                retry_after = float(response.headers.get('retry-after'))
            except (TypeError, ValueError):
                retry_after = None
        return RateLimitError(
            f"OpenAI API rate limit exceeded: {message}",
            provider=provider,
            status_code=status or 429,
            retry_after=retry_after,
        )

    if isinstance(error, openai.BadRequestError) or code == 'invalid_request_error':
        return BadRequestError(f"OpenAI API invalid request: {message}", provider=provider, status_code=status)

    if isinstance(error, openai.APITimeoutError):
        return ServerError(f"OpenAI API request timed out: {message}", provider=provider)

    if isinstance(error, openai.APIConnectionError):
        return ServerError(f"OpenAI API connection failed: {message}", provider=provider)

    if code in _SERVER_CODES or (status is not None and status >= 500):
        return ServerError(f"OpenAI API server error: {message}", provider=provider, status_code=status)

    return ProviderError(f"OpenAI API error: {message}", provider=provider, status_code=status)


class OpenAIExtractionProvider(BaseExtractionProvider):
    provider_name = "openai"
    default_model = "gpt-4"
    features = {
        'established_platform': True,
        'medical_knowledge': True,
        'json_output': True,
        'reliable_service': True,
        'extensive_training': True,
    }

    def __init__(self, *args, client: Optional[openai.OpenAI] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._client = client

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url or None,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def _call_backend(self, prompt: str, context: Optional[ExtractionContext] = None) -> str:
        self.logger.debug(f"Making OpenAI API call: model={self.model} prompt_length={len(prompt)}")

        # Make API call (run in executor since openai client is sync)
        def call_api():
            return self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_MESSAGE},
                    {'role': 'user', 'content': prompt},
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )

        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(loop.run_in_executor(None, call_api), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ServerError(f"OpenAI API request timed out after {self.timeout}s", provider=self.name) from e
        except openai.OpenAIError as e:
            raise classify_openai_error(self.name, e) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None
        if content is None:
            raise ProviderError("Invalid response structure from OpenAI API", provider=self.name)

        usage = getattr(response, 'usage', None)
        self.logger.debug(
            f"OpenAI API call successful: response_length={len(content)} "
            f"total_tokens={getattr(usage, 'total_tokens', None)}"
        )
        return content
