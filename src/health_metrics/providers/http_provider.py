# ============================================================================
# src/health_metrics/providers/http_provider.py
# ============================================================================
"""
HTTP Extraction Provider

Shared aiohttp plumbing for backends called over plain HTTPS JSON:
- Lazy session per event loop, bounded by ClientTimeout(total=timeout)
- HTTP status -> ProviderError classification
- Network failures and timeouts -> ServerError (retryable)
"""

import asyncio
from typing import Any, Dict, Mapping, Optional

import aiohttp

from ..utils.exceptions import (
    AuthError,
    BadRequestError,
    ProviderError,
    QuotaError,
    RateLimitError,
    ServerError,
)
from .base import BaseExtractionProvider


# Generation parameters shared by the HTTP backends
MAX_TOKENS = 2000
TEMPERATURE = 0.1


def _parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    if not headers:
        return None
    value = headers.get('Retry-After') or headers.get('retry-after')
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def classify_http_error(
    provider: str,
    status: int,
    body: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> ProviderError:
    """Map a non-2xx response onto the provider error taxonomy."""
    message = None
    if isinstance(body, dict):
        error = body.get('error')
        if isinstance(error, dict):
            message = error.get('message')
        elif isinstance(error, str):
            message = error
    message = message or f"HTTP {status}"

    if status in (401, 403):
        return AuthError(f"{provider} API authentication failed: {message}", provider=provider, status_code=status)
    if status == 402:
        return QuotaError(f"{provider} API quota exhausted: {message}", provider=provider, status_code=status)
    if status == 429:
        return RateLimitError(
            f"{provider} API rate limit exceeded: {message}",
            provider=provider,
            status_code=status,
            retry_after=_parse_retry_after(headers),
        )
    if status == 400:
        return BadRequestError(f"{provider} API invalid request: {message}", provider=provider, status_code=status)
    if status >= 500:
        return ServerError(f"{provider} API server error: {message}", provider=provider, status_code=status)
    return ProviderError(f"{provider} API error: {message}", provider=provider, status_code=status)


class HTTPExtractionProvider(BaseExtractionProvider):
    """Base class for providers that POST JSON with aiohttp."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        # HTTP session (created lazily, tied to event loop)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for current event loop."""
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        # Check if we need a new session (none exists, closed, or different event loop)
        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is None
            or self._session_loop != current_loop
            or (self._session_loop is not None and self._session_loop.is_closed())
        )

        if needs_new_session:
            # Close old session if it exists and isn't already closed
            if self._session is not None and not self._session.closed:
                try:
                    await self._session.close()
                except Exception as e:
                    self.logger.debug(f"Ignoring error closing stale session: {e}")

            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = current_loop

        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    async def _post_json(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload and return the decoded JSON body.

        Raises:
            ProviderError subclass for non-2xx statuses, network errors
            and timeouts
        """
        session = await self._get_session()
        self.logger.debug(f"Making {self.name} API call: model={self.model} url={url}")

        try:
            async with session.post(url, json=payload, headers=headers) as response:
                try:
                    body = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    body = None

                if response.status >= 400:
                    raise classify_http_error(self.name, response.status, body, response.headers)

        except ProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise ServerError(f"{self.name} API request timed out after {self.timeout}s", provider=self.name) from e
        except aiohttp.ClientError as e:
            raise ServerError(f"{self.name} API call failed: {e}", provider=self.name) from e

        if not isinstance(body, dict):
            raise ProviderError(f"Invalid response structure from {self.name} API", provider=self.name)
        return body
