# ============================================================================
# src/health_metrics/providers/claude_provider.py
# ============================================================================
"""
Claude Extraction Provider

Anthropic Messages API:
    POST {base_url}/messages
    x-api-key, anthropic-version headers
"""

import re
from typing import Optional

from ..core.context.extraction_context import ExtractionContext
from ..utils.exceptions import ProviderError
from .http_provider import HTTPExtractionProvider, MAX_TOKENS, TEMPERATURE


DEFAULT_CLAUDE_BASE_URL = "https://api.anthropic.com/v1"
DEFAULT_ANTHROPIC_VERSION = "2023-06-01"

_TRAILING_COMMA = re.compile(r',(\s*[}\]])')
_UNESCAPED_SINGLE_QUOTE = re.compile(r"(?<!\\)'")


class ClaudeExtractionProvider(HTTPExtractionProvider):
    provider_name = "claude"
    default_model = "claude-3-5-sonnet-20241022"
    features = {
        'advanced_reasoning': True,
        'medical_knowledge': True,
        'json_output': True,
        'high_accuracy': True,
        'context_awareness': True,
    }

    @property
    def base_url(self) -> str:
        return (self.config.base_url or DEFAULT_CLAUDE_BASE_URL).rstrip('/')

    @property
    def anthropic_version(self) -> str:
        return self.config.extra.get('anthropic_version') or DEFAULT_ANTHROPIC_VERSION

    def fix_json(self, content: str) -> str:
        """Strip trailing commas and normalize single quotes."""
        fixed = _TRAILING_COMMA.sub(r'\1', content)
        return _UNESCAPED_SINGLE_QUOTE.sub('"', fixed)

    async def _call_backend(self, prompt: str, context: Optional[ExtractionContext] = None) -> str:
        headers = {
            'x-api-key': self.config.api_key or '',
            'anthropic-version': self.anthropic_version,
            'content-type': 'application/json',
        }
        payload = {
            'model': self.model,
            'max_tokens': MAX_TOKENS,
            'temperature': TEMPERATURE,
            'messages': [
                {'role': 'user', 'content': prompt},
            ],
        }

        data = await self._post_json(f"{self.base_url}/messages", headers, payload)

        try:
            content = data['content'][0]['text']
        except (KeyError, IndexError, TypeError):
            raise ProviderError("Invalid response structure from Claude API", provider=self.name)

        self.logger.debug(f"Claude API call successful: response_length={len(content or '')} usage={data.get('usage')}")
        return content

    def get_provider_info(self):
        info = super().get_provider_info()
        info['anthropic_version'] = self.anthropic_version
        return info
