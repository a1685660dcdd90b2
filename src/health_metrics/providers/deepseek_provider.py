# ============================================================================
# src/health_metrics/providers/deepseek_provider.py
# ============================================================================
"""
DeepSeek Extraction Provider

OpenAI-compatible chat completions endpoint:
    POST {base_url}/chat/completions
    Authorization: Bearer <api_key>
"""

from typing import Optional

from ..core.context.extraction_context import ExtractionContext
from ..utils.exceptions import ProviderError
from .http_provider import HTTPExtractionProvider, MAX_TOKENS, TEMPERATURE
from .prompts import SYSTEM_MESSAGE


DEFAULT_DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class DeepSeekExtractionProvider(HTTPExtractionProvider):
    provider_name = "deepseek"
    default_model = "deepseek-chat"
    features = {
        'medical_analysis': True,
        'json_output': True,
        'low_latency': True,
        'cost_effective': True,
    }

    @property
    def base_url(self) -> str:
        return (self.config.base_url or DEFAULT_DEEPSEEK_BASE_URL).rstrip('/')

    async def _call_backend(self, prompt: str, context: Optional[ExtractionContext] = None) -> str:
        headers = {
            'Authorization': f"Bearer {self.config.api_key}",
            'Content-Type': 'application/json',
        }
        payload = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_MESSAGE},
                {'role': 'user', 'content': prompt},
            ],
            'temperature': TEMPERATURE,
            'max_tokens': MAX_TOKENS,
            'stream': False,
        }

        data = await self._post_json(f"{self.base_url}/chat/completions", headers, payload)

        try:
            content = data['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError):
            raise ProviderError("Invalid response structure from DeepSeek API", provider=self.name)

        self.logger.debug(f"DeepSeek API call successful: response_length={len(content or '')}")
        return content
