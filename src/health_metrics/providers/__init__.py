# ============================================================================
# src/health_metrics/providers/__init__.py
# ============================================================================
"""
AI extraction providers - DeepSeek, Claude and OpenAI backends
"""

from .base import BaseExtractionProvider, backoff_delay, normalize_confidence
from .http_provider import HTTPExtractionProvider, classify_http_error
from .deepseek_provider import DeepSeekExtractionProvider
from .claude_provider import ClaudeExtractionProvider
from .openai_provider import OpenAIExtractionProvider, classify_openai_error
from .factory import PROVIDER_CLASSES, create_provider, clear_provider_cache, close_providers
from .prompts import BASE_PROMPT, SYSTEM_MESSAGE, SAMPLE_MEDICAL_TEXT, format_extraction_prompt

__all__ = [
    "BaseExtractionProvider",
    "backoff_delay",
    "normalize_confidence",
    "HTTPExtractionProvider",
    "classify_http_error",
    "DeepSeekExtractionProvider",
    "ClaudeExtractionProvider",
    "OpenAIExtractionProvider",
    "classify_openai_error",
    "PROVIDER_CLASSES",
    "create_provider",
    "clear_provider_cache",
    "close_providers",
    "BASE_PROMPT",
    "SYSTEM_MESSAGE",
    "SAMPLE_MEDICAL_TEXT",
    "format_extraction_prompt",
]
