# ============================================================================
# src/health_metrics/providers/factory.py
# ============================================================================
"""
Extraction Provider Factory

Creates provider instances from a resolved ProviderConfig.

Usage:
    from health_metrics.providers.factory import create_provider

    provider = create_provider("claude", config_manager.provider_config("claude"))
    result = await provider.extract_metrics(report_text)
"""

import logging
from typing import Dict, Optional, Tuple, Type

from ..core.config_manager import ProviderConfig
from ..utils.exceptions import ConfigurationError
from .base import BaseExtractionProvider, Sleeper
from .claude_provider import ClaudeExtractionProvider
from .deepseek_provider import DeepSeekExtractionProvider
from .openai_provider import OpenAIExtractionProvider


PROVIDER_CLASSES: Dict[str, Type[BaseExtractionProvider]] = {
    'deepseek': DeepSeekExtractionProvider,
    'claude': ClaudeExtractionProvider,
    'openai': OpenAIExtractionProvider,
}

# Cache keyed by connection-defining params so HTTP sessions and SDK
# clients are reused across extraction calls
_client_cache: Dict[Tuple, BaseExtractionProvider] = {}

_logger = logging.getLogger(__name__)


def _cache_key(name: str, config: ProviderConfig, limits: Optional[Dict[str, int]]) -> Tuple:
    return (
        name,
        config.enabled,
        config.api_key,
        config.base_url,
        config.model,
        config.timeout,
        config.max_retries,
        tuple(sorted(config.extra.items())),
        tuple(sorted((limits or {}).items())),
    )


def create_provider(
    name: str,
    config: ProviderConfig,
    limits: Optional[Dict[str, int]] = None,
    sleep: Optional[Sleeper] = None,
    use_cache: bool = True,
) -> BaseExtractionProvider:
    """
    Factory function to create an extraction provider.

    Returns a cached instance when the provider's configuration is
    unchanged. A custom sleep function always yields a fresh instance.

    Raises:
        ConfigurationError: If the provider name is not supported
    """
    provider_class = PROVIDER_CLASSES.get(name)
    if provider_class is None:
        raise ConfigurationError(
            f"Unknown provider: {name}. Supported providers: {', '.join(PROVIDER_CLASSES)}"
        )

    cacheable = use_cache and sleep is None
    key = _cache_key(name, config, limits) if cacheable else None

    if key is not None and key in _client_cache:
        _logger.debug(f"Reusing cached {name} provider")
        return _client_cache[key]

    provider = provider_class(config, limits=limits, sleep=sleep)

    if key is not None:
        _client_cache[key] = provider
        _logger.info(f"Created and cached {name} provider (model={provider.model})")

    return provider


def clear_provider_cache() -> None:
    _client_cache.clear()


async def close_providers() -> None:
    """Close network sessions held by cached providers; they reopen lazily on next use."""
    for provider in list(_client_cache.values()):
        await provider.close()
