# ============================================================================
# src/health_metrics/core/config.py
# ============================================================================
"""
Centralized Static Configuration

Loads configuration from environment variables (.env file) through the
pydantic settings classes and flattens it into the nested dict consumed by
ConfigManager. This is the "static" layer; runtime overrides are merged on
top of it by ConfigManager.

Usage:
    from health_metrics.core.config import get_static_config

    static = get_static_config()
    print(static["primary_provider"])
"""

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from ..config.extraction_config import ExtractionSettings
from ..config.providers_config import ClaudeSettings, DeepSeekSettings, OpenAISettings


RUNTIME_CONFIG_TABLE = "health_metrics_config"


def _load_dotenv() -> bool:
    """Load .env file if it exists."""
    # Look for .env in project root
    env_path = Path(__file__).parent.parent.parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path)
        return True

    # Also check current working directory
    cwd_env = Path.cwd() / '.env'
    if cwd_env.exists():
        load_dotenv(cwd_env)
        return True

    return False


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def build_static_config(
    extraction: ExtractionSettings,
    deepseek: DeepSeekSettings,
    claude: ClaudeSettings,
    openai: OpenAISettings,
) -> Dict[str, Any]:
    """
    Flatten settings objects into the nested static configuration dict.

    Separate from get_static_config() so tests can build a config from
    explicit settings without touching the process environment.
    """
    return {
        'primary_provider': extraction.PRIMARY_AI_PROVIDER.strip().lower(),
        'secondary_provider': (_blank_to_none(extraction.SECONDARY_AI_PROVIDER) or '').strip().lower() or None,
        'fallback_enabled': extraction.HEALTH_METRICS_FALLBACK_ENABLED,
        'stop_on_first_success': extraction.HEALTH_METRICS_STOP_ON_SUCCESS,

        'providers': {
            'deepseek': {
                'enabled': deepseek.DEEPSEEK_ENABLED,
                'api_key': _blank_to_none(deepseek.DEEPSEEK_API_KEY),
                'base_url': deepseek.DEEPSEEK_BASE_URL,
                'model': deepseek.DEEPSEEK_MODEL,
                'timeout': deepseek.DEEPSEEK_TIMEOUT,
                'max_retries': deepseek.DEEPSEEK_MAX_RETRIES,
                'priority': deepseek.DEEPSEEK_PRIORITY,
            },
            'claude': {
                'enabled': claude.CLAUDE_ENABLED,
                'api_key': _blank_to_none(claude.CLAUDE_API_KEY),
                'base_url': claude.CLAUDE_BASE_URL,
                'model': claude.CLAUDE_MODEL,
                'anthropic_version': claude.CLAUDE_ANTHROPIC_VERSION,
                'timeout': claude.CLAUDE_TIMEOUT,
                'max_retries': claude.CLAUDE_MAX_RETRIES,
                'priority': claude.CLAUDE_PRIORITY,
            },
            'openai': {
                'enabled': openai.OPENAI_ENABLED,
                'api_key': _blank_to_none(openai.OPENAI_API_KEY),
                'base_url': _blank_to_none(openai.OPENAI_BASE_URL),
                'model': openai.OPENAI_MODEL,
                'timeout': openai.OPENAI_TIMEOUT,
                'max_retries': openai.OPENAI_MAX_RETRIES,
                'priority': openai.OPENAI_PRIORITY,
            },
        },

        'runtime_config': {
            'enabled': extraction.HEALTH_METRICS_RUNTIME_CONFIG,
            'table': RUNTIME_CONFIG_TABLE,
            'cache_ttl': extraction.HEALTH_METRICS_CONFIG_CACHE_TTL,
            'env_override': extraction.HEALTH_METRICS_ENV_OVERRIDE,
            'db_path': str(extraction.HEALTH_METRICS_CONFIG_DB_PATH),
        },

        'performance': {
            'log_provider_performance': extraction.HEALTH_METRICS_LOG_PROVIDER_PERFORMANCE,
            'ttl': extraction.HEALTH_METRICS_PERFORMANCE_TTL,
        },

        'limits': {
            'min_input_length': extraction.HEALTH_METRICS_MIN_INPUT_LENGTH,
            'max_input_length': extraction.HEALTH_METRICS_MAX_INPUT_LENGTH,
            'max_text_length': extraction.HEALTH_METRICS_MAX_TEXT_LENGTH,
        },
    }


@lru_cache(maxsize=1)
def _cached_static_config() -> Dict[str, Any]:
    _load_dotenv()
    return build_static_config(
        ExtractionSettings(),
        DeepSeekSettings(),
        ClaudeSettings(),
        OpenAISettings(),
    )


def get_static_config() -> Dict[str, Any]:
    """
    Get the static configuration dict.

    Environment is read once; callers receive a copy they may mutate.
    """
    return copy.deepcopy(_cached_static_config())


def reload_static_config() -> Dict[str, Any]:
    """Re-read configuration from the environment (clears cache)."""
    _cached_static_config.cache_clear()
    return get_static_config()
