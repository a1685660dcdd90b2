# ============================================================================
# src/health_metrics/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .extraction_config import ExtractionSettings, extraction_settings
from .providers_config import (
    DeepSeekSettings,
    ClaudeSettings,
    OpenAISettings,
    deepseek_settings,
    claude_settings,
    openai_settings,
)
from .logging_config import LoggingSettings, logging_settings
