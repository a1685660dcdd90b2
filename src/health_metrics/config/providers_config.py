# ============================================================================
# src/health_metrics/config/providers_config.py
# ============================================================================
"""
AI Provider Settings (DeepSeek, Claude, OpenAI)
- API credentials
- Endpoint and model identifiers
- Timeout and retry budget
- Priority rank (lower is tried earlier)
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class DeepSeekSettings(BaseSettings):
    DEEPSEEK_API_KEY: Optional[str] = Field(default=None, description="DeepSeek API key")
    DEEPSEEK_ENABLED: bool = Field(default=True, description="Allow DeepSeek to be used")
    DEEPSEEK_BASE_URL: str = Field(
        default="https://api.deepseek.com",
        description="DeepSeek API base URL"
    )
    DEEPSEEK_MODEL: str = Field(default="deepseek-chat", description="DeepSeek chat model")
    DEEPSEEK_TIMEOUT: int = Field(default=30, description="Request timeout (seconds)")
    DEEPSEEK_MAX_RETRIES: int = Field(default=3, description="Attempts per extraction")
    DEEPSEEK_PRIORITY: int = Field(default=1, description="Fallback order rank")


class ClaudeSettings(BaseSettings):
    CLAUDE_API_KEY: Optional[str] = Field(default=None, description="Anthropic API key")
    CLAUDE_ENABLED: bool = Field(default=True, description="Allow Claude to be used")
    CLAUDE_BASE_URL: str = Field(
        default="https://api.anthropic.com/v1",
        description="Anthropic Messages API base URL"
    )
    CLAUDE_MODEL: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Claude model identifier"
    )
    CLAUDE_ANTHROPIC_VERSION: str = Field(
        default="2023-06-01",
        description="Value of the anthropic-version header"
    )
    CLAUDE_TIMEOUT: int = Field(default=30, description="Request timeout (seconds)")
    CLAUDE_MAX_RETRIES: int = Field(default=3, description="Attempts per extraction")
    CLAUDE_PRIORITY: int = Field(default=2, description="Fallback order rank")


class OpenAISettings(BaseSettings):
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")
    OPENAI_ENABLED: bool = Field(default=True, description="Allow OpenAI to be used")
    OPENAI_BASE_URL: Optional[str] = Field(
        default=None,
        description="Custom OpenAI-compatible endpoint (SDK default when unset)"
    )
    OPENAI_MODEL: str = Field(default="gpt-4", description="OpenAI chat model")
    OPENAI_TIMEOUT: int = Field(default=30, description="Request timeout (seconds)")
    OPENAI_MAX_RETRIES: int = Field(default=3, description="Attempts per extraction")
    OPENAI_PRIORITY: int = Field(default=3, description="Fallback order rank")


deepseek_settings = DeepSeekSettings()
claude_settings = ClaudeSettings()
openai_settings = OpenAISettings()
