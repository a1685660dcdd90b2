# ============================================================================
# src/health_metrics/config/extraction_config.py
# ============================================================================
"""
Extraction Orchestration Settings
- Primary / secondary provider selection
- Fallback and stop-on-first-success behaviour
- Runtime configuration overrides (SQLite store + TTL cache)
- Provider performance telemetry
- Input text limits
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class ExtractionSettings(BaseSettings):
    PRIMARY_AI_PROVIDER: str = Field(
        default="deepseek",
        description="Provider tried first for every extraction"
    )
    SECONDARY_AI_PROVIDER: Optional[str] = Field(
        default="claude",
        description="Provider tried second when the primary fails"
    )
    HEALTH_METRICS_FALLBACK_ENABLED: bool = Field(
        default=True,
        description="Try the next provider when one fails"
    )
    HEALTH_METRICS_STOP_ON_SUCCESS: bool = Field(
        default=True,
        description="Stop at the first provider that returns data"
    )

    # Runtime overrides
    HEALTH_METRICS_RUNTIME_CONFIG: bool = Field(
        default=True,
        description="Read the runtime override store at all"
    )
    HEALTH_METRICS_ENV_OVERRIDE: bool = Field(
        default=True,
        description="Environment values win over runtime overrides"
    )
    HEALTH_METRICS_CONFIG_CACHE_TTL: int = Field(
        default=3600,
        description="Seconds an override snapshot stays cached"
    )
    HEALTH_METRICS_CONFIG_DB_PATH: Path = Field(
        default=Path("data/health_metrics_config.db"),
        description="SQLite database holding the health_metrics_config table"
    )

    # Telemetry
    HEALTH_METRICS_LOG_PROVIDER_PERFORMANCE: bool = Field(
        default=True,
        description="Record per-provider hourly success rate and latency"
    )
    HEALTH_METRICS_PERFORMANCE_TTL: int = Field(
        default=3600,
        description="Seconds an hourly performance bucket is retained"
    )

    # Input limits
    HEALTH_METRICS_MIN_INPUT_LENGTH: int = Field(
        default=10,
        description="Shortest report text accepted by providers"
    )
    HEALTH_METRICS_MAX_INPUT_LENGTH: int = Field(
        default=50000,
        description="Longest report text accepted by providers"
    )
    HEALTH_METRICS_MAX_TEXT_LENGTH: int = Field(
        default=10000,
        description="Cleaned text above this size is reduced to clinical lines"
    )


extraction_settings = ExtractionSettings()
