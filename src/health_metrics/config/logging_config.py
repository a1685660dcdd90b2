# ============================================================================
# src/health_metrics/config/logging_config.py
# ============================================================================
"""
Logging & Monitoring Settings
- Log level and format
- Optional log file
- In-process metrics collection
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LoggingSettings(BaseSettings):
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FORMAT_JSON: bool = Field(
        default=False,
        description="Emit one JSON object per log line"
    )
    LOG_FILE: Optional[Path] = Field(
        default=None,
        description="Also write logs to this file"
    )
    ENABLE_METRICS: bool = Field(
        default=True,
        description="Enable in-process counters and timings"
    )


logging_settings = LoggingSettings()
