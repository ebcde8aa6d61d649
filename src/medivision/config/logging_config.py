# ============================================================================
# src/medivision/config/logging_config.py
# ============================================================================
"""
Logging & Audit Settings
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
    LOG_JSON: bool = Field(
        default=False,
        description="Emit JSON log lines instead of plain text"
    )
    LOG_FILE: Optional[Path] = Field(
        default=None,
        description="Optional log file in addition to stdout"
    )
    ENABLE_AUDIT_TRAIL: bool = Field(
        default=True,
        description="Write an audit line for every approved schedule"
    )


logging_settings = LoggingSettings()
