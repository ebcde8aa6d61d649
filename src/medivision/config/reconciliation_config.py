# ============================================================================
# src/medivision/config/reconciliation_config.py
# ============================================================================
"""
Reconciliation & Review Settings
- Name matching tolerance
- Schedule naming
- Persisted profile schema version
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_SLOTS = ("morning", "noon", "evening", "bedtime")


class ReconciliationSettings(BaseSettings):
    FUZZY_NAME_MATCHING: bool = Field(
        default=True,
        description="Merge names that differ by small OCR typos (e.g. 'Atorvastatn')"
    )
    FUZZY_MAX_DISTANCE: int = Field(
        default=1,
        ge=0, le=3,
        description="Maximum Levenshtein distance for fuzzy name merges"
    )
    FUZZY_MIN_LENGTH: int = Field(
        default=6,
        ge=1,
        description="Names shorter than this are only merged on exact match"
    )
    DEFAULT_SLOT: str = Field(
        default="morning",
        description="Slot used when frequency text cannot be parsed"
    )
    SCHEDULE_NAME_PREFIX: str = Field(
        default="Schedule",
        description="Prefix for generated schedule names ('Schedule N')"
    )
    CURRENT_PROFILE_SCHEMA_VERSION: int = Field(
        default=1,
        ge=1,
        description="Schema version written with every persisted profile"
    )

    @field_validator("DEFAULT_SLOT")
    @classmethod
    def _check_slot(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in _SLOTS:
            raise ValueError(f"DEFAULT_SLOT must be one of {_SLOTS}")
        return value


reconciliation_settings = ReconciliationSettings()
