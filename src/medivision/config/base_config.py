# ============================================================================
# src/medivision/config/base_config.py
# ============================================================================
"""
Base Configuration
- Project root
- Data directory
- History and profile databases
- Audit log location
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings


class BaseSettingsConfig(BaseSettings):
    # Root project directory
    PROJECT_ROOT: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent.parent.parent,
        description="Root directory of the project"
    )

    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Local data directory - all persisted state stays on this machine"
    )

    # Approved schedules (append-only)
    HISTORY_DB_PATH: Path = Field(
        default=Path("data/history.db"),
        description="SQLite database holding approved schedule snapshots"
    )

    # Working patient/session record (overwritten wholesale)
    PROFILE_DB_PATH: Path = Field(
        default=Path("data/profiles.db"),
        description="SQLite database holding the current patient/session profile"
    )

    AUDIT_LOG_PATH: Path = Field(
        default=Path("logs/audit.log"),
        description="JSON-lines audit trail of approvals"
    )

    def create_directories(self):
        """Create all necessary directories if they don't exist"""
        dirs = [
            self.DATA_DIR,
            self.HISTORY_DB_PATH.parent,
            self.PROFILE_DB_PATH.parent,
            self.AUDIT_LOG_PATH.parent,
        ]
        for directory in dirs:
            directory.mkdir(parents=True, exist_ok=True)


# Global instance
base_settings = BaseSettingsConfig()
