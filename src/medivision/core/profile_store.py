# ============================================================================
# src/medivision/core/profile_store.py
# ============================================================================
"""
Patient Profile Store

One persisted record per patient/session holding the working state:
status, medications, schedule, warnings, last update time.

- Saved wholesale (INSERT OR REPLACE), never partially updated
- Every row carries a schema_version
- Version-less rows written by the earlier browser store are migrated
  on read:
    schedule list of {timeOfDay, medications, notes} -> four slot arrays
    Morning/Afternoon/Evening/Night -> morning/noon/evening/bedtime
    PENDING_REVIEW -> UNDER_REVIEW, NEEDS_CHANGES -> DRAFT
"""

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import base_settings, reconciliation_settings
from ..utils.exceptions import PersistenceError, ValidationError
from .context.analysis import AnalysisResult, DailySchedule, MedicationWarning
from .context.enums import WorkflowStatus
from .context.medication import Medication

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "patient-001"

LEGACY_SLOTS = {
    "morning": "morning",
    "afternoon": "noon",
    "noon": "noon",
    "evening": "evening",
    "night": "bedtime",
    "bedtime": "bedtime",
}

LEGACY_STATUSES = {
    "DRAFT": WorkflowStatus.DRAFT,
    "PENDING_REVIEW": WorkflowStatus.UNDER_REVIEW,
    "UNDER_REVIEW": WorkflowStatus.UNDER_REVIEW,
    "NEEDS_CHANGES": WorkflowStatus.DRAFT,
    "APPROVED": WorkflowStatus.APPROVED,
}


@dataclass
class PatientProfile:
    id: str = DEFAULT_PROFILE_ID
    name: str = ""
    status: WorkflowStatus = WorkflowStatus.DRAFT
    medications: List[Medication] = field(default_factory=list)
    schedule: DailySchedule = field(default_factory=DailySchedule)
    warnings: List[MedicationWarning] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    last_updated: Optional[datetime] = None
    schema_version: int = field(default_factory=lambda: reconciliation_settings.CURRENT_PROFILE_SCHEMA_VERSION)

    @property
    def result(self) -> AnalysisResult:
        return AnalysisResult(
            medications=list(self.medications),
            schedule=self.schedule,
            warnings=list(self.warnings),
        ).copy()

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        profile_id: str = DEFAULT_PROFILE_ID,
        name: str = "",
        status: WorkflowStatus = WorkflowStatus.DRAFT,
    ) -> "PatientProfile":
        snapshot = result.copy()
        return cls(
            id=profile_id,
            name=name,
            status=WorkflowStatus(status),
            medications=snapshot.medications,
            schedule=snapshot.schedule,
            warnings=snapshot.warnings,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "medications": [m.to_dict() for m in self.medications],
            "schedule": self.schedule.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
            "notes": list(self.notes),
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatientProfile":
        last_updated = data.get("lastUpdated")
        return cls(
            id=str(data.get("id") or DEFAULT_PROFILE_ID),
            name=data.get("name") or "",
            status=WorkflowStatus(data.get("status") or WorkflowStatus.DRAFT.value),
            medications=[Medication.from_dict(m) for m in data.get("medications") or []],
            schedule=DailySchedule.from_dict(data.get("schedule")),
            warnings=[MedicationWarning.from_dict(w) for w in data.get("warnings") or []],
            notes=list(data.get("notes") or []),
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
            schema_version=int(data.get("schemaVersion") or 0),
        )


def migrate_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a stored profile dict up to the current schema version.

    Raises PersistenceError for versions newer than this code understands.
    """
    current = reconciliation_settings.CURRENT_PROFILE_SCHEMA_VERSION
    version = int(data.get("schemaVersion") or 0)

    if version > current:
        raise PersistenceError(
            f"Profile {data.get('id')} has schema version {version}; "
            f"this build reads up to {current}"
        )

    if version == 0:
        data = _migrate_v0(data)

    data["schemaVersion"] = current
    return data


def _migrate_v0(data: Dict[str, Any]) -> Dict[str, Any]:
    migrated = dict(data)
    logger.info(f"Migrating legacy profile {data.get('id')}")

    status = str(data.get("status") or "DRAFT").upper()
    if status not in LEGACY_STATUSES:
        logger.warning(f"Unknown legacy status {status!r}; using DRAFT")
    migrated["status"] = LEGACY_STATUSES.get(status, WorkflowStatus.DRAFT).value

    medications = []
    for index, record in enumerate(data.get("medications") or []):
        try:
            medications.append(Medication.from_dict(record).to_dict())
        except ValidationError as e:
            logger.warning(f"Dropping legacy medication #{index}: {e}")
    migrated["medications"] = medications

    schedule = data.get("schedule")
    notes = list(data.get("notes") or [])
    if isinstance(schedule, list):
        slots: Dict[str, List[str]] = {s: [] for s in ("morning", "noon", "evening", "bedtime")}
        for item in schedule:
            if not isinstance(item, dict):
                continue
            slot = LEGACY_SLOTS.get(str(item.get("timeOfDay", "")).strip().lower())
            if slot is None:
                logger.warning(f"Dropping legacy schedule item with timeOfDay {item.get('timeOfDay')!r}")
                continue
            for ref in item.get("medications") or []:
                if isinstance(ref, str) and ref.strip() and ref.strip() not in slots[slot]:
                    slots[slot].append(ref.strip())
            if item.get("notes"):
                notes.append(str(item["notes"]))
        migrated["schedule"] = slots
    migrated["notes"] = notes
    migrated.setdefault("warnings", [])
    return migrated


class ProfileStore:
    """SQLite-backed single-record-per-patient store."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or base_settings.PROFILE_DB_PATH)
        self._init_database()

    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                profile_id      TEXT PRIMARY KEY,
                schema_version  INTEGER NOT NULL,
                status          TEXT NOT NULL,
                last_updated    TEXT NOT NULL,
                profile_data    TEXT NOT NULL
            )
        """)
        conn.commit()
        conn.close()
        logger.info(f"Profile store initialized: {self.db_path}")

    def save(self, profile: PatientProfile) -> PatientProfile:
        """Overwrite the stored profile. Returns the stamped profile."""
        profile.last_updated = datetime.now(timezone.utc)
        profile.schema_version = reconciliation_settings.CURRENT_PROFILE_SCHEMA_VERSION
        self.save_raw(profile.to_dict())
        logger.info(f"Saved profile {profile.id} ({profile.status.value})")
        return profile

    def save_raw(self, data: Dict[str, Any]) -> None:
        """Write a profile dict as-is (used for imports of legacy data)."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("""
                INSERT OR REPLACE INTO profiles
                    (profile_id, schema_version, status, last_updated, profile_data)
                VALUES (?, ?, ?, ?, ?)
            """, (
                str(data.get("id") or DEFAULT_PROFILE_ID),
                int(data.get("schemaVersion") or 0),
                str(data.get("status") or WorkflowStatus.DRAFT.value),
                data.get("lastUpdated") or datetime.now(timezone.utc).isoformat(),
                json.dumps(data, default=str),
            ))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save profile {data.get('id')}: {e}") from e
        finally:
            conn.close()

    def load(self, profile_id: str = DEFAULT_PROFILE_ID) -> PatientProfile:
        """Stored profile, migrated if needed; a fresh DRAFT profile if none exists."""
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("SELECT profile_data FROM profiles WHERE profile_id = ?", (profile_id,))
        row = cur.fetchone()
        conn.close()

        if row is None:
            return PatientProfile(id=profile_id)

        try:
            data = json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Stored profile {profile_id} is not valid JSON") from e

        try:
            return PatientProfile.from_dict(migrate_profile(data))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise PersistenceError(f"Stored profile {profile_id} is malformed: {e}") from e

    def reset(self, profile_id: str = DEFAULT_PROFILE_ID) -> None:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("DELETE FROM profiles WHERE profile_id = ?", (profile_id,))
        conn.commit()
        conn.close()
        logger.info(f"Reset profile {profile_id}")
