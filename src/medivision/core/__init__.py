# ============================================================================
# src/medivision/core/__init__.py
# ============================================================================
"""
Core components: data model, persistence, review workflow, pipeline.

workflow and pipeline import the reconciliation and report packages, which
themselves import core.context, so they are imported from their modules
(medivision.core.workflow, medivision.core.pipeline) rather than here.
"""

from .context import (
    SourceType,
    MedicationCategory,
    TimeSlot,
    WorkflowStatus,
    Medication,
    MedicationCandidate,
    DailySchedule,
    MedicationWarning,
    AnalysisResult,
    HistoryRecord,
)
from .history_store import HistoryStore, InMemoryHistoryStore, SQLiteHistoryStore
from .profile_store import PatientProfile, ProfileStore, migrate_profile
