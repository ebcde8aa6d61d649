# src/medivision/core/context/__init__.py

from .enums import SourceType, MedicationCategory, TimeSlot, WorkflowStatus, SLOT_ORDER
from .medication import Medication, MedicationCandidate, EDITABLE_FIELDS
from .analysis import DailySchedule, MedicationWarning, Warning, AnalysisResult, HistoryRecord, to_slot

__all__ = [
    "SourceType",
    "MedicationCategory",
    "TimeSlot",
    "WorkflowStatus",
    "SLOT_ORDER",
    "Medication",
    "MedicationCandidate",
    "EDITABLE_FIELDS",
    "DailySchedule",
    "MedicationWarning",
    "Warning",
    "AnalysisResult",
    "HistoryRecord",
    "to_slot",
]
