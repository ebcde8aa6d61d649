# ============================================================================
# src/medivision/core/context/enums.py
# ============================================================================
"""
Reconciliation Enums
- Provenance of a medication record
- OTC vs prescription classification
- Daily time slots
- Review workflow states
"""

from enum import Enum


class SourceType(str, Enum):
    HOSPITAL = "HOSPITAL"   # Discharge summary / prescription list
    HOME = "HOME"           # Pill bottle or supplement label


class MedicationCategory(str, Enum):
    OTC = "OTC"
    RX = "Rx"


class TimeSlot(str, Enum):
    MORNING = "morning"
    NOON = "noon"
    EVENING = "evening"
    BEDTIME = "bedtime"


# Fixed display/iteration order
SLOT_ORDER = (TimeSlot.MORNING, TimeSlot.NOON, TimeSlot.EVENING, TimeSlot.BEDTIME)


class WorkflowStatus(str, Enum):
    DRAFT = "DRAFT"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
