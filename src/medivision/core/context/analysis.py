# ============================================================================
# src/medivision/core/context/analysis.py
# ============================================================================
"""
Reconciliation aggregate types
- DailySchedule: medication references partitioned over four time slots
- MedicationWarning: detected issue bound to medication ids
- AnalysisResult: unit of reconciliation output, review and history
- HistoryRecord: immutable approved snapshot
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ...utils.exceptions import ValidationError
from .enums import SLOT_ORDER, TimeSlot
from .medication import Medication, coerce_enum

SlotLike = Union[TimeSlot, str]


def to_slot(value: SlotLike) -> TimeSlot:
    return coerce_enum(TimeSlot, value, "slot")


@dataclass
class DailySchedule:
    """
    Ordered medication references per slot.

    References are normally Medication ids; degraded input may carry a
    literal medication name instead. A reference appearing in more than
    one slot is legal (e.g. "twice daily").
    """
    morning: List[str] = field(default_factory=list)
    noon: List[str] = field(default_factory=list)
    evening: List[str] = field(default_factory=list)
    bedtime: List[str] = field(default_factory=list)

    def slot(self, slot: SlotLike) -> List[str]:
        return getattr(self, to_slot(slot).value)

    def add(self, reference: str, slot: SlotLike) -> bool:
        """Append unless already present in that slot. Returns True if added."""
        entries = self.slot(slot)
        if reference in entries:
            return False
        entries.append(reference)
        return True

    def remove(self, reference: str, slot: SlotLike) -> bool:
        """Remove every occurrence from the slot. Returns True if anything was removed."""
        entries = self.slot(slot)
        kept = [r for r in entries if r != reference]
        removed = len(kept) != len(entries)
        entries[:] = kept
        return removed

    def slots_containing(self, reference: str) -> List[TimeSlot]:
        return [s for s in SLOT_ORDER if reference in self.slot(s)]

    def references(self) -> List[str]:
        """Every distinct reference in slot order."""
        seen: List[str] = []
        for s in SLOT_ORDER:
            for ref in self.slot(s):
                if ref not in seen:
                    seen.append(ref)
        return seen

    def to_dict(self) -> Dict[str, List[str]]:
        return {s.value: list(self.slot(s)) for s in SLOT_ORDER}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DailySchedule":
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError("Schedule must be an object of slot arrays", field_name="schedule")
        schedule = cls()
        for s in SLOT_ORDER:
            entries = data.get(s.value) or []
            if not isinstance(entries, list):
                raise ValidationError(f"Slot {s.value!r} must be an array", field_name=s.value)
            for ref in entries:
                if isinstance(ref, str) and ref.strip():
                    schedule.slot(s).append(ref.strip())
        return schedule


@dataclass
class MedicationWarning:
    description: str
    related_medication_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.description, str) or not self.description.strip():
            raise ValidationError("Warning description must be non-empty", field_name="description")
        # Keep first-seen order, drop repeats
        self.related_medication_ids = list(dict.fromkeys(self.related_medication_ids))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "relatedMedicationIds": list(self.related_medication_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicationWarning":
        if not isinstance(data, dict):
            raise ValidationError("Warning must be an object")
        ids = data.get("relatedMedicationIds") or []
        return cls(
            description=data.get("description"),
            related_medication_ids=[str(i) for i in ids],
        )


# Wire name used by the collaborator payloads
Warning = MedicationWarning


@dataclass
class AnalysisResult:
    medications: List[Medication] = field(default_factory=list)
    schedule: DailySchedule = field(default_factory=DailySchedule)
    warnings: List[MedicationWarning] = field(default_factory=list)

    def __post_init__(self):
        seen = set()
        for med in self.medications:
            if med.id in seen:
                raise ValidationError(f"Duplicate medication id {med.id!r}", field_name="id")
            seen.add(med.id)

    @property
    def medication_ids(self) -> List[str]:
        return [m.id for m in self.medications]

    def find_medication(self, medication_id: str) -> Optional[Medication]:
        for med in self.medications:
            if med.id == medication_id:
                return med
        return None

    def find_by_name(self, name: str) -> List[Medication]:
        wanted = name.strip().lower()
        return [m for m in self.medications if m.name.lower() == wanted]

    def unresolved_references(self) -> List[str]:
        """Schedule references that match no medication id."""
        ids = set(self.medication_ids)
        return [ref for ref in self.schedule.references() if ref not in ids]

    def stale_warnings(self) -> List[MedicationWarning]:
        ids = set(self.medication_ids)
        return [w for w in self.warnings if any(i not in ids for i in w.related_medication_ids)]

    def copy(self) -> "AnalysisResult":
        """Deep, independent copy; shares no mutable structure with self."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medications": [m.to_dict() for m in self.medications],
            "schedule": self.schedule.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        if not isinstance(data, dict):
            raise ValidationError("AnalysisResult must be an object")
        return cls(
            medications=[Medication.from_dict(m) for m in data.get("medications") or []],
            schedule=DailySchedule.from_dict(data.get("schedule")),
            warnings=[MedicationWarning.from_dict(w) for w in data.get("warnings") or []],
        )


@dataclass(frozen=True)
class HistoryRecord:
    """
    Approved snapshot. Frozen; ``data`` is a private deep copy owned by
    the history store and handed out only as further copies.
    """
    id: str
    date: datetime
    schedule_name: str
    data: AnalysisResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "scheduleName": self.schedule_name,
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryRecord":
        return cls(
            id=str(data["id"]),
            date=datetime.fromisoformat(data["date"]),
            schedule_name=data["scheduleName"],
            data=AnalysisResult.from_dict(data["data"]),
        )

    def detached(self) -> "HistoryRecord":
        return HistoryRecord(self.id, self.date, self.schedule_name, self.data.copy())
