# ============================================================================
# src/medivision/core/context/medication.py
# ============================================================================
"""
Medication record model
- Canonical reconciled medication (Medication)
- Raw extraction candidate prior to merge (MedicationCandidate)

Both validate on construction and raise ValidationError on missing
identity or invalid enum values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from ...utils.exceptions import ValidationError
from .enums import MedicationCategory, SourceType

E = TypeVar("E", bound=Enum)

# Fields a reviewer may change during review; id and source are fixed
EDITABLE_FIELDS = ("name", "dosage", "frequency", "instructions", "category", "reasoning")


def coerce_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Accept an enum member or its (case-insensitive) value/name."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == wanted or member.name.lower() == wanted:
                return member
    allowed = [m.value for m in enum_cls]
    raise ValidationError(
        f"Invalid {field_name} {value!r}; expected one of {allowed}",
        field_name=field_name,
    )


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string", field_name=field_name)
    return value.strip()


def _optional_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class Medication:
    id: str
    name: str
    dosage: str = ""
    frequency: str = ""          # free text, e.g. "twice daily"
    instructions: str = ""
    source: SourceType = SourceType.HOSPITAL
    category: MedicationCategory = MedicationCategory.RX
    reasoning: Optional[str] = None

    # Display names of records folded into this one during reconciliation,
    # e.g. ["Lipitor (HOME)"]
    merged_from: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.id = _require_text(self.id, "id")
        self.name = _require_text(self.name, "name")
        self.dosage = _optional_text(self.dosage)
        self.frequency = _optional_text(self.frequency)
        self.instructions = _optional_text(self.instructions)
        self.source = coerce_enum(SourceType, self.source, "source")
        self.category = coerce_enum(MedicationCategory, self.category, "category")

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.dosage}".strip()

    @property
    def merged_sources(self) -> List[SourceType]:
        """Sources of every record folded into this medication, including itself."""
        sources = [self.source]
        for label in self.merged_from:
            for member in SourceType:
                if label.endswith(f"({member.value})") and member not in sources:
                    sources.append(member)
        return sources

    def update_field(self, field_name: str, value: Any) -> None:
        """Apply a reviewer edit, re-checking the field's invariant."""
        if field_name not in EDITABLE_FIELDS:
            raise ValidationError(f"Field {field_name!r} is not editable", field_name=field_name)

        if field_name == "name":
            self.name = _require_text(value, "name")
        elif field_name == "category":
            self.category = coerce_enum(MedicationCategory, value, "category")
        elif field_name == "reasoning":
            self.reasoning = None if value is None else str(value)
        else:
            setattr(self, field_name, _optional_text(value))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "instructions": self.instructions,
            "source": self.source.value,
            "category": self.category.value,
            "reasoning": self.reasoning,
            "mergedFrom": list(self.merged_from),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Medication":
        if not isinstance(data, dict):
            raise ValidationError("Medication record must be an object")
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            dosage=data.get("dosage", ""),
            frequency=data.get("frequency", ""),
            instructions=data.get("instructions", ""),
            source=data.get("source"),
            category=data.get("category", MedicationCategory.RX),
            reasoning=data.get("reasoning"),
            merged_from=list(data.get("mergedFrom") or []),
        )


@dataclass
class MedicationCandidate:
    """
    One medication as read from a single image, before reconciliation.

    ``id`` is whatever the extraction collaborator assigned; it is only a
    hint and may collide across images.
    """
    name: str
    source: SourceType
    dosage: str = ""
    frequency: str = ""
    instructions: str = ""
    id: Optional[str] = None
    reasoning: Optional[str] = None

    def __post_init__(self):
        self.name = _require_text(self.name, "name")
        self.source = coerce_enum(SourceType, self.source, "source")
        self.dosage = _optional_text(self.dosage)
        self.frequency = _optional_text(self.frequency)
        self.instructions = _optional_text(self.instructions)
        self.id = _optional_text(self.id) or None
        self.reasoning = _optional_text(self.reasoning) or None

    @property
    def label(self) -> str:
        return f"{self.name} ({self.source.value})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MedicationCandidate":
        if not isinstance(data, dict):
            raise ValidationError("Medication candidate must be an object")
        return cls(
            name=data.get("name"),
            source=data.get("source"),
            dosage=data.get("dosage", ""),
            frequency=data.get("frequency", ""),
            instructions=data.get("instructions", ""),
            id=data.get("id"),
            reasoning=data.get("reasoning"),
        )
