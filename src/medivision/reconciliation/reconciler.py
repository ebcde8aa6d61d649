# ============================================================================
# src/medivision/reconciliation/reconciler.py
# ============================================================================
"""
Reconciliation Engine

Merges medication candidates extracted from discharge documents and home
pill bottles into one deduplicated medication set plus an initial daily
schedule.

Steps:
1. Validate candidates (bad records are dropped and logged, never fatal)
2. Group by identity key (alias-aware, optionally typo-tolerant)
3. Merge each group; HOSPITAL is authoritative for dosage/frequency and the
   overruled value is kept in ``reasoning``
4. Classify OTC/Rx
5. Derive slots from frequency text

Warnings are left empty here; see validators.interaction_analyzer.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from ..config import reconciliation_settings
from ..constants.medication_db import levenshtein_distance
from ..core.context.analysis import AnalysisResult, DailySchedule
from ..core.context.enums import SourceType
from ..core.context.medication import Medication, MedicationCandidate
from ..utils.exceptions import ValidationError
from ..utils.logging import log_performance
from ..utils.metrics import increment
from .classifier import classify
from .frequency import derive_slots
from .normalizer import ResolvedName, resolve_name

logger = logging.getLogger(__name__)

CandidateLike = Union[MedicationCandidate, Dict[str, Any]]


def new_medication_id() -> str:
    return f"med-{uuid.uuid4().hex[:8]}"


def _same_value(a: str, b: str) -> bool:
    return "".join(a.lower().split()) == "".join(b.lower().split())


@dataclass
class _Group:
    resolved: ResolvedName
    members: List[MedicationCandidate] = field(default_factory=list)

    @property
    def primary(self) -> MedicationCandidate:
        for member in self.members:
            if member.source == SourceType.HOSPITAL:
                return member
        return self.members[0]


class Reconciler:
    """
    Turns raw candidates into an AnalysisResult.

    Config options:
        fuzzy_name_matching: merge names within a small edit distance
        fuzzy_max_distance: edit distance tolerated
        fuzzy_min_length: shortest name eligible for fuzzy merging
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.config = config or {}
        self.fuzzy = self.config.get('fuzzy_name_matching', reconciliation_settings.FUZZY_NAME_MATCHING)
        self.max_distance = self.config.get('fuzzy_max_distance', reconciliation_settings.FUZZY_MAX_DISTANCE)
        self.min_length = self.config.get('fuzzy_min_length', reconciliation_settings.FUZZY_MIN_LENGTH)
        self.id_factory = id_factory or new_medication_id

    @log_performance(logger, "reconcile", timer_name="reconciliation.duration")
    def reconcile(self, candidates: Iterable[CandidateLike]) -> AnalysisResult:
        """
        Reconcile candidates into medications + schedule.

        An empty candidate list yields an empty AnalysisResult, not an error.
        """
        valid = self._validate(candidates)
        if not valid:
            logger.info("No medication candidates to reconcile")
            return AnalysisResult()

        groups = self._group(valid)

        medications: List[Medication] = []
        schedule = DailySchedule()
        used_ids: Set[str] = set()

        for group in groups:
            medication = self._merge(group, used_ids)
            used_ids.add(medication.id)

            assignment = derive_slots(medication.frequency)
            if assignment.is_fallback:
                increment("reconciliation.frequency_fallbacks")
                medication.reasoning = self._append_note(medication.reasoning, assignment.note)

            for slot in assignment.slots:
                schedule.add(medication.id, slot)

            medications.append(medication)

        logger.info(
            f"Reconciled {len(valid)} candidates into {len(medications)} medications"
        )
        return AnalysisResult(medications=medications, schedule=schedule, warnings=[])

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _validate(self, candidates: Iterable[CandidateLike]) -> List[MedicationCandidate]:
        valid: List[MedicationCandidate] = []
        for index, item in enumerate(candidates or []):
            if isinstance(item, MedicationCandidate):
                valid.append(item)
                continue
            try:
                valid.append(MedicationCandidate.from_dict(item))
            except ValidationError as e:
                increment("reconciliation.candidates_dropped")
                logger.warning(f"Dropping candidate #{index}: {e}")
        return valid

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------
    def _group(self, candidates: List[MedicationCandidate]) -> List[_Group]:
        groups: List[_Group] = []
        by_key: Dict[str, _Group] = {}

        for candidate in candidates:
            resolved = resolve_name(candidate.name, self.fuzzy, self.max_distance, self.min_length)
            group = by_key.get(resolved.key)

            if group is None and not resolved.known:
                group = self._fuzzy_group(resolved, groups)

            if group is None:
                group = _Group(resolved=resolved)
                groups.append(group)
                by_key[resolved.key] = group

            group.members.append(candidate)

        return groups

    def _fuzzy_group(self, resolved: ResolvedName, groups: List[_Group]) -> Optional[_Group]:
        """Match unlisted names against other unlisted groups (OCR typos)."""
        if not self.fuzzy or self.max_distance <= 0 or len(resolved.key) < self.min_length:
            return None
        for group in groups:
            if group.resolved.known or len(group.resolved.key) < self.min_length:
                continue
            if levenshtein_distance(resolved.key, group.resolved.key) <= self.max_distance:
                logger.info(f"Grouping {resolved.key!r} with {group.resolved.key!r} (near match)")
                return group
        return None

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------
    def _merge(self, group: _Group, used_ids: Set[str]) -> Medication:
        primary = group.primary
        others = [m for m in group.members if m is not primary]
        notes: List[str] = []

        dosage = primary.dosage
        frequency = primary.frequency
        instructions = primary.instructions

        for other in others:
            dosage = self._resolve_field("dosage", primary, other, dosage, notes)
            frequency = self._resolve_field("frequency", primary, other, frequency, notes)
            if not instructions and other.instructions:
                instructions = other.instructions

        if others:
            increment("reconciliation.merges")
            logger.info(
                f"Merged {[m.label for m in group.members]} into {primary.name!r}"
            )

        reasoning = primary.reasoning
        for note in notes:
            reasoning = self._append_note(reasoning, note)

        return Medication(
            id=self._pick_id(group, primary, used_ids),
            name=primary.name,
            dosage=dosage,
            frequency=frequency,
            instructions=instructions,
            source=primary.source,
            category=classify(primary.name),
            reasoning=reasoning,
            merged_from=list(dict.fromkeys(m.label for m in others)),
        )

    @staticmethod
    def _resolve_field(
        field_name: str,
        primary: MedicationCandidate,
        other: MedicationCandidate,
        current: str,
        notes: List[str],
    ) -> str:
        other_value = getattr(other, field_name)
        if not other_value:
            return current
        if not current:
            notes.append(f"{field_name} taken from {other.label}: {other_value}")
            return other_value
        if _same_value(current, other_value):
            return current

        if primary.source == SourceType.HOSPITAL and other.source == SourceType.HOME:
            notes.append(f"bottle says {other_value}; discharge order {current} used")
        else:
            notes.append(
                f"{other.label} lists {field_name} {other_value}; "
                f"{primary.label} value {current} used"
            )
        return current

    def _pick_id(self, group: _Group, primary: MedicationCandidate, used_ids: Set[str]) -> str:
        for member in [primary] + [m for m in group.members if m is not primary]:
            if member.id and member.id not in used_ids:
                return member.id

        new_id = self.id_factory()
        while new_id in used_ids:
            new_id = self.id_factory()
        return new_id

    @staticmethod
    def _append_note(reasoning: Optional[str], note: Optional[str]) -> Optional[str]:
        if not note:
            return reasoning
        if not reasoning:
            return note
        return f"{reasoning.rstrip('. ')}. {note}"


def reconcile(candidates: Iterable[CandidateLike]) -> AnalysisResult:
    """Reconcile with default settings."""
    return Reconciler().reconcile(candidates)
