# ============================================================================
# src/medivision/core/workflow.py
# ============================================================================
"""
Schedule Review Workflow

Single explicit state machine for one AnalysisResult:

    DRAFT --start_review--> UNDER_REVIEW --approve--> APPROVED
      ^                          |
      +----request_changes-------+
    DRAFT --approve--> APPROVED  (reviewer skipped edits)

Every operation checks the current state and raises InvalidStateTransition
otherwise; state is never changed by a rejected call.

Stale references (ids that no longer exist) in edit/move are no-ops,
counted and logged, so late UI events cannot crash a review.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..config import logging_settings, reconciliation_settings, base_settings
from ..report.report_builder import ReportDocument, ReportLabels, build_report
from ..utils.exceptions import InvalidStateTransition, ReferenceNotFound
from ..utils.logging import create_audit_logger
from ..utils.metrics import increment
from .context.analysis import AnalysisResult, HistoryRecord, SlotLike, to_slot as coerce_slot
from .context.enums import WorkflowStatus
from .history_store import HistoryStore, InMemoryHistoryStore

logger = logging.getLogger(__name__)


def _audit_logger() -> Optional[logging.Logger]:
    if not logging_settings.ENABLE_AUDIT_TRAIL:
        return None
    return create_audit_logger("approvals", base_settings.AUDIT_LOG_PATH)


class ReviewSession:
    """
    Owns the working AnalysisResult while it is reviewed.

    The working result is never shared with the history store: approval
    stores a deep copy and later edits (via revise()) work on another copy.
    """

    def __init__(
        self,
        result: Optional[AnalysisResult] = None,
        history_store: Optional[HistoryStore] = None,
        session_id: Optional[str] = None,
        status: Union[WorkflowStatus, str] = WorkflowStatus.DRAFT,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.result = result if result is not None else AnalysisResult()
        self.history_store = history_store if history_store is not None else InMemoryHistoryStore()
        self.status = WorkflowStatus(status)
        self.review_notes: List[str] = []
        self.approved_record: Optional[HistoryRecord] = None

        # Set when this session was opened from (or revised from) a stored record
        self.source_record_id: Optional[str] = None

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------
    def _require(self, allowed: Iterable[WorkflowStatus], attempted: str) -> None:
        allowed = tuple(allowed)
        if self.status not in allowed:
            raise InvalidStateTransition(
                f"Cannot {attempted} while {self.status.value} "
                f"(allowed: {', '.join(s.value for s in allowed)})",
                current=self.status.value,
                attempted=attempted,
            )

    @property
    def is_editable(self) -> bool:
        return self.status == WorkflowStatus.UNDER_REVIEW

    @property
    def schedule_name(self) -> Optional[str]:
        return self.approved_record.schedule_name if self.approved_record else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start_review(self) -> None:
        self._require([WorkflowStatus.DRAFT], "start_review")
        self.status = WorkflowStatus.UNDER_REVIEW
        logger.info(f"Session {self.session_id} under review")

    def request_changes(self, note: str = "") -> None:
        """Send the schedule back to DRAFT with an optional reviewer note."""
        self._require([WorkflowStatus.UNDER_REVIEW], "request_changes")
        if note and note.strip():
            self.review_notes.append(note.strip())
        self.status = WorkflowStatus.DRAFT
        logger.info(f"Session {self.session_id} returned to draft")

    def edit_field(self, medication_id: str, field_name: str, value: Any) -> bool:
        """
        Change one field of the medication with this id.

        Returns False (no-op) when the id is unknown. Only ids are accepted
        here; an invalid value raises ValidationError and leaves the
        medication unchanged.
        """
        self._require([WorkflowStatus.UNDER_REVIEW], "edit_field")

        medication = self.result.find_medication(medication_id)
        if medication is None:
            self._reference_not_found(ReferenceNotFound(medication_id), "edit")
            return False

        medication.update_field(field_name, value)
        logger.info(f"Edited {field_name} of {medication_id}")
        return True

    def move_medication(self, reference: str, from_slot: SlotLike, to_slot: SlotLike) -> bool:
        """
        Move a reference between slots.

        Removes it from ``from_slot`` (no-op if absent) and appends it to
        ``to_slot`` unless already there. Repeating the same move leaves
        the schedule unchanged.

        Returns False (no-op) when the reference resolves to no medication.
        """
        self._require([WorkflowStatus.UNDER_REVIEW], "move_medication")
        source = coerce_slot(from_slot)
        target = coerce_slot(to_slot)

        try:
            resolved = self._resolve_reference(reference)
        except ReferenceNotFound as e:
            self._reference_not_found(e, "move")
            return False

        self.result.schedule.remove(resolved, source)
        self.result.schedule.add(resolved, target)
        logger.debug(f"Moved {resolved} {source.value} -> {target.value}")
        return True

    def approve(self, schedule_name: str = "") -> HistoryRecord:
        """
        Freeze the current result into a new HistoryRecord.

        A blank name becomes "Schedule N", N being the number of stored
        records plus one.
        """
        self._require([WorkflowStatus.DRAFT, WorkflowStatus.UNDER_REVIEW], "approve")

        name = (schedule_name or "").strip()
        if not name:
            name = f"{reconciliation_settings.SCHEDULE_NAME_PREFIX} {self.history_store.count() + 1}"

        record = HistoryRecord(
            id=str(uuid.uuid4()),
            date=datetime.now(timezone.utc),
            schedule_name=name,
            data=self.result.copy(),
        )
        self.history_store.append(record)

        self.status = WorkflowStatus.APPROVED
        self.approved_record = record
        self.source_record_id = record.id
        logger.info(f"Session {self.session_id} approved as {name!r} ({record.id})")
        self._audit(record)
        return record.detached()

    def revise(self) -> "ReviewSession":
        """New DRAFT session over an independent copy of this approved result."""
        self._require([WorkflowStatus.APPROVED], "revise")
        session = ReviewSession(
            result=self.result.copy(),
            history_store=self.history_store,
        )
        session.source_record_id = self.source_record_id
        logger.info(f"Session {session.session_id} revises record {self.source_record_id}")
        return session

    @classmethod
    def from_history(cls, record_id: str, history_store: HistoryStore) -> "ReviewSession":
        """Open a stored record read-only (APPROVED) for display or export."""
        record = history_store.get(record_id)
        session = cls(
            result=record.data.copy(),
            history_store=history_store,
            status=WorkflowStatus.APPROVED,
        )
        session.approved_record = record
        session.source_record_id = record.id
        return session

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def build_report(
        self,
        labels: Optional[ReportLabels] = None,
        schedule_name: Optional[str] = None,
    ) -> ReportDocument:
        name = schedule_name or self.schedule_name or ""
        date = self.approved_record.date if self.approved_record else None
        return build_report(self.result, name, labels=labels, date=date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "status": self.status.value,
            "scheduleName": self.schedule_name,
            "sourceRecordId": self.source_record_id,
            "reviewNotes": list(self.review_notes),
            "data": self.result.to_dict(),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_reference(self, reference: str) -> str:
        """
        Return the schedule reference to operate on.

        Ids resolve directly. A unique medication name is accepted as a
        degraded fallback; ambiguous or unknown names raise ReferenceNotFound.
        """
        if self.result.find_medication(reference) is not None:
            return reference

        matches = self.result.find_by_name(reference)
        if len(matches) != 1:
            raise ReferenceNotFound(reference)

        increment("review.name_fallback")
        logger.warning(f"Resolved {reference!r} by name to {matches[0].id}")
        # The schedule itself may hold the literal name
        if reference in self.result.schedule.references():
            return reference
        return matches[0].id

    def _reference_not_found(self, error: ReferenceNotFound, operation: str) -> None:
        increment("review.reference_not_found")
        logger.warning(f"Ignored {operation} in session {self.session_id}: {error}")

    def _audit(self, record: HistoryRecord) -> None:
        audit = _audit_logger()
        if audit is None:
            return
        audit.info(
            f"schedule_approved {record.schedule_name}: "
            f"{len(record.data.medications)} medications, {len(record.data.warnings)} warnings",
            extra={"event": "schedule_approved", "record_id": record.id, "session_id": self.session_id},
        )
