# src/medivision/reconciliation/__init__.py

from .normalizer import normalize_name, resolve_name, ResolvedName
from .classifier import classify
from .frequency import derive_slots, SlotAssignment
from .reconciler import Reconciler, reconcile, new_medication_id

__all__ = [
    "normalize_name",
    "resolve_name",
    "ResolvedName",
    "classify",
    "derive_slots",
    "SlotAssignment",
    "Reconciler",
    "reconcile",
    "new_medication_id",
]
