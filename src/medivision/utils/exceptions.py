# ============================================================================
# src/medivision/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the medication reconciliation engine.
"""

from typing import Iterable, Optional


class MedivisionError(Exception):
    """Base exception for all reconciliation errors."""
    pass


class ExtractionFailure(MedivisionError):
    """
    OCR/extraction collaborator failed, timed out, or returned a payload
    that is not schema-conforming JSON. Retryable.
    """
    pass


class ValidationError(MedivisionError):
    """A medication or schedule violates a model invariant."""
    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class InvalidStateTransition(MedivisionError):
    """Workflow operation is illegal for the current lifecycle state."""
    def __init__(self, message: str, current: Optional[str] = None, attempted: Optional[str] = None):
        super().__init__(message)
        self.current = current
        self.attempted = attempted


class ReferenceNotFound(MedivisionError):
    """An edit or move targets a medication reference absent from the current set."""
    def __init__(self, reference: str):
        super().__init__(f"Medication reference not found: {reference!r}")
        self.reference = reference


class TranslationMismatch(MedivisionError):
    """Translated content does not carry the same medication id set as the source."""
    def __init__(self, missing_ids: Iterable[str] = (), unexpected_ids: Iterable[str] = ()):
        self.missing_ids = sorted(missing_ids)
        self.unexpected_ids = sorted(unexpected_ids)
        super().__init__(
            f"Translated medication ids differ from source "
            f"(missing={self.missing_ids}, unexpected={self.unexpected_ids})"
        )


class HistoryRecordNotFound(MedivisionError):
    """Requested history record does not exist."""
    def __init__(self, record_id: str):
        super().__init__(f"History record not found: {record_id}")
        self.record_id = record_id


class PersistenceError(MedivisionError):
    """Local store could not be read or written."""
    pass

