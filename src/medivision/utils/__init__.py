# ============================================================================
# src/medivision/utils/__init__.py
# ============================================================================
"""
Utility modules for the reconciliation engine.
"""

from .exceptions import (
    MedivisionError,
    ExtractionFailure,
    ValidationError,
    InvalidStateTransition,
    ReferenceNotFound,
    TranslationMismatch,
    HistoryRecordNotFound,
    PersistenceError,
)

from .logging import (
    setup_logging,
    JsonFormatter,
    LogContext,
    log_performance,
    create_audit_logger,
)

from .metrics import (
    MetricsCollector,
    get_metrics,
    increment,
    record_time,
    time_operation,
)

__all__ = [
    # Exceptions
    'MedivisionError',
    'ExtractionFailure',
    'ValidationError',
    'InvalidStateTransition',
    'ReferenceNotFound',
    'TranslationMismatch',
    'HistoryRecordNotFound',
    'PersistenceError',
    # Logging
    'setup_logging',
    'JsonFormatter',
    'LogContext',
    'log_performance',
    'create_audit_logger',
    # Metrics
    'MetricsCollector',
    'get_metrics',
    'increment',
    'record_time',
    'time_operation',
]
