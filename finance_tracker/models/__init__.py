"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.record import (
    LABEL_FIELDS,
    RECORD_MODELS,
    DataError,
    ExpenseRecord,
    IncomeRecord,
    Record,
    RecordDraft,
    RecordKind,
    SavingRecord,
    ValidationIssue,
    ValidationResult,
    parse_record,
)
from finance_tracker.models.insights import (
    CategoryTotal,
    DashboardView,
    HighestCategory,
    LedgerSummary,
    Prediction,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "LABEL_FIELDS",
    "RECORD_MODELS",
    "DataError",
    "ExpenseRecord",
    "IncomeRecord",
    "Record",
    "RecordDraft",
    "RecordKind",
    "SavingRecord",
    "ValidationIssue",
    "ValidationResult",
    "parse_record",
    # Insight models
    "CategoryTotal",
    "DashboardView",
    "HighestCategory",
    "LedgerSummary",
    "Prediction",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
