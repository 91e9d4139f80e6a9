"""
Data Models Package

This package contains all Pydantic models used in the SeoulMate expense core.
"""

from seoulmate.models.expense import (
    Expense,
    Participant,
    SettlementReport,
    Transfer,
    TripMember,
)
from seoulmate.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from seoulmate.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Expense",
    "Participant",
    "SettlementReport",
    "Transfer",
    "TripMember",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
