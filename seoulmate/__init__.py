"""
SeoulMate - Expense Core

Shared-expense ledger and settlement engine for a group trip.

DESIGN PRINCIPLES:
1. Settlement is a pure function of an explicit snapshot
2. Fail early, fail visibly: invalid expenses are rejected, never coerced
3. Every ledger change is auditable
4. Storage layer is swappable
"""

from seoulmate.models.expense import (
    Expense,
    Participant,
    SettlementReport,
    Transfer,
    TripMember,
)
from seoulmate.settlement import (
    DuplicateParticipantError,
    InvalidExpenseError,
    SettlementEngine,
    SettlementError,
    compute_settlement,
)

__version__ = "1.0.0"
__author__ = "SeoulMate Team"

__all__ = [
    "DuplicateParticipantError",
    "Expense",
    "InvalidExpenseError",
    "Participant",
    "SettlementEngine",
    "SettlementError",
    "SettlementReport",
    "Transfer",
    "TripMember",
    "compute_settlement",
]
