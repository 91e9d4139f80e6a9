"""Settlement engine package."""

from seoulmate.settlement.engine import SettlementEngine, compute_settlement
from seoulmate.settlement.errors import (
    DuplicateParticipantError,
    InvalidExpenseError,
    SettlementError,
)

__all__ = [
    "DuplicateParticipantError",
    "InvalidExpenseError",
    "SettlementEngine",
    "SettlementError",
    "compute_settlement",
]
