"""Settlement exceptions."""

from typing import Optional
from uuid import UUID


class SettlementError(Exception):
    """Base exception for settlement computation."""
    pass


class InvalidExpenseError(SettlementError):
    """
    An expense cannot take part in settlement.

    Raised for a negative or non-finite amount, an empty split, or a
    record that is not an expense at all. The whole computation is
    abandoned; no partial report is produced.
    """

    def __init__(
        self,
        index: int,
        reason: str,
        expense_id: Optional[UUID] = None,
    ):
        self.index = index
        self.reason = reason
        self.expense_id = expense_id
        super().__init__(f"Expense #{index} is invalid: {reason}")


class DuplicateParticipantError(SettlementError):
    """The same participant appears twice in the roster."""

    def __init__(self, participant: str):
        self.participant = participant
        super().__init__(f"Participant listed more than once: {participant!r}")
