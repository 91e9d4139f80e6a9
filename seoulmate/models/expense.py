"""
Core Data Models for SeoulMate

These models define the schemas for everything the expense core handles:
trip members, shared expenses, settlement transfers and the report the
settlement engine returns.

DESIGN DECISION: Money is carried as Decimal end to end.
Floats coming from forms or JSON are converted through str, so 0.1 stays 0.1.

Expense.amount is deliberately NOT constrained to be non-negative here.
The settlement engine must be able to see a negative amount and reject it
with a precise error naming the offending expense.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# A participant is identified by its display name, as stored on expenses.
Participant = str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# TRIP RECORDS
# =============================================================================

class TripMember(BaseModel):
    """A person on the trip roster."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique member ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display name, also used to reference the member on expenses"
    )


class Expense(BaseModel):
    """
    A shared expense.

    One member fronted `amount`; the cost is divided equally among
    `split_among` (which may or may not include the payer).

    Accepts the field names used by stored documents (`involved`) and by
    API payloads (`splitAmong`) as well as `split_among`.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        description="Amount in the trip's home currency"
    )
    payer: Participant = Field(
        ...,
        min_length=1,
        description="Member who fronted the money"
    )
    split_among: list[Participant] = Field(
        default_factory=list,
        validation_alias=AliasChoices("split_among", "splitAmong", "involved"),
        description="Members who share the cost equally"
    )
    spent_at: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("spent_at", "date"),
        description="When the expense was recorded"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def float_through_str(cls, v):
        """Convert floats via their repr so 0.1 does not become 0.1000000000000000055."""
        if isinstance(v, float):
            return Decimal(str(v))
        return v


# =============================================================================
# SETTLEMENT OUTPUT
# =============================================================================

class Transfer(BaseModel):
    """One settlement payment from a debtor to a creditor."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_participant: Participant = Field(
        ...,
        alias="from",
        description="Debtor paying the money"
    )
    to_participant: Participant = Field(
        ...,
        alias="to",
        description="Creditor receiving the money"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount to transfer, rounded to the currency unit"
    )

    @model_validator(mode='after')
    def no_self_transfer(self) -> 'Transfer':
        if self.from_participant == self.to_participant:
            raise ValueError("A transfer cannot go from a participant to themselves")
        return self


class SettlementReport(BaseModel):
    """
    Result of settling a list of expenses among a roster.

    All mappings are keyed by participant in roster order.

    INVARIANTS:
    - balances[p] == total_paid[p] - total_share[p] for every participant
    - sum(balances) + sum(unattributed) == 0
    - applying every transfer drives every balance to ~0
    """
    model_config = ConfigDict(frozen=True)

    balances: dict[Participant, Decimal] = Field(default_factory=dict)
    total_paid: dict[Participant, Decimal] = Field(default_factory=dict)
    total_share: dict[Participant, Decimal] = Field(default_factory=dict)
    transfers: list[Transfer] = Field(default_factory=list)

    # Would-be balances of names that are not on the roster
    # (e.g. a member deleted after they were put on an expense).
    unattributed: dict[Participant, Decimal] = Field(default_factory=dict)

    currency: Optional[str] = None

    @property
    def debtors(self) -> list[Participant]:
        """Participants with a negative balance."""
        return [p for p, b in self.balances.items() if b < 0]

    @property
    def creditors(self) -> list[Participant]:
        """Participants with a positive balance."""
        return [p for p, b in self.balances.items() if b > 0]

    @property
    def is_settled(self) -> bool:
        """True when nobody needs to pay anybody."""
        return not self.transfers

    def apply_transfers(self) -> dict[Participant, Decimal]:
        """
        Return the balances left after every transfer is paid.

        The debtor's balance goes up by the amount paid, the creditor's
        goes down by the amount received.
        """
        remaining = dict(self.balances)
        for transfer in self.transfers:
            remaining[transfer.from_participant] += transfer.amount
            remaining[transfer.to_participant] -= transfer.amount
        return remaining

    def to_dict(self) -> dict:
        """Plain-dict form for callers that speak the JSON shape."""
        return {
            "balances": dict(self.balances),
            "totalPaid": dict(self.total_paid),
            "totalShare": dict(self.total_share),
            "transfers": [
                t.model_dump(by_alias=True) for t in self.transfers
            ],
        }
