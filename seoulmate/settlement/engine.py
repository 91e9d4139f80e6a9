"""
Settlement Engine

Turns a list of shared expenses into the per-member balances and a short,
ordered list of transfers that settles everyone.

ALGORITHM (greedy debt netting):
1. balance = total paid - total share, per member
2. Members below -epsilon are debtors, above +epsilon creditors
3. Debtors sorted most-negative first, creditors largest first (stable)
4. Two cursors: the current debtor pays the current creditor
   min(|debt|, credit); both running balances are updated
5. A cursor advances once its running balance is within epsilon of zero

The transfer count is minimal for this deterministic strategy, not
necessarily the graph-theoretic minimum.

NUMERIC POLICY:
- Decimal arithmetic throughout; shares are not rounded
- Each transfer is rounded to the currency unit only when it is emitted,
  so rounding error never feeds back into the running balances
- Per-transfer rounding can leave a sub-unit residue when an amount does
  not divide evenly; that slack is accepted, not redistributed

LENIENCY:
Names on an expense that are not on the roster (typically a member who was
removed after the expense was recorded) are left out of roster balances.
Their would-be balance is reported in `SettlementReport.unattributed`.

The engine is pure: no I/O, inputs are never mutated.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from seoulmate.config import get_settings
from seoulmate.models.expense import (
    Expense,
    Participant,
    SettlementReport,
    Transfer,
)
from seoulmate.settlement.errors import (
    DuplicateParticipantError,
    InvalidExpenseError,
)


logger = structlog.get_logger(__name__)

ExpenseLike = Union[Expense, Mapping[str, Any]]

ZERO = Decimal("0")


class SettlementEngine:
    """
    Computes settlement reports.

    Holds the numeric policy (epsilon, rounding unit, currency). Anything
    not passed explicitly comes from SettlementSettings.
    """

    def __init__(
        self,
        epsilon: Optional[Decimal] = None,
        rounding_unit: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ):
        if epsilon is None or rounding_unit is None or currency is None:
            defaults = get_settings().settlement
            epsilon = defaults.epsilon if epsilon is None else epsilon
            rounding_unit = defaults.rounding_unit if rounding_unit is None else rounding_unit
            currency = defaults.currency if currency is None else currency

        self.epsilon = _to_decimal(epsilon)
        self.rounding_unit = _to_decimal(rounding_unit)
        self.currency = currency

        if self.epsilon <= 0:
            raise ValueError("epsilon must be positive")
        if self.rounding_unit <= 0:
            raise ValueError("rounding_unit must be positive")

    def compute(
        self,
        participants: Iterable[Participant],
        expenses: Iterable[ExpenseLike],
    ) -> SettlementReport:
        """
        Settle `expenses` among `participants`.

        Every expense is checked before any balance is computed.

        Raises:
            DuplicateParticipantError: a participant is listed twice
            InvalidExpenseError: an expense has a negative amount, an empty
                split, or cannot be read as an expense
        """
        roster = _check_roster(participants)
        checked = [_check_expense(i, e) for i, e in enumerate(expenses)]

        total_paid = {p: ZERO for p in roster}
        total_share = {p: ZERO for p in roster}
        unattributed: dict[Participant, Decimal] = {}

        for index, expense in enumerate(checked):
            if expense.payer in total_paid:
                total_paid[expense.payer] += expense.amount
            else:
                unattributed[expense.payer] = (
                    unattributed.get(expense.payer, ZERO) + expense.amount
                )
                logger.debug(
                    "unknown_participant_excluded",
                    participant=expense.payer,
                    role="payer",
                    expense_index=index,
                )

            portion = expense.amount / len(expense.split_among)
            for member in expense.split_among:
                if member in total_share:
                    total_share[member] += portion
                else:
                    unattributed[member] = unattributed.get(member, ZERO) - portion
                    logger.debug(
                        "unknown_participant_excluded",
                        participant=member,
                        role="split",
                        expense_index=index,
                    )

        balances = {p: total_paid[p] - total_share[p] for p in roster}
        transfers = self._match(balances)

        logger.info(
            "settlement_computed",
            participants=len(roster),
            expenses=len(checked),
            transfers=len(transfers),
            unattributed=len(unattributed),
        )

        return SettlementReport(
            balances=balances,
            total_paid=total_paid,
            total_share=total_share,
            transfers=transfers,
            unattributed=unattributed,
            currency=self.currency,
        )

    def _match(self, balances: dict[Participant, Decimal]) -> list[Transfer]:
        """Pair debtors with creditors using the two-cursor greedy walk."""
        eps = self.epsilon

        # Working copies; the balance map itself is never touched.
        debtors = [[p, b] for p, b in balances.items() if b < -eps]
        creditors = [[p, b] for p, b in balances.items() if b > eps]

        debtors.sort(key=lambda entry: entry[1])
        creditors.sort(key=lambda entry: entry[1], reverse=True)

        transfers = []
        i = j = 0

        while i < len(debtors) and j < len(creditors):
            debtor = debtors[i]
            creditor = creditors[j]

            amount = min(-debtor[1], creditor[1])
            rounded = self._round(amount)

            if rounded > 0:
                transfers.append(Transfer(
                    from_participant=debtor[0],
                    to_participant=creditor[0],
                    amount=rounded,
                ))

            debtor[1] += amount
            creditor[1] -= amount

            if abs(debtor[1]) < eps:
                i += 1
            if creditor[1] < eps:
                j += 1

        return transfers

    def _round(self, amount: Decimal) -> Decimal:
        """Round half up to a whole number of rounding units."""
        units = (amount / self.rounding_unit).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return units * self.rounding_unit


def compute_settlement(
    participants: Iterable[Participant],
    expenses: Iterable[ExpenseLike],
    *,
    epsilon: Optional[Decimal] = None,
    rounding_unit: Optional[Decimal] = None,
    currency: Optional[str] = None,
) -> SettlementReport:
    """
    Compute balances and settling transfers in one call.

    Convenience wrapper around SettlementEngine(...).compute(...).
    """
    engine = SettlementEngine(
        epsilon=epsilon,
        rounding_unit=rounding_unit,
        currency=currency,
    )
    return engine.compute(participants, expenses)


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _check_roster(participants: Iterable[Participant]) -> list[Participant]:
    roster = []
    seen = set()
    for participant in participants:
        if participant in seen:
            raise DuplicateParticipantError(participant)
        seen.add(participant)
        roster.append(participant)
    return roster


def _check_expense(index: int, raw: ExpenseLike) -> Expense:
    """Coerce one input to an Expense and reject what cannot be settled."""
    if isinstance(raw, Expense):
        expense = raw
    else:
        try:
            expense = Expense.model_validate(raw)
        except ValidationError as e:
            raise InvalidExpenseError(index, f"not a valid expense record ({e.error_count()} errors)") from e

    if not expense.amount.is_finite():
        raise InvalidExpenseError(index, f"amount is not a number: {expense.amount}", expense.id)
    if expense.amount < 0:
        raise InvalidExpenseError(index, f"amount is negative: {expense.amount}", expense.id)
    if not expense.split_among:
        raise InvalidExpenseError(index, "split list is empty", expense.id)

    return expense
