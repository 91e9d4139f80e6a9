"""
Trip Ledger

This module ties together storage, validation, the settlement engine and
the audit trail into the operations a trip's expense screen needs:

1. Roster: add / rename / remove members
2. Expenses: record (validated) / delete / list
3. Settlement: who pays whom, computed from a fresh snapshot
4. Totals and the quick currency converter

DESIGN DECISION: The ledger never keeps its own copy of members or
expenses. Every settlement is computed from what storage holds right now,
so the result can never drift from the data the group sees.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, Union
from uuid import UUID, uuid4

from seoulmate.audit import AuditLogger, create_correlation_id
from seoulmate.config import get_settings
from seoulmate.models.expense import (
    Expense,
    Participant,
    SettlementReport,
    TripMember,
)
from seoulmate.models.validation import ValidationResult
from seoulmate.services.storage import (
    DuplicateError,
    NotFoundError,
    StorageError,
    TripStorageInterface,
    create_trip_storage,
)
from seoulmate.services.storage.interface import Unsubscribe
from seoulmate.settlement import InvalidExpenseError, SettlementEngine
from seoulmate.validation import ExpenseValidator


Number = Union[int, float, str, Decimal]


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ExpenseRejectedError(LedgerError):
    """An expense failed validation and was not recorded."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("Expense rejected: " + "; ".join(messages))


class RosterFullError(LedgerError):
    """The roster already has the maximum number of members."""
    pass


class TripLedger:
    """
    Expense ledger for one trip.

    All collaborators are injectable; anything not given is built from
    settings (storage backend, roster cap, exchange rate).
    """

    def __init__(
        self,
        storage: Optional[TripStorageInterface] = None,
        validator: Optional[ExpenseValidator] = None,
        engine: Optional[SettlementEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
        max_members: Optional[int] = None,
        exchange_rate: Optional[Decimal] = None,
    ):
        settings = get_settings()

        self._storage = storage or create_trip_storage()
        self._validator = validator or ExpenseValidator()
        self._engine = engine or SettlementEngine()
        self._audit_logger = audit_logger or AuditLogger()
        if max_members is None:
            max_members = settings.trip.max_members
        if exchange_rate is None:
            exchange_rate = settings.app.exchange_rate

        self._max_members = max_members
        self._exchange_rate = Decimal(str(exchange_rate))

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    async def list_members(self) -> list[TripMember]:
        return await self._storage.list_members()

    async def member_names(self) -> list[Participant]:
        return [m.name for m in await self._storage.list_members()]

    async def add_member(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> TripMember:
        """
        Add a member to the roster.

        Adding a name that is already on the roster returns the existing
        member instead of creating a second one.

        Raises:
            RosterFullError: If the roster is at max_members
        """
        correlation_id = correlation_id or create_correlation_id()
        member = TripMember(name=name)

        members = await self._storage.list_members()
        for existing in members:
            if existing.name == member.name:
                return existing

        if len(members) >= self._max_members:
            raise RosterFullError(
                f"A trip can have at most {self._max_members} members"
            )

        await self._write("save_member", self._storage.save_member(member), correlation_id)
        await self._audit_logger.log_member_added(
            member_id=member.id,
            name=member.name,
            correlation_id=correlation_id,
        )
        return member

    async def rename_member(
        self,
        member_id: UUID,
        new_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> TripMember:
        """
        Rename a member.

        Existing expenses keep the old name; only new expenses use the new one.
        """
        correlation_id = correlation_id or create_correlation_id()

        current = await self._find_member(member_id)
        renamed = TripMember(id=current.id, name=new_name)

        await self._write("update_member", self._storage.update_member(renamed), correlation_id)
        await self._audit_logger.log_member_renamed(
            member_id=member_id,
            old_name=current.name,
            new_name=renamed.name,
            correlation_id=correlation_id,
        )
        return renamed

    async def remove_member(
        self,
        member_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> TripMember:
        """
        Remove a member from the roster.

        Their past expenses are kept. From then on the settlement leaves
        their name out of the balances.
        """
        correlation_id = correlation_id or create_correlation_id()

        removed = await self._write(
            "delete_member",
            self._storage.delete_member(member_id),
            correlation_id,
        )
        await self._audit_logger.log_member_removed(
            member_id=removed.id,
            name=removed.name,
            correlation_id=correlation_id,
        )
        return removed

    async def _find_member(self, member_id: UUID) -> TripMember:
        for member in await self._storage.list_members():
            if member.id == member_id:
                return member
        raise NotFoundError(f"Member not found: {member_id}")

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def list_expenses(self) -> list[Expense]:
        return await self._storage.list_expenses()

    async def add_expense(
        self,
        description: str,
        amount: Number,
        payer: Participant,
        split_among: Optional[Iterable[Participant]] = None,
        spent_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, ValidationResult]:
        """
        Validate and record an expense.

        If `split_among` is omitted the cost is shared by everyone
        currently on the roster.

        Returns:
            (expense, validation_result) - the result may carry warnings

        Raises:
            ExpenseRejectedError: If validation found errors
        """
        correlation_id = correlation_id or create_correlation_id()

        roster = await self.member_names()
        fields = {
            "id": uuid4(),
            "description": description,
            "amount": amount,
            "payer": payer,
            "split_among": list(split_among) if split_among is not None else roster,
        }
        if spent_at is not None:
            fields["spent_at"] = spent_at

        expense, result = self._validator.validate_fields(fields, roster)
        if expense is None or result.has_errors:
            await self._audit_logger.log_expense_rejected(
                expense_id=result.expense_id,
                issues=[i.model_dump() for i in result.issues],
                correlation_id=correlation_id,
            )
            raise ExpenseRejectedError(result)

        await self._write("save_expense", self._storage.save_expense(expense), correlation_id)
        await self._audit_logger.log_expense_added(
            expense_id=expense.id,
            payer=expense.payer,
            amount=str(expense.amount),
            split_count=len(expense.split_among),
            correlation_id=correlation_id,
        )
        return expense, result

    async def delete_expense(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        correlation_id = correlation_id or create_correlation_id()

        removed = await self._write(
            "delete_expense",
            self._storage.delete_expense(expense_id),
            correlation_id,
        )
        await self._audit_logger.log_expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        )
        return removed

    # ------------------------------------------------------------------
    # Settlement and totals
    # ------------------------------------------------------------------

    async def settle(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementReport:
        """
        Compute who owes whom from the current roster and expenses.

        Raises:
            InvalidExpenseError: If a stored expense cannot be settled
        """
        correlation_id = correlation_id or create_correlation_id()

        roster = await self.member_names()
        expenses = await self._storage.list_expenses()

        try:
            report = self._engine.compute(roster, expenses)
        except InvalidExpenseError as e:
            await self._audit_logger.log_settlement_failed(
                error_message=str(e),
                expense_index=e.index,
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_settlement_computed(
            participant_count=len(roster),
            expense_count=len(expenses),
            transfer_count=len(report.transfers),
            correlation_id=correlation_id,
        )
        return report

    async def total_spent(self) -> Decimal:
        """Sum of every recorded expense."""
        return sum(
            (e.amount for e in await self._storage.list_expenses()),
            Decimal("0"),
        )

    def convert(self, amount: Number) -> Decimal:
        """
        Quick-convert a home-currency amount to the display currency.

        Rounded to whole units, as shown on the expense screen.
        """
        value = Decimal(str(amount)) * self._exchange_rate
        return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        collection: str,
        callback: Callable[[list], None],
    ) -> Unsubscribe:
        """Watch 'members' or 'expenses' for changes."""
        return await self._storage.subscribe(collection, callback)

    async def _write(self, operation: str, pending, correlation_id: UUID):
        """Await a storage write, auditing a backend failure before re-raising."""
        try:
            return await pending
        except (NotFoundError, DuplicateError):
            raise
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
