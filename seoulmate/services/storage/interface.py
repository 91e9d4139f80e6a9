"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for trip storage.
This allows us to:
1. Run entirely in memory for tests and demos
2. Fall back to local JSON files when no cloud store is configured
3. Add a hosted document store later without touching the ledger

The interface is intentionally simple - just the operations the trip
ledger needs. Every write notifies subscribers of the changed collection,
so views can refresh without polling.
"""

from abc import ABC, abstractmethod
from typing import Callable
from uuid import UUID

from seoulmate.models.audit import AuditEvent
from seoulmate.models.expense import Expense, TripMember


MEMBERS = "members"
EXPENSES = "expenses"

Unsubscribe = Callable[[], None]


class TripStorageInterface(ABC):
    """
    Abstract interface for a trip's members and expenses.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def list_members(self) -> list[TripMember]:
        """
        List the roster in the order members were added.
        """
        pass

    @abstractmethod
    async def save_member(self, member: TripMember) -> TripMember:
        """
        Add a member to the roster.

        Raises:
            DuplicateError: If a member with the same name exists
        """
        pass

    @abstractmethod
    async def update_member(self, member: TripMember) -> TripMember:
        """
        Replace an existing member (e.g. after a rename).

        Raises:
            NotFoundError: If the member doesn't exist
            DuplicateError: If another member already has the new name
        """
        pass

    @abstractmethod
    async def delete_member(self, member_id: UUID) -> TripMember:
        """
        Remove a member and return the removed record.

        Expenses that reference the member by name are left as they are.

        Raises:
            NotFoundError: If the member doesn't exist
        """
        pass

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """
        List all expenses, newest first.
        """
        pass

    @abstractmethod
    async def save_expense(self, expense: Expense) -> Expense:
        """
        Record an expense.

        Raises:
            DuplicateError: If an expense with the same ID exists
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> Expense:
        """
        Remove an expense and return the removed record.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        collection: str,
        callback: Callable[[list], None],
    ) -> Unsubscribe:
        """
        Watch a collection ('members' or 'expenses').

        The callback receives the current snapshot immediately and again
        after every change. Returns a function that stops the subscription.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
