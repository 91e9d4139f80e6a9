"""
In-Memory Storage Implementation

Process-local storage for a single trip. Used for tests, for demos, and as
the base of the local JSON backend.

Subscribers are notified synchronously after every write, which plays the
role of the change events a hosted document store would push.
"""

from typing import Callable, Optional
from uuid import UUID

import structlog

from seoulmate.models.audit import AuditEvent
from seoulmate.models.expense import Expense, TripMember
from seoulmate.services.storage.interface import (
    EXPENSES,
    MEMBERS,
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    TripStorageInterface,
    Unsubscribe,
)


logger = structlog.get_logger(__name__)


class InMemoryTripStorage(TripStorageInterface):
    """Dict-backed trip storage with change notifications."""

    def __init__(self):
        self._members: dict[UUID, TripMember] = {}
        self._expenses: dict[UUID, Expense] = {}
        self._subscribers: dict[str, list[Callable[[list], None]]] = {
            MEMBERS: [],
            EXPENSES: [],
        }

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def list_members(self) -> list[TripMember]:
        return self._snapshot(MEMBERS)

    async def save_member(self, member: TripMember) -> TripMember:
        if member.id in self._members:
            raise DuplicateError(f"Member already exists: {member.id}")
        self._ensure_name_free(member)
        self._commit(MEMBERS, {**self._members, member.id: member})
        return member

    async def update_member(self, member: TripMember) -> TripMember:
        if member.id not in self._members:
            raise NotFoundError(f"Member not found: {member.id}")
        self._ensure_name_free(member)
        self._commit(MEMBERS, {**self._members, member.id: member})
        return member

    async def delete_member(self, member_id: UUID) -> TripMember:
        members = dict(self._members)
        try:
            member = members.pop(member_id)
        except KeyError:
            raise NotFoundError(f"Member not found: {member_id}")
        self._commit(MEMBERS, members)
        return member

    def _ensure_name_free(self, member: TripMember) -> None:
        for other in self._members.values():
            if other.name == member.name and other.id != member.id:
                raise DuplicateError(f"A member named {member.name!r} already exists")

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def list_expenses(self) -> list[Expense]:
        return self._snapshot(EXPENSES)

    async def save_expense(self, expense: Expense) -> Expense:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._commit(EXPENSES, {**self._expenses, expense.id: expense})
        return expense

    async def delete_expense(self, expense_id: UUID) -> Expense:
        expenses = dict(self._expenses)
        try:
            expense = expenses.pop(expense_id)
        except KeyError:
            raise NotFoundError(f"Expense not found: {expense_id}")
        self._commit(EXPENSES, expenses)
        return expense

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        collection: str,
        callback: Callable[[list], None],
    ) -> Unsubscribe:
        if collection not in self._subscribers:
            raise StorageError(f"Unknown collection: {collection}")

        callbacks = self._subscribers[collection]
        callbacks.append(callback)
        callback(self._snapshot(collection))

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _snapshot(self, collection: str, items: Optional[dict] = None) -> list:
        if items is None:
            items = self._members if collection == MEMBERS else self._expenses
        if collection == MEMBERS:
            return list(items.values())
        # Newest first; insertion order breaks ties.
        return sorted(
            reversed(list(items.values())),
            key=lambda e: e.spent_at,
            reverse=True,
        )

    def _commit(self, collection: str, items: dict) -> None:
        """Replace a collection with its updated contents, then notify."""
        if collection == MEMBERS:
            self._members = items
        else:
            self._expenses = items
        self._changed(collection)

    def _changed(self, collection: str) -> None:
        """Push the new snapshot to every subscriber of `collection`."""
        snapshot = self._snapshot(collection)
        for callback in list(self._subscribers[collection]):
            try:
                callback(snapshot)
            except Exception as e:
                # The write is already committed; log and keep notifying
                logger.error(
                    "subscriber_failed",
                    collection=collection,
                    error=str(e),
                )


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
