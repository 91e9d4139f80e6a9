"""
Audit Logger

DESIGN DECISION: Every change to the trip ledger is logged.
This provides:
1. A history the group can look back on ("who deleted the taxi?")
2. Debugging capability for surprising settlements
3. Correlation of all events belonging to one ledger operation

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from seoulmate.models.audit import AuditEvent, AuditEventBuilder
from seoulmate.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_member_added(
        self,
        member_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.member_added(
            member_id=member_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_member_renamed(
        self,
        member_id: UUID,
        old_name: str,
        new_name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.member_renamed(
            member_id=member_id,
            old_name=old_name,
            new_name=new_name,
            correlation_id=correlation_id,
        ))

    async def log_member_removed(
        self,
        member_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.member_removed(
            member_id=member_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_expense_added(
        self,
        expense_id: UUID,
        payer: str,
        amount: str,
        split_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a recorded expense."""
        await self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            payer=payer,
            amount=amount,
            split_count=split_count,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: UUID,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_rejected(
        self,
        expense_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log an expense that failed validation."""
        await self.log(AuditEventBuilder.expense_rejected(
            expense_id=expense_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_settlement_computed(
        self,
        participant_count: int,
        expense_count: int,
        transfer_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_computed(
            participant_count=participant_count,
            expense_count=expense_count,
            transfer_count=transfer_count,
            correlation_id=correlation_id,
        ))

    async def log_settlement_failed(
        self,
        error_message: str,
        expense_index: Optional[int],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_failed(
            error_message=error_message,
            expense_index=expense_index,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a storage backend failure."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a ledger operation and pass it through
    everything that operation touches.
    """
    return uuid4()
