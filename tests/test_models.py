"""
Tests for SeoulMate

Test strategy:
1. Unit tests for individual components (models, validator, engine)
2. Ledger flows over in-memory storage
3. No network or hosted services in tests
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from seoulmate.models.expense import (
    Expense,
    SettlementReport,
    Transfer,
    TripMember,
)
from seoulmate.models.validation import ValidationIssue, ValidationResult
from seoulmate.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModels:
    """Tests for trip and expense models."""

    def test_member_strips_whitespace(self):
        """Test that whitespace is stripped from member names."""
        member = TripMember(name="  Minji  ")
        assert member.name == "Minji"

    def test_member_requires_name(self):
        with pytest.raises(ValueError):
            TripMember(name="   ")

    def test_expense_creation(self):
        expense = Expense(
            description="Bibimbap lunch",
            amount=Decimal("36000"),
            payer="Minji",
            split_among=["Minji", "Joon", "Ara"],
        )
        assert expense.amount == Decimal("36000")
        assert expense.split_among == ["Minji", "Joon", "Ara"]
        assert expense.spent_at.tzinfo is not None

    def test_expense_accepts_stored_field_names(self):
        """Stored documents use 'involved' and 'date'."""
        expense = Expense.model_validate({
            "amount": 12000,
            "payer": "Joon",
            "involved": ["Joon", "Ara"],
            "date": "2024-05-01T09:30:00+00:00",
            "description": "Taxi",
        })
        assert expense.split_among == ["Joon", "Ara"]
        assert expense.spent_at == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

    def test_expense_float_amount_goes_through_str(self):
        expense = Expense(amount=0.1, payer="A", split_among=["A"])
        assert expense.amount == Decimal("0.1")

    def test_expense_allows_negative_amount(self):
        """Negative amounts are left for the engine to reject with context."""
        expense = Expense(amount=-10, payer="A", split_among=["A"])
        assert expense.amount == Decimal("-10")

    def test_expense_requires_payer(self):
        with pytest.raises(ValueError):
            Expense(amount=10, payer="", split_among=["A"])


class TestSettlementModels:
    """Tests for transfers and reports."""

    def test_transfer_aliases(self):
        transfer = Transfer.model_validate({"from": "B", "to": "A", "amount": 50})
        assert transfer.from_participant == "B"
        assert transfer.to_participant == "A"

    def test_transfer_rejects_self_transfer(self):
        with pytest.raises(ValueError, match="themselves"):
            Transfer(from_participant="A", to_participant="A", amount=Decimal("5"))

    def test_transfer_rejects_zero_amount(self):
        with pytest.raises(ValueError):
            Transfer(from_participant="A", to_participant="B", amount=Decimal("0"))

    def test_report_apply_transfers(self):
        report = SettlementReport(
            balances={"A": Decimal("50"), "B": Decimal("-50")},
            transfers=[Transfer(from_participant="B", to_participant="A", amount=Decimal("50"))],
        )
        assert report.apply_transfers() == {"A": Decimal("0"), "B": Decimal("0")}
        # Original balances untouched
        assert report.balances["B"] == Decimal("-50")

    def test_empty_report_is_settled(self):
        assert SettlementReport().is_settled is True


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Expense added",
        )
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.MEMBER_ADDED,
            description="Member added",
            details={"name": "Ara"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "member_added"
        assert log_dict["details"]["name"] == "Ara"
        assert log_dict["entity_id"] is None

    def test_builder_expense_added(self):
        expense_id = uuid4()
        correlation_id = uuid4()

        event = AuditEventBuilder.expense_added(
            expense_id=expense_id,
            payer="Minji",
            amount="36000",
            split_count=3,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.entity_id == expense_id
        assert event.correlation_id == correlation_id
        assert event.details["split_count"] == 3
        assert event.is_user_action is True

    def test_builder_settlement_failed_is_error(self):
        event = AuditEventBuilder.settlement_failed(
            error_message="Expense #2 is invalid: amount is negative: -5",
            expense_index=2,
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.details["expense_index"] == 2


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            expense_id=uuid4(),
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        result = ValidationResult(
            expense_id=uuid4(),
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="payer",
                    issue_type="unknown_member",
                    message="Dana is not on the trip roster",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_pattern(self):
        with pytest.raises(ValueError):
            ValidationIssue(
                field="amount",
                issue_type="x",
                message="x",
                severity="fatal",
            )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
