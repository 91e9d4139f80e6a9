"""Tests for the two-stage expense validator."""

from decimal import Decimal

import pytest

from seoulmate.models.expense import Expense
from seoulmate.validation import ExpenseValidator


ROSTER = ["Minji", "Joon", "Ara"]


@pytest.fixture
def validator():
    return ExpenseValidator(max_expense_amount=Decimal("1000000"))


class TestSchemaStage:
    """Errors that block an expense from being recorded."""

    def test_valid_expense(self, validator):
        expense = Expense(description="Lunch", amount=30000, payer="Minji", split_among=ROSTER)
        result = validator.validate(expense, ROSTER)
        assert result.is_valid is True
        assert result.issues == []
        assert result.expense_id == expense.id

    def test_zero_amount_is_error(self, validator):
        expense = Expense(description="Lunch", amount=0, payer="Minji", split_among=ROSTER)
        result = validator.validate(expense, ROSTER)
        assert result.schema_valid is False
        assert result.semantic_valid is False
        assert result.has_errors
        assert result.issues[0].field == "amount"

    def test_negative_amount_is_error(self, validator):
        expense = Expense(description="Refund", amount=-100, payer="Minji", split_among=ROSTER)
        assert validator.validate(expense, ROSTER).has_errors

    def test_empty_split_is_error(self, validator):
        expense = Expense(description="Lunch", amount=100, payer="Minji", split_among=[])
        result = validator.validate(expense, ROSTER)
        assert [i.field for i in result.issues if i.severity == "error"] == ["split_among"]

    def test_missing_description_is_warning(self, validator):
        expense = Expense(amount=100, payer="Minji", split_among=ROSTER)
        result = validator.validate(expense, ROSTER)
        assert result.is_valid is True
        assert result.warnings == ["Expense has no description"]

    def test_blank_payer_is_error(self, validator):
        expense = Expense.model_construct(description="Taxi", amount=Decimal("100"), payer="", split_among=ROSTER)
        result = validator.validate(expense, ROSTER)
        assert result.schema_valid is False
        assert [i.field for i in result.issues if i.severity == "error"] == ["payer"]


class TestRawInput:
    """Building an expense from form fields."""

    def test_valid_fields_build_expense(self, validator):
        expense, result = validator.validate_fields(
            {"description": "Lunch", "amount": "30000", "payer": "Minji", "split_among": ROSTER},
            ROSTER,
        )
        assert expense.amount == Decimal("30000")
        assert result.is_valid is True
        assert result.expense_id == expense.id

    def test_unparseable_fields_become_issues(self, validator):
        expense, result = validator.validate_fields(
            {"amount": "lots", "payer": " ", "split_among": ROSTER},
            ROSTER,
        )
        assert expense is None
        assert result.is_valid is False
        assert sorted(i.field for i in result.issues) == ["amount", "payer"]
        assert all(i.severity == "error" for i in result.issues)


class TestSemanticStage:
    """Warnings against the roster."""

    def test_unknown_payer_warns(self, validator):
        expense = Expense(description="Taxi", amount=100, payer="Dana", split_among=ROSTER)
        result = validator.validate(expense, ROSTER)
        assert result.is_valid is True
        assert any(i.issue_type == "unknown_member" and i.field == "payer" for i in result.issues)

    def test_unknown_split_members_listed_once(self, validator):
        expense = Expense(
            description="Taxi", amount=100, payer="Minji",
            split_among=["Minji", "Dana", "Dana"],
        )
        result = validator.validate(expense, ROSTER)
        unknown = [i for i in result.issues if i.field == "split_among" and i.issue_type == "unknown_member"]
        assert len(unknown) == 1
        assert unknown[0].message == "Not on the trip roster: Dana"

    def test_duplicate_split_member_warns(self, validator):
        expense = Expense(
            description="Taxi", amount=100, payer="Minji",
            split_among=["Minji", "Joon", "Joon"],
        )
        result = validator.validate(expense, ROSTER)
        assert any(i.issue_type == "duplicate_member" for i in result.issues)

    def test_high_amount_warns(self, validator):
        expense = Expense(description="Hotel", amount=5000000, payer="Minji", split_among=ROSTER)
        result = validator.validate(expense, ROSTER)
        assert result.is_valid is True
        assert any(i.issue_type == "suspicious_value" for i in result.issues)


class TestSummary:
    """User-facing summary text."""

    def test_clean_summary(self, validator):
        expense = Expense(description="Lunch", amount=100, payer="Minji", split_among=ROSTER)
        summary = validator.get_user_friendly_summary(validator.validate(expense, ROSTER))
        assert summary == "✅ Expense looks good."

    def test_error_summary_includes_fix(self, validator):
        expense = Expense(description="Lunch", amount=0, payer="Minji", split_among=ROSTER)
        summary = validator.get_user_friendly_summary(validator.validate(expense, ROSTER))
        assert "can't be saved" in summary
        assert "Amount must be greater than zero" in summary
        assert "💡" in summary

    def test_warning_summary(self, validator):
        expense = Expense(description="Taxi", amount=100, payer="Dana", split_among=ROSTER)
        summary = validator.get_user_friendly_summary(validator.validate(expense, ROSTER))
        assert summary.startswith("⚠️ Please double-check:")
        assert "Dana is not on the trip roster" in summary
