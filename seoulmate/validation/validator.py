"""
Two-Stage Expense Validation

DESIGN DECISION: An expense is checked before it is written to the trip
ledger, in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Input parses into an expense (amount is a number, payer given)
- Amount present and positive
- Payer non-empty
- Split list non-empty
This catches data-entry mistakes that the settlement engine would reject.

STAGE 2 - SEMANTIC VALIDATION:
- Payer and split members are on the current roster
- Nobody is listed twice in the split
- Absurd amount detection
These are warnings only: the engine tolerates unknown names, and the
group may have a reason for an odd entry.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the caller to surface.
"""

from collections import Counter
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import uuid4

from pydantic import ValidationError

from seoulmate.config import get_settings
from seoulmate.models.expense import Expense, Participant
from seoulmate.models.validation import ValidationIssue, ValidationResult


# Friendlier wording for input that cannot be parsed at all.
_PARSE_MESSAGES = {
    "amount": ("Amount is not a number", "Enter the amount using digits only"),
    "payer": ("Payer is missing", "Select who paid for this expense"),
    "split_among": ("Split list is not a list of members", "Select who this expense is split between"),
}


class ExpenseValidator:
    """
    Validates an expense against the roster it will be settled with.
    """

    def __init__(self, max_expense_amount: Optional[Decimal] = None):
        if max_expense_amount is None:
            max_expense_amount = get_settings().app.max_expense_amount
        self._max_amount = max_expense_amount

    def _validate_schema(
        self,
        expense: Expense,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not expense.amount.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount is not a number",
                severity="error",
            ))
        elif expense.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount that was actually paid",
            ))

        if not expense.payer or not expense.payer.strip():
            issues.append(ValidationIssue(
                field="payer",
                issue_type="missing",
                message="Payer is missing",
                severity="error",
                suggested_fix="Select who paid for this expense",
            ))

        if not expense.split_among:
            issues.append(ValidationIssue(
                field="split_among",
                issue_type="missing",
                message="At least one member must share the cost",
                severity="error",
                suggested_fix="Select who this expense is split between",
            ))

        if not expense.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Expense has no description",
                severity="warning",
                suggested_fix="Add a short note so the group recognises it",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        expense: Expense,
        roster: set[Participant],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation against the roster.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if expense.payer not in roster:
            issues.append(ValidationIssue(
                field="payer",
                issue_type="unknown_member",
                message=f"{expense.payer} is not on the trip roster",
                severity="warning",
                suggested_fix="Their payment will not count towards any balance",
            ))

        unknown = [m for m in dict.fromkeys(expense.split_among) if m not in roster]
        if unknown:
            issues.append(ValidationIssue(
                field="split_among",
                issue_type="unknown_member",
                message=f"Not on the trip roster: {', '.join(unknown)}",
                severity="warning",
                suggested_fix="Their share will not be charged to anyone",
            ))

        repeated = [m for m, n in Counter(expense.split_among).items() if n > 1]
        if repeated:
            issues.append(ValidationIssue(
                field="split_among",
                issue_type="duplicate_member",
                message=f"Listed more than once: {', '.join(repeated)}",
                severity="warning",
                suggested_fix="Each listing is charged a full share",
            ))

        if expense.amount > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({expense.amount:,}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        expense: Expense,
        roster: Iterable[Participant],
    ) -> ValidationResult:
        """
        Run full two-stage validation.

        Stage 2 only runs if stage 1 passes.
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(expense)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(expense, set(roster))
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            expense_id=expense.id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def validate_fields(
        self,
        fields: dict[str, Any],
        roster: Iterable[Participant],
    ) -> tuple[Optional[Expense], ValidationResult]:
        """
        Build an expense from raw input and validate it.

        Input that cannot be parsed into an Expense at all (blank payer,
        non-numeric amount) fails stage 1 with one issue per bad field.

        Returns:
            (expense or None, validation_result)
        """
        try:
            expense = Expense.model_validate(fields)
        except ValidationError as e:
            issues = []
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "expense"
                message, fix = _PARSE_MESSAGES.get(field, (error["msg"], None))
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_value",
                    message=message,
                    severity="error",
                    suggested_fix=fix,
                ))
            return None, ValidationResult(
                expense_id=fields.get("id") or uuid4(),
                schema_valid=False,
                semantic_valid=False,
                is_valid=False,
                issues=issues,
            )

        return expense, self.validate(expense, roster)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ Expense looks good."

        lines = []

        if result.has_errors:
            lines.append("❌ This expense can't be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
