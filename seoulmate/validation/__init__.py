"""Expense validation package."""

from seoulmate.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
