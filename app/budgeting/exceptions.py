"""
Budgeting exceptions.

Exception Hierarchy:
    ConflictError (core)
    └── OverBudgetWarning - Assignment exceeds the money available to budget
        (alias: InsufficientFundsWarning)
    ValidationError (core)
    ├── NotABudgetCategory - Target is not an assignable category
    └── NotOverspent - Cover requested for a category with a non-negative balance

OverBudgetWarning is non-fatal: EnvelopeService.assign attaches it to the
result by default and only raises it when the caller disallows overbudgeting.
"""

from __future__ import annotations

from core.exceptions import ConflictError, ValidationError


class OverBudgetWarning(ConflictError):
    """
    Assigning the amount would budget more money than Income holds.

    Attributes:
        amount: Requested assignment in cents
        available: Money available to budget before the assignment
        overage: amount - max(available, 0)
    """

    default_error_code: str = "OVER_BUDGET"

    def __init__(self, amount: int, available: int, overage: int):
        self.amount = amount
        self.available = available
        self.overage = overage
        super().__init__(
            f"Assignment exceeds available to budget by {overage} cents",
            details={"amount": amount, "available": available, "overage": overage},
        )


InsufficientFundsWarning = OverBudgetWarning


class NotABudgetCategory(ValidationError):
    """Budgeting operations only apply to categories (not system categories or groups)."""

    default_error_code: str = "NOT_A_BUDGET_CATEGORY"


class NotOverspent(ValidationError):
    default_error_code: str = "NOT_OVERSPENT"
