"""
Result types for the budgeting engine.

Types:
    CategoryStatus: One row of the monthly budget grid
    AssignmentResult: Posted assignment plus an optional overage warning
    BudgetTotals: Summary numbers for a period
    OverspentCategory: A category whose rolling balance is negative
    GoalProgress: Computed progress of one goal in a period
    FundedGoal: One assignment made by fund_underfunded_goals
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from budgeting.exceptions import OverBudgetWarning
    from ledger.models import Transaction


@dataclass(frozen=True)
class CategoryStatus:
    """
    Budget numbers of one category for one period.

    balance = previous_balance + budgeted - activity
    """

    category_id: uuid.UUID
    name: str
    group_id: uuid.UUID | None
    previous_balance: int
    budgeted: int
    activity: int
    balance: int

    @property
    def is_overspent(self) -> bool:
        return self.balance < 0


@dataclass(frozen=True)
class AssignmentResult:
    transaction: Transaction
    warning: OverBudgetWarning | None = None


@dataclass(frozen=True)
class BudgetTotals:
    """
    Period summary.

    left_to_budget = income + unassigned - budgeted - prior_overspending

    unassigned is the net Unassigned activity of the period: reconciliation
    adjustments, interest charges and uncategorised postings.
    """

    period: str
    income: int
    unassigned: int
    budgeted: int
    prior_overspending: int
    left_to_budget: int
    available_to_budget: int
    overspent_total: int
    is_overbudgeted: bool


@dataclass(frozen=True)
class OverspentCategory:
    category_id: uuid.UUID
    name: str
    balance: int
    overspent_amount: int


@dataclass(frozen=True)
class GoalProgress:
    """
    Progress of a goal in a period.

    Fields that do not apply to the goal type are None.
    """

    goal_id: uuid.UUID
    category_id: uuid.UUID
    goal_type: str
    target_amount: int
    target_date: date | None
    budgeted_this_period: int
    balance: int
    percent_complete: int
    is_complete: bool
    needed_this_month: int | None = None
    remaining_amount: int | None = None
    months_remaining: int | None = None
    needed_per_month: int | None = None
    is_on_track: bool | None = None

    @property
    def funding_need(self) -> int:
        """Amount that would satisfy the goal for this period."""
        if self.needed_this_month is not None:
            return self.needed_this_month
        if self.needed_per_month is not None:
            return max(0, self.needed_per_month - self.budgeted_this_period)
        return self.remaining_amount or 0


@dataclass(frozen=True)
class FundedGoal:
    goal_id: uuid.UUID
    category_id: uuid.UUID
    amount: int
    transaction_id: uuid.UUID
