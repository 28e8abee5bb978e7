"""
Goals engine.

Goals are read-only views over the ledger: progress is recomputed from the
category's budgeted amount and balance for the requested period.

    monthly_funding: complete once budgeted_this_period >= target
    target_balance:  complete once balance >= target
    target_by_date:  needs ceil((target - opening balance) / months_remaining)
                     per month, where the opening balance excludes this
                     period's assignments

Usage:
    from budgeting.goals import GoalService

    goal = GoalService.create_goal(budget.id, vacation.id, GoalType.TARGET_BY_DATE,
                                   120000, target_date=date(2024, 12, 1))
    GoalService.progress(goal, Period.parse("2024-03")).needed_per_month
    GoalService.fund_underfunded_goals(budget.id, Period.parse("2024-03"))
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from budgeting.choices import GoalType
from budgeting.models import Goal
from budgeting.periods import Period
from budgeting.services import EnvelopeService, net_credits
from budgeting.types import FundedGoal, GoalProgress
from core.exceptions import NotFoundError, ValidationError
from core.services import BaseService
from ledger.choices import SystemRole
from ledger.models import Account, Transaction
from ledger.services import AccountService, LedgerService
from ledger.types import validate_amount

if TYPE_CHECKING:
    from datetime import date
    from typing import Any


def _percent(value: int, target: int) -> int:
    return max(0, min(100, value * 100 // target))


class GoalService(BaseService):
    """
    Service for category goals.

    All methods are class methods - no instance state is maintained.
    """

    # ==========================================================================
    # CRUD
    # ==========================================================================

    @classmethod
    def create_goal(
        cls,
        ledger_id: uuid.UUID,
        category_id: uuid.UUID,
        goal_type: str,
        target_amount: int,
        target_date: date | None = None,
    ) -> Goal:
        """
        Create a goal, deactivating the category's previous active goal.

        Raises:
            ValidationError: Unknown type, bad amount, or missing target_date
            NotABudgetCategory: Category cannot hold budgeted money
        """
        if goal_type not in GoalType.values:
            raise ValidationError(
                f"Unknown goal type: {goal_type}",
                error_code="INVALID_GOAL_TYPE",
                details={"goal_type": goal_type},
            )
        validate_amount(target_amount, "target_amount")
        if goal_type == GoalType.TARGET_BY_DATE and target_date is None:
            raise ValidationError(
                "target_by_date goals need a target_date",
                error_code="TARGET_DATE_REQUIRED",
            )
        category = EnvelopeService.assignable_category(ledger_id, category_id)

        with cls.atomic():
            Goal.objects.filter(category=category, is_active=True).update(is_active=False)
            goal = Goal.objects.create(
                category=category,
                goal_type=goal_type,
                target_amount=target_amount,
                target_date=target_date if goal_type == GoalType.TARGET_BY_DATE else None,
            )

        cls.get_logger().info(
            "Created goal",
            extra={"goal_id": str(goal.id), "category_id": str(category.id), "goal_type": goal_type},
        )
        return goal

    @staticmethod
    def get_goal(goal_id: uuid.UUID) -> Goal:
        goal = Goal.objects.select_related("category").filter(id=goal_id).first()
        if goal is None:
            raise NotFoundError(
                f"Goal {goal_id} not found",
                error_code="GOAL_NOT_FOUND",
                details={"goal_id": str(goal_id)},
            )
        return goal

    @staticmethod
    def active_goals(ledger_id: uuid.UUID):
        """Active goals of active categories, oldest first."""
        return (
            Goal.objects.filter(category__ledger_id=ledger_id, category__is_active=True, is_active=True)
            .select_related("category")
            .order_by("created_at")
        )

    @classmethod
    def delete_goal(cls, goal_id: uuid.UUID) -> None:
        goal = cls.get_goal(goal_id)
        goal.delete()
        cls.get_logger().info("Deleted goal", extra={"goal_id": str(goal_id)})

    # ==========================================================================
    # Progress
    # ==========================================================================

    @staticmethod
    def progress(goal: Goal, period: Period) -> GoalProgress:
        """Compute a goal's progress for one period."""
        category: Account = goal.category
        in_period = (
            Transaction.objects.counted()
            .filter(ledger_id=category.ledger_id)
            .in_period(period.start, period.end)
            .budgeting()
        )
        budgeted = net_credits(in_period, [category.id]).get(category.id, 0)
        balance = category.get_balance(as_of=period.end)
        target = goal.target_amount
        common = {
            "goal_id": goal.id,
            "category_id": category.id,
            "goal_type": goal.goal_type,
            "target_amount": target,
            "target_date": goal.target_date,
            "budgeted_this_period": budgeted,
            "balance": balance,
        }

        if goal.goal_type == GoalType.MONTHLY_FUNDING:
            return GoalProgress(
                **common,
                percent_complete=_percent(budgeted, target),
                is_complete=budgeted >= target,
                needed_this_month=max(0, target - budgeted),
            )

        remaining = max(0, target - balance)
        if goal.goal_type == GoalType.TARGET_BALANCE:
            return GoalProgress(
                **common,
                percent_complete=_percent(balance, target),
                is_complete=balance >= target,
                remaining_amount=remaining,
            )

        months_remaining = max(1, period.months_until(Period.containing(goal.target_date)) + 1)
        # This period's budgeted amount is one of the months_remaining contributions
        opening_balance = balance - budgeted
        return GoalProgress(
            **common,
            percent_complete=_percent(balance, target),
            is_complete=balance >= target,
            remaining_amount=remaining,
            months_remaining=months_remaining,
            needed_per_month=-(-max(0, target - opening_balance) // months_remaining),
            is_on_track=opening_balance + budgeted * months_remaining >= target,
        )

    @classmethod
    def ledger_progress(cls, ledger_id: uuid.UUID, period: Period) -> list[GoalProgress]:
        AccountService.get_ledger(ledger_id)
        return [cls.progress(goal, period) for goal in cls.active_goals(ledger_id)]

    # ==========================================================================
    # Funding
    # ==========================================================================

    @classmethod
    def fund_underfunded_goals(
        cls,
        ledger_id: uuid.UUID,
        period: Period,
        user: Any = None,
    ) -> list[FundedGoal]:
        """
        Assign each goal's current need, oldest goal first, until money runs out.

        Never budgets more than is available, so no overage warning is
        produced. Goals that need nothing are skipped.

        Returns:
            The assignments made, in funding order
        """
        AccountService.get_ledger(ledger_id)
        funded: list[FundedGoal] = []

        with cls.atomic():
            goals = list(cls.active_goals(ledger_id))
            pools = [
                AccountService.system_account(ledger_id, role).id
                for role in (SystemRole.INCOME, SystemRole.UNASSIGNED)
            ]
            LedgerService.lock_accounts(ledger_id, {*pools, *(goal.category_id for goal in goals)})
            available = EnvelopeService.available_to_budget(ledger_id)

            for goal in goals:
                if available <= 0:
                    break
                need = cls.progress(goal, period).funding_need
                if need <= 0:
                    continue
                amount = min(need, available)
                result = EnvelopeService.assign(
                    ledger_id,
                    goal.category_id,
                    amount,
                    period,
                    allow_overbudget=False,
                    user=user,
                )
                available -= amount
                funded.append(
                    FundedGoal(
                        goal_id=goal.id,
                        category_id=goal.category_id,
                        amount=amount,
                        transaction_id=result.transaction.id,
                    )
                )

        cls.get_logger().info(
            "Funded underfunded goals",
            extra={
                "ledger_id": str(ledger_id),
                "period": str(period),
                "goals_funded": len(funded),
                "total": sum(item.amount for item in funded),
            },
        )
        return funded
