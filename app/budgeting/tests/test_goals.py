"""
Tests for GoalService.
"""

import uuid
from datetime import date

import pytest

from budgeting.choices import GoalType
from budgeting.exceptions import NotABudgetCategory
from budgeting.goals import GoalService
from budgeting.models import Goal
from budgeting.periods import Period
from budgeting.services import EnvelopeService
from core.exceptions import NotFoundError, ValidationError

MARCH = Period(2024, 3)


class TestCreateGoal:
    """Tests for GoalService.create_goal()."""

    def test_create_monthly_goal(self, budget, groceries):
        goal = GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 40000)

        assert goal.category_id == groceries.id
        assert goal.is_active
        assert goal.target_date is None

    def test_replaces_active_goal(self, budget, groceries):
        first = GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 40000)
        second = GoalService.create_goal(budget.id, groceries.id, GoalType.TARGET_BALANCE, 90000)

        first.refresh_from_db()
        assert not first.is_active
        assert second.is_active
        assert Goal.objects.filter(category=groceries, is_active=True).count() == 1

    def test_target_date_required(self, budget, groceries):
        with pytest.raises(ValidationError) as exc_info:
            GoalService.create_goal(budget.id, groceries.id, GoalType.TARGET_BY_DATE, 40000)

        assert exc_info.value.error_code == "TARGET_DATE_REQUIRED"

    def test_unknown_type(self, budget, groceries):
        with pytest.raises(ValidationError) as exc_info:
            GoalService.create_goal(budget.id, groceries.id, "weekly", 40000)

        assert exc_info.value.error_code == "INVALID_GOAL_TYPE"

    def test_non_positive_target(self, budget, groceries):
        with pytest.raises(ValidationError):
            GoalService.create_goal(budget.id, groceries.id, GoalType.TARGET_BALANCE, 0)

    def test_system_category_rejected(self, budget, income):
        with pytest.raises(NotABudgetCategory):
            GoalService.create_goal(budget.id, income.id, GoalType.TARGET_BALANCE, 1000)

    def test_get_and_delete(self, budget, groceries):
        goal = GoalService.create_goal(budget.id, groceries.id, GoalType.TARGET_BALANCE, 1000)

        assert GoalService.get_goal(goal.id) == goal
        GoalService.delete_goal(goal.id)

        with pytest.raises(NotFoundError):
            GoalService.get_goal(goal.id)

    def test_get_unknown(self, db):
        with pytest.raises(NotFoundError):
            GoalService.get_goal(uuid.uuid4())


class TestProgress:
    """Tests for GoalService.progress()."""

    def test_monthly_funding_half_funded(self, budget, checking, groceries, receive):
        receive(checking, 1000)
        goal = GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 100)
        EnvelopeService.assign(budget.id, groceries.id, 50, MARCH)

        progress = GoalService.progress(goal, MARCH)

        assert progress.budgeted_this_period == 50
        assert progress.needed_this_month == 50
        assert progress.is_complete is False
        assert progress.percent_complete == 50
        assert progress.funding_need == 50

    def test_monthly_funding_counts_only_this_period(self, budget, groceries):
        goal = GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 100)
        EnvelopeService.assign(budget.id, groceries.id, 100, Period(2024, 2))

        progress = GoalService.progress(goal, MARCH)

        assert progress.budgeted_this_period == 0
        assert progress.balance == 100
        assert progress.needed_this_month == 100

    def test_monthly_funding_over_target_capped(self, budget, groceries):
        goal = GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 100)
        EnvelopeService.assign(budget.id, groceries.id, 250, MARCH)

        progress = GoalService.progress(goal, MARCH)

        assert progress.is_complete is True
        assert progress.percent_complete == 100
        assert progress.needed_this_month == 0

    def test_target_balance(self, budget, groceries):
        goal = GoalService.create_goal(budget.id, groceries.id, GoalType.TARGET_BALANCE, 50000)
        EnvelopeService.assign(budget.id, groceries.id, 30000, MARCH)

        progress = GoalService.progress(goal, MARCH)

        assert progress.remaining_amount == 20000
        assert progress.percent_complete == 60
        assert progress.is_complete is False
        assert progress.needed_this_month is None

    def test_target_by_date_unfunded(self, budget, groceries):
        goal = GoalService.create_goal(
            budget.id, groceries.id, GoalType.TARGET_BY_DATE, 120000, target_date=date(2024, 6, 15)
        )

        progress = GoalService.progress(goal, MARCH)

        assert progress.months_remaining == 4
        assert progress.needed_per_month == 30000
        assert progress.is_on_track is False
        assert progress.funding_need == 30000

    def test_target_by_date_on_track(self, budget, groceries):
        goal = GoalService.create_goal(
            budget.id, groceries.id, GoalType.TARGET_BY_DATE, 120000, target_date=date(2024, 6, 15)
        )
        EnvelopeService.assign(budget.id, groceries.id, 30000, MARCH)

        progress = GoalService.progress(goal, MARCH)

        assert progress.remaining_amount == 90000
        assert progress.needed_per_month == 30000
        assert progress.is_on_track is True
        assert progress.percent_complete == 25
        assert progress.funding_need == 0

    def test_target_by_date_counts_this_month_once(self, budget, groceries):
        goal = GoalService.create_goal(
            budget.id, groceries.id, GoalType.TARGET_BY_DATE, 120000, target_date=date(2024, 12, 15)
        )
        EnvelopeService.assign(budget.id, groceries.id, 9300, Period(2024, 1))

        progress = GoalService.progress(goal, Period(2024, 1))

        assert progress.months_remaining == 12
        assert progress.balance == 9300
        assert progress.needed_per_month == 10000
        assert progress.is_on_track is False
        assert progress.funding_need == 700

    def test_target_by_date_later_month_uses_opening_balance(self, budget, groceries):
        goal = GoalService.create_goal(
            budget.id, groceries.id, GoalType.TARGET_BY_DATE, 120000, target_date=date(2024, 6, 15)
        )
        EnvelopeService.assign(budget.id, groceries.id, 30000, Period(2024, 2))
        EnvelopeService.assign(budget.id, groceries.id, 22500, MARCH)

        progress = GoalService.progress(goal, MARCH)

        assert progress.needed_per_month == 22500
        assert progress.is_on_track is True
        assert progress.funding_need == 0

    def test_target_by_date_rounds_up(self, budget, groceries):
        goal = GoalService.create_goal(
            budget.id, groceries.id, GoalType.TARGET_BY_DATE, 1000, target_date=date(2024, 5, 1)
        )

        assert GoalService.progress(goal, MARCH).needed_per_month == 334

    def test_target_by_date_past_deadline(self, budget, groceries):
        goal = GoalService.create_goal(
            budget.id, groceries.id, GoalType.TARGET_BY_DATE, 1000, target_date=date(2024, 1, 1)
        )

        progress = GoalService.progress(goal, MARCH)

        assert progress.months_remaining == 1
        assert progress.needed_per_month == 1000

    def test_ledger_progress_skips_inactive(self, budget, groceries, rent):
        GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 100)
        GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 200)
        GoalService.create_goal(budget.id, rent.id, GoalType.TARGET_BALANCE, 300)

        rows = GoalService.ledger_progress(budget.id, MARCH)

        assert [row.target_amount for row in rows] == [200, 300]


class TestFundUnderfundedGoals:
    """Tests for GoalService.fund_underfunded_goals()."""

    def test_funds_in_creation_order_until_money_runs_out(self, budget, checking, groceries, rent, receive):
        receive(checking, 10000)
        first = GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 6000)
        second = GoalService.create_goal(budget.id, rent.id, GoalType.MONTHLY_FUNDING, 8000)

        funded = GoalService.fund_underfunded_goals(budget.id, MARCH)

        assert [(item.goal_id, item.amount) for item in funded] == [(first.id, 6000), (second.id, 4000)]
        assert EnvelopeService.available_to_budget(budget.id) == 0
        assert rent.get_balance() == 4000

    def test_skips_funded_goals(self, budget, checking, groceries, rent, receive):
        receive(checking, 10000)
        GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 500)
        EnvelopeService.assign(budget.id, groceries.id, 500, MARCH)
        goal = GoalService.create_goal(budget.id, rent.id, GoalType.TARGET_BALANCE, 2000)

        funded = GoalService.fund_underfunded_goals(budget.id, MARCH)

        assert [(item.goal_id, item.amount) for item in funded] == [(goal.id, 2000)]

    def test_nothing_available(self, budget, groceries):
        GoalService.create_goal(budget.id, groceries.id, GoalType.MONTHLY_FUNDING, 500)

        assert GoalService.fund_underfunded_goals(budget.id, MARCH) == []
        assert groceries.get_balance() == 0
