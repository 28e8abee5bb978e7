"""
End-to-end budgeting scenario: a month of income, assignments, card
spending, goal funding and covering overspending.
"""

from datetime import date

from freezegun import freeze_time

from budgeting.choices import GoalType
from budgeting.goals import GoalService
from budgeting.periods import Period
from budgeting.services import EnvelopeService
from ledger.balances import BalanceService
from ledger.services import LedgerService
from ledger.tests.factories import CategoryFactory

MARCH = Period(2024, 3)


class TestBudgetMonth:
    """One month of envelope budgeting through the services."""

    @freeze_time("2024-03-26")
    def test_month(self, budget, income, checking, groceries, rent, card):
        vacation = CategoryFactory(ledger=budget, name="Vacation")

        LedgerService.post(budget.id, checking.id, income.id, 300000, date(2024, 3, 1), "Paycheck")
        EnvelopeService.assign(budget.id, groceries.id, 40000, MARCH)
        EnvelopeService.assign(budget.id, rent.id, 150000, MARCH)
        LedgerService.post(budget.id, rent.id, checking.id, 150000, date(2024, 3, 2), "Rent")
        LedgerService.post(budget.id, groceries.id, card.id, 45000, date(2024, 3, 3), "Market")

        # Card spending shows in the category and moves into the payment category
        assert [row.category_id for row in EnvelopeService.overspent_categories(budget.id, MARCH)] == [
            groceries.id
        ]
        assert card.payment_category.get_balance() == 45000

        goal = GoalService.create_goal(
            budget.id, vacation.id, GoalType.TARGET_BY_DATE, 60000, target_date=date(2024, 5, 20)
        )
        funded = GoalService.fund_underfunded_goals(budget.id, MARCH)
        assert [(item.goal_id, item.amount) for item in funded] == [(goal.id, 20000)]

        EnvelopeService.cover_overspending(budget.id, groceries.id, vacation.id)
        LedgerService.transfer(budget.id, checking.id, card.id, 45000, date(2024, 3, 25))

        rows = {row.category_id: row for row in EnvelopeService.budget_status(budget.id, MARCH)}
        assert rows[groceries.id].budgeted == 45000
        assert rows[groceries.id].activity == 45000
        assert rows[groceries.id].balance == 0
        assert rows[vacation.id].balance == 15000
        assert rows[rent.id].balance == 0

        totals = EnvelopeService.totals(budget.id, MARCH)
        assert totals.income == 300000
        assert totals.budgeted == 210000
        assert totals.left_to_budget == 90000
        assert totals.available_to_budget == 90000
        assert totals.overspent_total == 0

        assert card.get_balance() == 0
        assert card.payment_category.get_balance() == 0
        assert checking.get_balance() == 300000 - 150000 - 45000
        assert BalanceService.ledger_totals(budget.id).is_balanced

        progress = GoalService.progress(goal, MARCH)
        assert progress.balance == 15000
        assert progress.months_remaining == 3
