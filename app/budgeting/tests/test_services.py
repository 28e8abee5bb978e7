"""
Tests for EnvelopeService.

This module tests the budget grid (rolling carryover), totals, overspent
aggregation, assignments with overage warnings, moves and covering
overspending.
"""

from datetime import date

import pytest
from freezegun import freeze_time

from budgeting.exceptions import (
    InsufficientFundsWarning,
    NotABudgetCategory,
    NotOverspent,
    OverBudgetWarning,
)
from budgeting.periods import Period
from budgeting.services import EnvelopeService
from core.exceptions import ValidationError
from ledger.choices import AccountKind, ActionType, TransactionKind
from ledger.models import ActionHistory, Transaction
from ledger.services import LedgerService
from ledger.tests.factories import CategoryFactory

FEBRUARY = Period(2024, 2)
MARCH = Period(2024, 3)
APRIL = Period(2024, 4)


def status_for(ledger_id, period, category):
    return next(row for row in EnvelopeService.budget_status(ledger_id, period) if row.category_id == category.id)


@pytest.fixture
def carryover(budget, checking, groceries, receive, spend):
    """
    Groceries: February budgets 30000 and spends 10000; March budgets 5000
    and spends 40000, leaving it 15000 overspent.
    """
    receive(checking, 100000, day=date(2024, 2, 1))
    EnvelopeService.assign(budget.id, groceries.id, 30000, FEBRUARY)
    spend(groceries, checking, 10000, day=date(2024, 2, 12))
    EnvelopeService.assign(budget.id, groceries.id, 5000, MARCH)
    spend(groceries, checking, 40000, day=date(2024, 3, 6))


class TestBudgetStatus:
    """Tests for EnvelopeService.budget_status()."""

    def test_rolling_carryover(self, budget, groceries, carryover):
        row = status_for(budget.id, MARCH, groceries)

        assert row.previous_balance == 20000
        assert row.budgeted == 5000
        assert row.activity == 40000
        assert row.balance == -15000
        assert row.is_overspent

    def test_negative_balance_rolls_into_next_period(self, budget, groceries, carryover):
        row = status_for(budget.id, APRIL, groceries)

        assert row.previous_balance == -15000
        assert row.budgeted == 0
        assert row.activity == 0
        assert row.balance == -15000

    def test_balance_matches_ledger(self, budget, groceries, carryover):
        row = status_for(budget.id, MARCH, groceries)

        assert row.balance == groceries.get_balance(as_of=MARCH.end)

    def test_refund_is_negative_activity(self, budget, checking, groceries, receive):
        receive(checking, 5000)
        LedgerService.post(
            ledger_id=budget.id,
            debit_account_id=checking.id,
            credit_account_id=groceries.id,
            amount=1200,
            date=date(2024, 3, 9),
        )

        row = status_for(budget.id, MARCH, groceries)
        assert row.activity == -1200
        assert row.balance == 1200

    def test_excludes_system_groups_and_payment_categories(self, budget, groceries, rent, card):
        group = CategoryFactory(ledger=budget, name="Bills", kind=AccountKind.CATEGORY_GROUP)

        ids = {row.category_id for row in EnvelopeService.budget_status(budget.id, MARCH)}

        assert ids == {groceries.id, rent.id}
        assert group.id not in ids
        assert card.payment_category_id not in ids

    def test_group_id_reported(self, budget):
        group = CategoryFactory(ledger=budget, name="Bills", kind=AccountKind.CATEGORY_GROUP)
        power = CategoryFactory(ledger=budget, name="Power", parent_group=group)

        row = status_for(budget.id, MARCH, power)
        assert row.group_id == group.id

    def test_reversed_assignment_stays_budgeting(self, budget, checking, groceries, receive):
        receive(checking, 10000)
        result = EnvelopeService.assign(budget.id, groceries.id, 4000, MARCH)

        LedgerService.reverse(result.transaction.id)

        row = status_for(budget.id, MARCH, groceries)
        assert row.budgeted == 0
        assert row.activity == 0
        assert row.balance == 0


class TestTotals:
    """Tests for EnvelopeService.totals() and overspent_categories()."""

    def test_march_totals(self, budget, carryover):
        totals = EnvelopeService.totals(budget.id, MARCH)

        assert totals.period == "2024-03"
        assert totals.income == 0
        assert totals.budgeted == 5000
        assert totals.prior_overspending == 0
        assert totals.left_to_budget == -5000
        assert totals.available_to_budget == 65000
        assert totals.overspent_total == 15000
        assert totals.is_overbudgeted is False

    def test_february_totals(self, budget, carryover):
        totals = EnvelopeService.totals(budget.id, FEBRUARY)

        assert totals.income == 100000
        assert totals.budgeted == 30000
        assert totals.left_to_budget == 70000
        assert totals.overspent_total == 0

    def test_prior_overspending_not_netted(self, budget, rent, carryover):
        # Rent has money; groceries' overspending still counts in full
        EnvelopeService.assign(budget.id, rent.id, 20000, MARCH)

        totals = EnvelopeService.totals(budget.id, APRIL)

        assert totals.prior_overspending == 15000
        assert totals.overspent_total == 15000
        assert totals.left_to_budget == -15000

    def test_overspent_categories(self, budget, groceries, rent, carryover):
        rows = EnvelopeService.overspent_categories(budget.id, MARCH)

        assert len(rows) == 1
        assert rows[0].category_id == groceries.id
        assert rows[0].balance == -15000
        assert rows[0].overspent_amount == 15000

    def test_overbudgeted(self, budget, checking, groceries, receive):
        receive(checking, 1000)
        EnvelopeService.assign(budget.id, groceries.id, 3000, MARCH)

        totals = EnvelopeService.totals(budget.id, MARCH)

        assert totals.available_to_budget == -2000
        assert totals.is_overbudgeted is True

    def test_available_to_budget(self, budget, checking, groceries, receive):
        receive(checking, 10000)
        EnvelopeService.assign(budget.id, groceries.id, 2500, MARCH)

        assert EnvelopeService.available_to_budget(budget.id) == 7500


class TestAssign:
    """Tests for EnvelopeService.assign() and unassign()."""

    def test_assign_posts_from_income(self, budget, income, checking, groceries, receive):
        receive(checking, 10000)

        result = EnvelopeService.assign(budget.id, groceries.id, 4000, MARCH)

        txn = result.transaction
        assert result.warning is None
        assert txn.kind == TransactionKind.ASSIGNMENT
        assert txn.debit_account_id == income.id
        assert txn.credit_account_id == groceries.id
        assert groceries.get_balance() == 4000
        assert income.get_balance() == 6000
        assert ActionHistory.objects.filter(action_type=ActionType.ASSIGN, entity_id=txn.id).exists()

    def test_overage_attaches_warning(self, budget, checking, groceries, receive):
        receive(checking, 1000)

        result = EnvelopeService.assign(budget.id, groceries.id, 3000, MARCH)

        assert isinstance(result.warning, OverBudgetWarning)
        assert result.warning.overage == 2000
        assert result.warning.available == 1000
        assert groceries.get_balance() == 3000

    def test_overage_raises_when_disallowed(self, budget, checking, groceries, receive):
        receive(checking, 1000)

        with pytest.raises(InsufficientFundsWarning) as exc_info:
            EnvelopeService.assign(budget.id, groceries.id, 3000, MARCH, allow_overbudget=False)

        assert exc_info.value.error_code == "OVER_BUDGET"
        assert exc_info.value.details["overage"] == 2000
        assert not Transaction.objects.filter(kind=TransactionKind.ASSIGNMENT).exists()

    def test_overage_counts_from_zero_when_already_negative(self, budget, groceries, rent):
        EnvelopeService.assign(budget.id, groceries.id, 500, MARCH)

        result = EnvelopeService.assign(budget.id, rent.id, 1000, MARCH)

        assert result.warning.available == -500
        assert result.warning.overage == 1000

    @freeze_time("2024-03-15")
    @pytest.mark.parametrize(
        "period,expected",
        [
            (Period(2024, 3), date(2024, 3, 15)),
            (Period(2024, 5), date(2024, 5, 1)),
            (Period(2024, 1), date(2024, 1, 31)),
        ],
    )
    def test_posting_date_clamped_into_period(self, budget, groceries, period, expected):
        result = EnvelopeService.assign(budget.id, groceries.id, 100, period)

        assert result.transaction.date == expected

    def test_system_category_rejected(self, budget, unassigned):
        with pytest.raises(NotABudgetCategory):
            EnvelopeService.assign(budget.id, unassigned.id, 100, MARCH)

    def test_bank_account_rejected(self, budget, checking):
        with pytest.raises(NotABudgetCategory):
            EnvelopeService.assign(budget.id, checking.id, 100, MARCH)

    def test_payment_category_accepted(self, budget, card):
        result = EnvelopeService.assign(budget.id, card.payment_category_id, 100, MARCH)

        assert result.transaction.credit_account_id == card.payment_category_id

    def test_invalid_amount(self, budget, groceries):
        with pytest.raises(ValidationError):
            EnvelopeService.assign(budget.id, groceries.id, 0, MARCH)

    def test_idempotent_assignment(self, budget, checking, groceries, receive):
        receive(checking, 10000)

        first = EnvelopeService.assign(budget.id, groceries.id, 100, MARCH, idempotency_key="assign-1")
        second = EnvelopeService.assign(budget.id, groceries.id, 100, MARCH, idempotency_key="assign-1")

        assert first.transaction.id == second.transaction.id
        assert groceries.get_balance() == 100

    def test_unassign_returns_money_to_income(self, budget, income, checking, groceries, receive):
        receive(checking, 10000)
        EnvelopeService.assign(budget.id, groceries.id, 4000, MARCH)

        txn = EnvelopeService.unassign(budget.id, groceries.id, 1500, MARCH)

        assert txn.kind == TransactionKind.ASSIGNMENT
        assert txn.credit_account_id == income.id
        assert groceries.get_balance() == 2500
        assert status_for(budget.id, MARCH, groceries).budgeted == 2500


class TestMoveMoney:
    """Tests for EnvelopeService.move_money() and cover_overspending()."""

    def test_move_between_categories(self, budget, checking, groceries, rent, receive):
        receive(checking, 10000)
        EnvelopeService.assign(budget.id, rent.id, 5000, MARCH)

        txn = EnvelopeService.move_money(budget.id, rent.id, groceries.id, 2000, date=date(2024, 3, 5))

        assert txn.kind == TransactionKind.MOVE
        assert txn.debit_account_id == rent.id
        assert txn.credit_account_id == groceries.id
        assert rent.get_balance() == 3000
        assert groceries.get_balance() == 2000
        assert status_for(budget.id, MARCH, groceries).budgeted == 2000
        assert status_for(budget.id, MARCH, groceries).activity == 0

    def test_move_to_same_category_rejected(self, budget, groceries):
        with pytest.raises(ValidationError):
            EnvelopeService.move_money(budget.id, groceries.id, groceries.id, 100, date=date(2024, 3, 5))

    def test_move_from_income_rejected(self, budget, income, groceries):
        with pytest.raises(NotABudgetCategory):
            EnvelopeService.move_money(budget.id, income.id, groceries.id, 100)

    def test_cover_full_overspending(self, budget, checking, groceries, rent, receive, spend):
        receive(checking, 10000)
        EnvelopeService.assign(budget.id, rent.id, 5000, MARCH)
        spend(groceries, checking, 1800)

        txn = EnvelopeService.cover_overspending(budget.id, groceries.id, rent.id)

        assert txn.amount == 1800
        assert groceries.get_balance() == 0
        assert rent.get_balance() == 3200

    def test_cover_partial(self, budget, checking, groceries, rent, spend):
        spend(groceries, checking, 1800)

        EnvelopeService.cover_overspending(budget.id, groceries.id, rent.id, amount=800)

        assert groceries.get_balance() == -1000

    def test_cover_not_overspent(self, budget, groceries, rent):
        with pytest.raises(NotOverspent) as exc_info:
            EnvelopeService.cover_overspending(budget.id, groceries.id, rent.id)

        assert exc_info.value.error_code == "NOT_OVERSPENT"


class TestLocking:
    """Account rows are always locked in id order."""

    def test_assign_locks_pools_and_category_first(
        self, budget, income, unassigned, checking, groceries, receive, locked_accounts
    ):
        receive(checking, 10000)
        locked_accounts.clear()

        EnvelopeService.assign(budget.id, groceries.id, 4000, MARCH)

        assert locked_accounts[0] == sorted([income.id, unassigned.id, groceries.id])
        assert all(ids == sorted(ids) for ids in locked_accounts)

    def test_move_locks_both_categories_in_id_order(
        self, budget, checking, groceries, rent, receive, locked_accounts
    ):
        receive(checking, 10000)
        EnvelopeService.assign(budget.id, rent.id, 5000, MARCH)
        locked_accounts.clear()

        EnvelopeService.move_money(budget.id, rent.id, groceries.id, 2000, date=date(2024, 3, 5))
        EnvelopeService.move_money(budget.id, groceries.id, rent.id, 500, date=date(2024, 3, 6))

        expected = sorted([groceries.id, rent.id])
        assert locked_accounts == [expected, expected]
