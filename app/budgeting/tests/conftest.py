"""
Budgeting test fixtures.

The ledger fixtures (budget, income, checking, groceries, ...) come from
ledger.tests.fixtures; these add helpers for posting income and spending.
"""

from datetime import date

import pytest

from budgeting.periods import Period
from ledger.services import LedgerService


@pytest.fixture
def march():
    return Period(2024, 3)


@pytest.fixture
def receive(budget, income):
    """Post income into an account: debit the account, credit Income."""

    def _receive(account, amount, day=date(2024, 3, 1)):
        return LedgerService.post(
            ledger_id=budget.id,
            debit_account_id=account.id,
            credit_account_id=income.id,
            amount=amount,
            date=day,
            description="Paycheck",
        )

    return _receive


@pytest.fixture
def spend(budget):
    """Spend from a category: debit the category, credit the account."""

    def _spend(category, account, amount, day=date(2024, 3, 10)):
        return LedgerService.post(
            ledger_id=budget.id,
            debit_account_id=category.id,
            credit_account_id=account.id,
            amount=amount,
            date=day,
        )

    return _spend
