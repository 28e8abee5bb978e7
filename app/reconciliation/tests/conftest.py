"""
Reconciliation test fixtures.
"""

from datetime import date

import pytest

from ledger.services import LedgerService


@pytest.fixture
def deposit(budget, income):
    """Post income into an account: debit the account, credit Income."""

    def _deposit(account, amount, day=date(2024, 3, 1)):
        return LedgerService.post(
            ledger_id=budget.id,
            debit_account_id=account.id,
            credit_account_id=income.id,
            amount=amount,
            date=day,
            description="Deposit",
        )

    return _deposit
