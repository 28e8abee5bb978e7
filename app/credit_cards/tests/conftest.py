"""
Credit card test fixtures.

The ledger fixtures (budget, checking, groceries, card, ...) come from
ledger.tests.fixtures.
"""

from datetime import date
from decimal import Decimal

import pytest

from credit_cards.services import CreditCardService
from ledger.services import LedgerService


@pytest.fixture
def paycheck(budget, income, checking):
    """500.00 of income in Checking on 2024-03-01."""
    return LedgerService.post(
        ledger_id=budget.id,
        debit_account_id=checking.id,
        credit_account_id=income.id,
        amount=50000,
        date=date(2024, 3, 1),
        description="Paycheck",
    )


@pytest.fixture
def purchase(budget, card, groceries):
    """Charge a grocery purchase to the card."""

    def _purchase(amount, day=date(2024, 3, 10)):
        return LedgerService.post(
            ledger_id=budget.id,
            debit_account_id=groceries.id,
            credit_account_id=card.id,
            amount=amount,
            date=day,
            description="Grocery run",
        )

    return _purchase


@pytest.fixture
def card_limit(card):
    """Configure the card's limit; defaults to 1,000.00 at 0% APR."""

    def _configure(credit_limit=100000, **config):
        return CreditCardService.configure_limit(card.id, credit_limit=credit_limit, **config)

    return _configure


@pytest.fixture
def interest_card(card_limit):
    """Daily-compounding card at 18.25% APR."""
    return card_limit(apr=Decimal("18.25"))
