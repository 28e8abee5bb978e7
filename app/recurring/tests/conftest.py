"""
Recurring test fixtures.
"""

from datetime import date

import pytest

from recurring.choices import Frequency, RecurringTransactionType
from recurring.services import RecurringService


@pytest.fixture
def make_template(budget, checking, rent):
    """Create a template; defaults to a monthly 120000 rent outflow from checking."""

    def _make(**overrides):
        params = {
            "description": "Rent",
            "amount": 120000,
            "frequency": Frequency.MONTHLY,
            "start_date": date(2024, 1, 31),
            "account_id": checking.id,
            "category_id": rent.id,
            "transaction_type": RecurringTransactionType.OUTFLOW,
        }
        params.update(overrides)
        return RecurringService.create_template(budget.id, **params)

    return _make


@pytest.fixture
def monthly_rent(make_template):
    return make_template()


@pytest.fixture
def forced_client(api_client, user):
    """Client authenticated without a JWT, for tests that freeze time."""
    api_client.force_authenticate(user=user)
    return api_client
