"""
Shared ledger fixtures.

Registered project-wide from the root conftest via pytest_plugins, so the
budgeting, credit card, reconciliation and recurring tests build on the
same ledger setup.

Sections:
    - Users & Clients
    - Ledger & System Categories
    - Accounts & Categories
    - Locking
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from ledger.choices import AccountType, SystemRole
from ledger.services import LedgerService
from ledger.tests.factories import (
    AccountFactory,
    CategoryFactory,
    CreditCardFactory,
    LedgerFactory,
    UserFactory,
)

# =============================================================================
# Users & Clients
# =============================================================================


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def other_user(db):
    return UserFactory()


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with a JWT for the default user fixture."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, other_user):
            client = authenticated_client_factory(other_user)
    """

    def _make_client(for_user):
        client = APIClient()
        refresh = RefreshToken.for_user(for_user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


# =============================================================================
# Ledger & System Categories
# =============================================================================


@pytest.fixture
def budget(user):
    """Ledger owned by the default user, with its system categories."""
    return LedgerFactory(user=user, name="Household")


@pytest.fixture
def income(budget):
    return budget.accounts.get(system_role=SystemRole.INCOME)


@pytest.fixture
def unassigned(budget):
    return budget.accounts.get(system_role=SystemRole.UNASSIGNED)


@pytest.fixture
def off_budget(budget):
    return budget.accounts.get(system_role=SystemRole.OFF_BUDGET)


# =============================================================================
# Accounts & Categories
# =============================================================================


@pytest.fixture
def checking(budget):
    return AccountFactory(ledger=budget, name="Checking", type=AccountType.ASSET)


@pytest.fixture
def savings(budget):
    return AccountFactory(ledger=budget, name="Savings", type=AccountType.ASSET)


@pytest.fixture
def groceries(budget):
    return CategoryFactory(ledger=budget, name="Groceries")


@pytest.fixture
def rent(budget):
    return CategoryFactory(ledger=budget, name="Rent")


@pytest.fixture
def card(budget):
    """Credit card with its CC Payment category."""
    return CreditCardFactory(ledger=budget, name="Visa")


# =============================================================================
# Locking
# =============================================================================


@pytest.fixture
def locked_accounts(mocker):
    """
    Record the account ids each LedgerService.lock_accounts call locked, in
    the order the rows came back.

    Usage:
        def test_example(locked_accounts):
            ...
            assert locked_accounts[-1] == sorted(locked_accounts[-1])
    """
    calls = []
    lock_accounts = LedgerService.lock_accounts

    def _record(ledger_id, account_ids):
        locked = lock_accounts(ledger_id, account_ids)
        calls.append(list(locked))
        return locked

    mocker.patch.object(LedgerService, "lock_accounts", side_effect=_record)
    return calls
