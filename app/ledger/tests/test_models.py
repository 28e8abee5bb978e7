"""
Tests for ledger models.

Covers derived fields, classification properties, balance computation and
the database constraints that back the double-entry rules.
"""

from datetime import date

import pytest
from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed

from ledger.choices import (
    AccountKind,
    AccountType,
    InternalType,
    SystemRole,
    TransactionStatus,
)
from ledger.models import Account, Transaction
from ledger.tests.factories import AccountFactory, CategoryFactory, TransactionFactory


class TestLedger:
    """Tests for Ledger creation side effects."""

    def test_ledger_has_three_system_categories(self, budget):
        roles = set(budget.accounts.exclude(system_role=None).values_list("system_role", flat=True))

        assert roles == {SystemRole.INCOME, SystemRole.UNASSIGNED, SystemRole.OFF_BUDGET}

    def test_str_is_name(self, budget):
        assert str(budget) == "Household"


class TestAccount:
    """Tests for Account classification."""

    @pytest.mark.parametrize(
        "account_type,expected",
        [
            (AccountType.ASSET, InternalType.ASSET_LIKE),
            (AccountType.EXPENSE, InternalType.ASSET_LIKE),
            (AccountType.LIABILITY, InternalType.LIABILITY_LIKE),
            (AccountType.EQUITY, InternalType.LIABILITY_LIKE),
            (AccountType.REVENUE, InternalType.LIABILITY_LIKE),
        ],
    )
    def test_internal_type_derived_on_save(self, budget, account_type, expected):
        account = AccountFactory(ledger=budget, type=account_type)

        assert account.internal_type == expected

    def test_internal_type_follows_type_change(self, checking):
        checking.type = AccountType.LIABILITY
        checking.save()
        checking.refresh_from_db()

        assert checking.internal_type == InternalType.LIABILITY_LIKE

    def test_budget_category_flags(self, groceries, income, card):
        assert groceries.is_budget_category
        assert groceries.is_category
        assert not income.is_budget_category
        assert income.is_system
        assert card.is_credit_card
        assert not card.payment_category.is_budget_category

    def test_card_is_paired_with_payment_category(self, card):
        assert card.payment_category.kind == AccountKind.CC_PAYMENT_CATEGORY
        assert card.payment_category.name == "CC Payment: Visa"
        assert card.payment_category.credit_card == card

    def test_name_unique_per_ledger(self, budget, checking):
        with pytest.raises(IntegrityError), transaction.atomic():
            Account.objects.create(ledger=budget, name="Checking", type=AccountType.ASSET)

    def test_same_name_allowed_in_other_ledger(self, checking):
        other = AccountFactory(name="Checking")

        assert other.ledger_id != checking.ledger_id

    def test_one_system_role_per_ledger(self, budget):
        with pytest.raises(IntegrityError), transaction.atomic():
            Account.objects.create(
                ledger=budget,
                name="Second Income",
                type=AccountType.EQUITY,
                system_role=SystemRole.INCOME,
            )


class TestAccountBalance:
    """Tests for Account.get_balance()."""

    def test_empty_account_has_zero_balance(self, checking):
        assert checking.get_balance() == 0

    def test_asset_increases_on_debit(self, checking, income):
        TransactionFactory(debit_account=checking, credit_account=income, amount=10000)

        assert checking.get_balance() == 10000
        assert income.get_balance() == 10000

    def test_category_decreases_on_debit(self, groceries, checking):
        TransactionFactory(debit_account=groceries, credit_account=checking, amount=2500)

        assert groceries.get_balance() == -2500
        assert checking.get_balance() == -2500

    def test_deleted_transactions_do_not_count(self, groceries, checking):
        txn = TransactionFactory(debit_account=groceries, credit_account=checking, amount=2500)
        txn.mark_deleted()
        txn.save()

        assert checking.get_balance() == 0

    def test_as_of_excludes_later_transactions(self, groceries, checking):
        TransactionFactory(debit_account=groceries, credit_account=checking, amount=100, date=date(2024, 1, 5))
        TransactionFactory(debit_account=groceries, credit_account=checking, amount=200, date=date(2024, 2, 5))

        assert checking.get_balance(as_of=date(2024, 1, 31)) == -100
        assert checking.get_balance() == -300

    def test_has_postings_includes_deleted_rows(self, groceries, checking, savings):
        txn = TransactionFactory(debit_account=groceries, credit_account=checking)
        txn.mark_deleted()
        txn.save()

        assert checking.has_postings()
        assert not savings.has_postings()


class TestTransaction:
    """Tests for Transaction constraints and status transitions."""

    def test_zero_amount_rejected_by_database(self, groceries, checking):
        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(debit_account=groceries, credit_account=checking, amount=0)

    def test_same_account_rejected_by_database(self, checking):
        with pytest.raises(IntegrityError), transaction.atomic():
            Transaction.objects.create(
                ledger=checking.ledger,
                date=date(2024, 1, 1),
                amount=100,
                debit_account=checking,
                credit_account=checking,
            )

    def test_idempotency_key_unique(self, groceries, checking):
        TransactionFactory(debit_account=groceries, credit_account=checking, idempotency_key="k1")

        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(debit_account=groceries, credit_account=checking, idempotency_key="k1")

    def test_mark_deleted_sets_deleted_at(self, groceries, checking):
        txn = TransactionFactory(debit_account=groceries, credit_account=checking)

        txn.mark_deleted()

        assert txn.status == TransactionStatus.DELETED
        assert txn.deleted_at is not None

    def test_cannot_reverse_deleted_transaction(self, groceries, checking):
        txn = TransactionFactory(debit_account=groceries, credit_account=checking)
        txn.mark_deleted()

        with pytest.raises(TransitionNotAllowed):
            txn.mark_reversed()

    def test_signed_amount_for_each_side(self, groceries, checking):
        txn = TransactionFactory(debit_account=groceries, credit_account=checking, amount=700)

        assert txn.signed_amount_for(checking) == -700
        assert txn.signed_amount_for(groceries) == -700

    def test_category_factory_creates_equity(self, budget):
        assert CategoryFactory(ledger=budget).type == AccountType.EQUITY
