"""
Tests for recurring models and their database constraints.
"""

from datetime import date

import pytest
from django.db import IntegrityError, transaction

from ledger.services import LedgerService
from recurring.choices import Frequency, RecurringTransactionType
from recurring.models import RecurringOccurrence, RecurringTransaction


class TestRecurringTransaction:
    """Tests for the RecurringTransaction model."""

    def test_str(self, monthly_rent):
        assert str(monthly_rent) == "Rent (Monthly, next 2024-01-31)"

    def test_anchor_day_taken_from_start_date(self, monthly_rent):
        assert monthly_rent.anchor_day == 31
        assert monthly_rent.enabled is True

    def test_amount_must_be_positive(self, budget, checking):
        with pytest.raises(IntegrityError), transaction.atomic():
            RecurringTransaction.objects.create(
                ledger=budget,
                description="Nothing",
                amount=0,
                frequency=Frequency.WEEKLY,
                next_date=date(2024, 3, 1),
                anchor_day=1,
                account=checking,
                transaction_type=RecurringTransactionType.OUTFLOW,
            )

    def test_enabled_template_cannot_end_before_next_date(self, budget, checking):
        with pytest.raises(IntegrityError), transaction.atomic():
            RecurringTransaction.objects.create(
                ledger=budget,
                description="Gym",
                amount=4000,
                frequency=Frequency.MONTHLY,
                next_date=date(2024, 3, 1),
                end_date=date(2024, 2, 1),
                anchor_day=1,
                account=checking,
                transaction_type=RecurringTransactionType.OUTFLOW,
            )

    def test_disabled_template_may_be_past_its_end(self, budget, checking):
        template = RecurringTransaction.objects.create(
            ledger=budget,
            description="Gym",
            amount=4000,
            frequency=Frequency.MONTHLY,
            next_date=date(2024, 3, 1),
            end_date=date(2024, 2, 1),
            anchor_day=1,
            account=checking,
            transaction_type=RecurringTransactionType.OUTFLOW,
            enabled=False,
        )

        assert template.pk is not None


class TestRecurringOccurrence:
    """Tests for the RecurringOccurrence model."""

    def test_one_occurrence_per_due_date(self, budget, monthly_rent, checking, rent):
        txn = LedgerService.post(
            ledger_id=budget.id,
            debit_account_id=rent.id,
            credit_account_id=checking.id,
            amount=120000,
            date=date(2024, 1, 31),
        )
        RecurringOccurrence.objects.create(template=monthly_rent, due_date=date(2024, 1, 31), transaction=txn)

        with pytest.raises(IntegrityError), transaction.atomic():
            RecurringOccurrence.objects.create(template=monthly_rent, due_date=date(2024, 1, 31), transaction=txn)
