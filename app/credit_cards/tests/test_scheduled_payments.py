"""
Tests for scheduling and processing credit card payments.
"""

import uuid
from datetime import date

import pytest

from core.exceptions import ValidationError
from credit_cards.choices import PaymentType, ScheduledPaymentStatus
from credit_cards.exceptions import InvalidPaymentState, StatementNotFound
from credit_cards.services import CreditCardService
from ledger.choices import TransactionKind
from ledger.models import Account


@pytest.fixture
def statement(card, card_limit, paycheck, purchase):
    """March statement: 12,000 owed, 2,500 minimum, due 2024-04-21."""
    card_limit(statement_day_of_month=31)
    purchase(12000)
    return CreditCardService.generate_statement(card.id, date(2024, 3, 31))


class TestSchedulePayment:
    """Tests for CreditCardService.schedule_payment()."""

    def test_defaults_to_statement_due_date(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.MINIMUM, statement_id=statement.id
        )

        assert payment.status == ScheduledPaymentStatus.SCHEDULED
        assert payment.scheduled_date == date(2024, 4, 21)
        assert payment.statement == statement
        assert payment.payment_amount is None

    def test_fixed_amount_requires_amount(self, card, checking):
        with pytest.raises(ValidationError):
            CreditCardService.schedule_payment(card.id, checking.id, PaymentType.FIXED_AMOUNT)

    def test_rejects_unknown_type(self, card, checking):
        with pytest.raises(ValidationError) as exc_info:
            CreditCardService.schedule_payment(card.id, checking.id, "everything")

        assert exc_info.value.error_code == "INVALID_PAYMENT_TYPE"

    def test_unknown_statement(self, card, checking):
        with pytest.raises(StatementNotFound):
            CreditCardService.schedule_payment(
                card.id, checking.id, PaymentType.MINIMUM, statement_id=uuid.uuid4()
            )


class TestProcessScheduledPayment:
    """Tests for CreditCardService.process_scheduled_payment()."""

    def test_full_balance(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FULL_BALANCE, scheduled_date=date(2024, 4, 15)
        )

        payment = CreditCardService.process_scheduled_payment(payment.id)

        assert payment.status == ScheduledPaymentStatus.COMPLETED
        assert payment.actual_amount_paid == 12000
        assert payment.transaction.kind == TransactionKind.CARD_PAYMENT
        assert payment.transaction.date == date(2024, 4, 15)
        assert card.get_balance() == 0

    def test_minimum(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.MINIMUM, statement_id=statement.id
        )

        payment = CreditCardService.process_scheduled_payment(payment.id)

        assert payment.actual_amount_paid == 2500
        assert card.get_balance() == 9500

    def test_fixed_amount(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FIXED_AMOUNT, payment_amount=4000, scheduled_date=date(2024, 4, 1)
        )

        payment = CreditCardService.process_scheduled_payment(payment.id)

        assert payment.actual_amount_paid == 4000

    def test_nothing_owed_completes_without_posting(self, card, checking):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FULL_BALANCE, scheduled_date=date(2024, 4, 1)
        )

        payment = CreditCardService.process_scheduled_payment(payment.id)

        assert payment.status == ScheduledPaymentStatus.COMPLETED
        assert payment.actual_amount_paid == 0
        assert payment.transaction is None

    def test_processing_twice_posts_once(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FULL_BALANCE, scheduled_date=date(2024, 4, 15)
        )

        first = CreditCardService.process_scheduled_payment(payment.id)
        second = CreditCardService.process_scheduled_payment(payment.id)

        assert second.transaction_id == first.transaction_id
        assert card.get_balance() == 0

    def test_rejected_posting_fails_payment(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FULL_BALANCE, scheduled_date=date(2024, 4, 15)
        )
        Account.objects.filter(id=checking.id).update(is_active=False)

        payment = CreditCardService.process_scheduled_payment(payment.id)

        assert payment.status == ScheduledPaymentStatus.FAILED
        assert "inactive" in payment.failure_reason
        assert card.get_balance() == 12000

    def test_cancelled_payment_cannot_be_processed(self, card, checking, statement):
        payment = CreditCardService.schedule_payment(card.id, checking.id, PaymentType.MINIMUM)
        CreditCardService.cancel_scheduled_payment(payment.id)

        with pytest.raises(InvalidPaymentState):
            CreditCardService.process_scheduled_payment(payment.id)


class TestCancelScheduledPayment:
    """Tests for CreditCardService.cancel_scheduled_payment()."""

    def test_cancel(self, card, checking):
        payment = CreditCardService.schedule_payment(card.id, checking.id, PaymentType.MINIMUM)

        payment = CreditCardService.cancel_scheduled_payment(payment.id)

        assert payment.status == ScheduledPaymentStatus.CANCELLED

    def test_cannot_cancel_twice(self, card, checking):
        payment = CreditCardService.schedule_payment(card.id, checking.id, PaymentType.MINIMUM)
        CreditCardService.cancel_scheduled_payment(payment.id)

        with pytest.raises(InvalidPaymentState):
            CreditCardService.cancel_scheduled_payment(payment.id)


class TestProcessDuePayments:
    """Tests for CreditCardService.process_due_payments()."""

    def test_processes_only_due_payments(self, card, checking, statement):
        CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FIXED_AMOUNT, payment_amount=1000, scheduled_date=date(2024, 4, 1)
        )
        CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FIXED_AMOUNT, payment_amount=2000, scheduled_date=date(2024, 4, 5)
        )
        later = CreditCardService.schedule_payment(
            card.id, checking.id, PaymentType.FIXED_AMOUNT, payment_amount=3000, scheduled_date=date(2024, 5, 1)
        )

        results = CreditCardService.process_due_payments(as_of=date(2024, 4, 10))

        assert results == {"completed": 2, "failed": 0}
        later.refresh_from_db()
        assert later.status == ScheduledPaymentStatus.SCHEDULED
        assert card.get_balance() == 9000
