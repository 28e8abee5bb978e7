"""
Tests for credit card installment plans.
"""

from datetime import date

import pytest

from budgeting.exceptions import NotABudgetCategory
from core.exceptions import ValidationError
from credit_cards.choices import InstallmentFrequency, InstallmentPlanStatus, InstallmentStatus
from credit_cards.exceptions import InvalidInstallmentState, NotACreditCard
from credit_cards.installments import InstallmentService, due_dates, split_amount
from credit_cards.models import Installment
from ledger.choices import ActionType, TransactionKind, TransactionStatus
from ledger.models import ActionHistory, Transaction


@pytest.fixture
def laptop(card, groceries):
    """900.00 on the card in three monthly installments from 2024-03-05."""
    return InstallmentService.create_plan(
        card.id, groceries.id, 90000, date(2024, 3, 5), "Laptop", number_of_installments=3
    )


def installment(plan, number):
    return plan.installments.get(number=number)


class TestSchedule:
    """Tests for split_amount() and due_dates()."""

    def test_last_installment_takes_remainder(self):
        assert split_amount(10000, 3) == [3333, 3333, 3334]
        assert split_amount(9000, 3) == [3000, 3000, 3000]

    def test_monthly_keeps_day_of_month(self):
        assert due_dates(date(2024, 1, 31), InstallmentFrequency.MONTHLY, 3) == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]

    def test_biweekly(self):
        assert due_dates(date(2024, 3, 1), InstallmentFrequency.BIWEEKLY, 3) == [
            date(2024, 3, 1),
            date(2024, 3, 15),
            date(2024, 3, 29),
        ]


class TestCreatePlan:
    """Tests for InstallmentService.create_plan()."""

    def test_card_owes_full_purchase(self, card, groceries, laptop):
        assert card.get_balance() == 90000
        assert groceries.get_balance() == 0
        assert card.payment_category.get_balance() == 0
        assert laptop.purchase_transaction.kind == TransactionKind.STANDARD
        assert not laptop.purchase_transaction.linked_legs.exists()

    def test_schedules_installments(self, laptop):
        installments = list(laptop.installments.order_by("number"))

        assert laptop.status == InstallmentPlanStatus.ACTIVE
        assert laptop.installment_amount == 30000
        assert [i.due_date for i in installments] == [date(2024, 3, 5), date(2024, 4, 5), date(2024, 5, 5)]
        assert {i.status for i in installments} == {InstallmentStatus.SCHEDULED}

    def test_start_date_moves_first_due_date(self, card, groceries):
        plan = InstallmentService.create_plan(
            card.id,
            groceries.id,
            10000,
            date(2024, 3, 5),
            "Phone",
            number_of_installments=2,
            frequency=InstallmentFrequency.WEEKLY,
            start_date=date(2024, 3, 20),
        )

        assert list(plan.installments.values_list("due_date", flat=True)) == [date(2024, 3, 20), date(2024, 3, 27)]

    def test_retry_with_key_returns_same_plan(self, card, groceries):
        first = InstallmentService.create_plan(
            card.id, groceries.id, 90000, date(2024, 3, 5), "Laptop", 3, idempotency_key="laptop"
        )
        second = InstallmentService.create_plan(
            card.id, groceries.id, 90000, date(2024, 3, 5), "Laptop", 3, idempotency_key="laptop"
        )

        assert second.id == first.id
        assert card.get_balance() == 90000
        assert Installment.objects.count() == 3

    def test_records_action(self, budget, laptop):
        action = ActionHistory.objects.get(ledger=budget, action_type=ActionType.CREATE_INSTALLMENT_PLAN)

        assert action.entity_id == laptop.id
        assert action.new_data["purchase_amount"] == 90000

    def test_rejects_non_card(self, checking, groceries):
        with pytest.raises(NotACreditCard):
            InstallmentService.create_plan(checking.id, groceries.id, 90000, date(2024, 3, 5), "Laptop", 3)

    def test_rejects_payment_category(self, card):
        with pytest.raises(NotABudgetCategory):
            InstallmentService.create_plan(
                card.id, card.payment_category_id, 90000, date(2024, 3, 5), "Laptop", 3
            )

    def test_rejects_system_category(self, card, unassigned):
        with pytest.raises(NotABudgetCategory):
            InstallmentService.create_plan(card.id, unassigned.id, 90000, date(2024, 3, 5), "Laptop", 3)

    @pytest.mark.parametrize("count", [1, 37])
    def test_rejects_count_out_of_range(self, card, groceries, count):
        with pytest.raises(ValidationError) as exc_info:
            InstallmentService.create_plan(card.id, groceries.id, 90000, date(2024, 3, 5), "Laptop", count)

        assert exc_info.value.error_code == "INVALID_INSTALLMENT_COUNT"
        assert not Transaction.objects.exists()

    def test_rejects_start_before_purchase(self, card, groceries):
        with pytest.raises(ValidationError) as exc_info:
            InstallmentService.create_plan(
                card.id, groceries.id, 90000, date(2024, 3, 5), "Laptop", 3, start_date=date(2024, 3, 1)
            )

        assert exc_info.value.error_code == "INVALID_START_DATE"


class TestProcessInstallment:
    """Tests for InstallmentService.process_installment()."""

    def test_charges_slice_through_payment_category(self, card, groceries, laptop):
        processed = InstallmentService.process_installment(installment(laptop, 1).id)

        assert processed.status == InstallmentStatus.PROCESSED
        assert processed.processed_date == date(2024, 3, 5)
        txn = processed.transaction
        assert txn.kind == TransactionKind.INSTALLMENT
        assert txn.debit_account == groceries
        assert txn.credit_account == card.payment_category
        assert txn.description == "Installment 1/3: Laptop"
        assert txn.idempotency_key == f"installment:{laptop.id}:1"
        assert groceries.get_balance() == -30000
        assert card.payment_category.get_balance() == 30000
        assert card.get_balance() == 90000

    def test_last_installment_completes_plan(self, card, groceries, laptop):
        for number in (1, 2, 3):
            InstallmentService.process_installment(installment(laptop, number).id)

        laptop.refresh_from_db()
        assert laptop.status == InstallmentPlanStatus.COMPLETED
        assert laptop.completed_installments == 3
        assert groceries.get_balance() == -90000
        assert card.payment_category.get_balance() == card.get_balance() == 90000

    def test_processing_twice_posts_once(self, laptop):
        first = InstallmentService.process_installment(installment(laptop, 1).id)
        second = InstallmentService.process_installment(installment(laptop, 1).id)

        assert second.transaction_id == first.transaction_id
        assert Transaction.objects.filter(kind=TransactionKind.INSTALLMENT).count() == 1
        laptop.refresh_from_db()
        assert laptop.completed_installments == 1

    def test_out_of_sequence(self, laptop):
        with pytest.raises(InvalidInstallmentState) as exc_info:
            InstallmentService.process_installment(installment(laptop, 2).id)

        assert exc_info.value.error_code == "OUT_OF_SEQUENCE"
        assert not Transaction.objects.filter(kind=TransactionKind.INSTALLMENT).exists()

    def test_explicit_processed_date(self, laptop):
        processed = InstallmentService.process_installment(installment(laptop, 1).id, processed_date=date(2024, 3, 8))

        assert processed.processed_date == date(2024, 3, 8)
        assert processed.transaction.date == date(2024, 3, 8)


class TestProcessDue:
    """Tests for InstallmentService.process_due()."""

    def test_processes_everything_due(self, laptop):
        result = InstallmentService.process_due(as_of=date(2024, 4, 30))

        assert result == {"processed": 2, "failed": 0}
        assert list(laptop.installments.order_by("number").values_list("status", flat=True)) == [
            InstallmentStatus.PROCESSED,
            InstallmentStatus.PROCESSED,
            InstallmentStatus.SCHEDULED,
        ]

    def test_rerun_is_a_no_op(self, laptop):
        InstallmentService.process_due(as_of=date(2024, 3, 31))

        assert InstallmentService.process_due(as_of=date(2024, 3, 31)) == {"processed": 0, "failed": 0}
        assert Transaction.objects.filter(kind=TransactionKind.INSTALLMENT).count() == 1

    def test_skips_cancelled_plans(self, laptop):
        InstallmentService.cancel_plan(laptop.id)

        assert InstallmentService.process_due(as_of=date(2024, 12, 31)) == {"processed": 0, "failed": 0}


class TestUpdatePlan:
    """Tests for InstallmentService.update_plan()."""

    def test_resplits_remaining_installments(self, laptop):
        InstallmentService.process_installment(installment(laptop, 1).id)

        plan = InstallmentService.update_plan(laptop.id, remaining_installments=4)

        assert plan.number_of_installments == 5
        assert plan.installment_amount == 15000
        scheduled = plan.installments.filter(status=InstallmentStatus.SCHEDULED).order_by("number")
        assert [(i.number, i.due_date, i.amount) for i in scheduled] == [
            (2, date(2024, 4, 5), 15000),
            (3, date(2024, 5, 5), 15000),
            (4, date(2024, 6, 5), 15000),
            (5, date(2024, 7, 5), 15000),
        ]
        assert installment(plan, 1).status == InstallmentStatus.PROCESSED

    def test_changes_category(self, laptop, rent):
        plan = InstallmentService.update_plan(laptop.id, category_id=rent.id, description="Work laptop")

        assert plan.category == rent
        assert plan.description == "Work laptop"
        assert ActionHistory.objects.filter(action_type=ActionType.UPDATE_INSTALLMENT_PLAN).count() == 1

    def test_plan_needs_two_installments(self, laptop):
        with pytest.raises(ValidationError):
            InstallmentService.update_plan(laptop.id, remaining_installments=1)

    def test_completed_plan_cannot_change(self, laptop):
        for number in (1, 2, 3):
            InstallmentService.process_installment(installment(laptop, number).id)

        with pytest.raises(InvalidInstallmentState):
            InstallmentService.update_plan(laptop.id, notes="paid off")


class TestCancelPlan:
    """Tests for InstallmentService.cancel_plan()."""

    def test_reverses_purchase(self, card, laptop):
        plan = InstallmentService.cancel_plan(laptop.id)

        assert plan.status == InstallmentPlanStatus.CANCELLED
        assert card.get_balance() == 0
        laptop.purchase_transaction.refresh_from_db()
        assert laptop.purchase_transaction.status == TransactionStatus.REVERSED
        assert set(plan.installments.values_list("status", flat=True)) == {InstallmentStatus.CANCELLED}

    def test_rejected_after_processing(self, card, laptop):
        InstallmentService.process_installment(installment(laptop, 1).id)

        with pytest.raises(InvalidInstallmentState) as exc_info:
            InstallmentService.cancel_plan(laptop.id)

        assert exc_info.value.error_code == "INSTALLMENTS_PROCESSED"
        assert card.get_balance() == 90000


class TestQueries:
    """Tests for plans() and schedule()."""

    def test_plans_of_card(self, budget, card, laptop):
        assert list(InstallmentService.plans(budget.id, account_id=card.id)) == [laptop]

    def test_upcoming_window(self, budget, laptop):
        upcoming = InstallmentService.schedule(budget.id, upcoming_days=35, as_of=date(2024, 3, 10))

        assert [i.number for i in upcoming] == [2]

    def test_filter_by_status(self, budget, laptop):
        InstallmentService.process_installment(installment(laptop, 1).id)

        processed = InstallmentService.schedule(budget.id, status=InstallmentStatus.PROCESSED)

        assert [i.number for i in processed] == [1]
