"""
Tests for RecurringService.
"""

from datetime import date

import pytest

from core.exceptions import ValidationError
from ledger.choices import ActionType
from ledger.exceptions import InvalidAccountForOperation
from ledger.models import ActionHistory, Transaction
from recurring.choices import Frequency, RecurringTransactionType
from recurring.exceptions import OccurrenceNotDue, RecurringTransactionNotFound, TemplateDisabled
from recurring.models import RecurringOccurrence
from recurring.services import RecurringService


class TestCreateTemplate:
    """Tests for template creation and validation."""

    def test_rejects_category_as_account(self, make_template, groceries):
        with pytest.raises(InvalidAccountForOperation):
            make_template(account_id=groceries.id)

    def test_rejects_non_category(self, make_template, savings):
        with pytest.raises(InvalidAccountForOperation):
            make_template(category_id=savings.id)

    def test_rejects_end_before_start(self, make_template):
        with pytest.raises(ValidationError) as exc_info:
            make_template(end_date=date(2024, 1, 1))

        assert exc_info.value.error_code == "INVALID_END_DATE"

    def test_rejects_unknown_frequency(self, make_template):
        with pytest.raises(ValidationError) as exc_info:
            make_template(frequency="fortnightly")

        assert exc_info.value.error_code == "INVALID_FREQUENCY"

    def test_rejects_non_positive_amount(self, make_template):
        with pytest.raises(ValidationError):
            make_template(amount=0)


class TestUpdateTemplate:
    """Tests for update_template."""

    def test_next_date_cannot_move_backwards(self, monthly_rent):
        with pytest.raises(ValidationError) as exc_info:
            RecurringService.update_template(monthly_rent.id, next_date=date(2024, 1, 1))

        assert exc_info.value.error_code == "NEXT_DATE_BACKWARDS"

    def test_moving_next_date_resets_anchor(self, monthly_rent):
        template = RecurringService.update_template(monthly_rent.id, next_date=date(2024, 2, 15))

        assert template.next_date == date(2024, 2, 15)
        assert template.anchor_day == 15

    def test_unknown_field_rejected(self, monthly_rent):
        with pytest.raises(ValidationError) as exc_info:
            RecurringService.update_template(monthly_rent.id, frequency=Frequency.WEEKLY)

        assert exc_info.value.error_code == "INVALID_FIELD"

    def test_end_date_before_next_date_disables(self, make_template):
        template = make_template(start_date=date(2024, 3, 1))

        updated = RecurringService.update_template(template.id, end_date=date(2024, 2, 1))

        assert updated.enabled is False

    def test_cannot_enable_ended_template(self, make_template):
        template = make_template(start_date=date(2024, 3, 1))
        RecurringService.update_template(template.id, end_date=date(2024, 2, 1))

        with pytest.raises(TemplateDisabled) as exc_info:
            RecurringService.update_template(template.id, enabled=True)

        assert exc_info.value.error_code == "TEMPLATE_ENDED"

    def test_unknown_template(self, db):
        with pytest.raises(RecurringTransactionNotFound):
            RecurringService.update_template("00000000-0000-0000-0000-000000000000", amount=100)


class TestMaterialize:
    """Tests for materializing occurrences."""

    def test_outflow_posts_from_category_to_account(self, monthly_rent, checking, rent):
        txn = RecurringService.materialize(monthly_rent.id, as_of=date(2024, 2, 1))

        assert txn.debit_account_id == rent.id
        assert txn.credit_account_id == checking.id
        assert txn.amount == 120000
        assert txn.date == date(2024, 1, 31)
        assert checking.get_balance() == -120000

    def test_inflow_defaults_to_income(self, make_template, checking, income):
        template = make_template(
            description="Salary",
            amount=300000,
            category_id=None,
            transaction_type=RecurringTransactionType.INFLOW,
            frequency=Frequency.BIWEEKLY,
            start_date=date(2024, 3, 1),
        )

        txn = RecurringService.materialize(template.id, as_of=date(2024, 3, 1))

        assert txn.debit_account_id == checking.id
        assert txn.credit_account_id == income.id

    def test_outflow_without_category_uses_unassigned(self, make_template, unassigned):
        template = make_template(category_id=None, start_date=date(2024, 3, 1))

        txn = RecurringService.materialize(template.id, as_of=date(2024, 3, 1))

        assert txn.debit_account_id == unassigned.id

    def test_advances_with_anchor(self, monthly_rent):
        RecurringService.materialize(monthly_rent.id, as_of=date(2024, 3, 31))
        monthly_rent.refresh_from_db()
        assert monthly_rent.next_date == date(2024, 2, 29)

        RecurringService.materialize(monthly_rent.id, as_of=date(2024, 3, 31))
        monthly_rent.refresh_from_db()
        assert monthly_rent.next_date == date(2024, 3, 31)

    def test_same_due_date_is_idempotent(self, monthly_rent):
        first = RecurringService.materialize(monthly_rent.id, as_of=date(2024, 2, 1))

        again = RecurringService.materialize(monthly_rent.id, due_date=date(2024, 1, 31), as_of=date(2024, 2, 1))

        assert again.id == first.id
        assert Transaction.objects.filter(description="Rent").count() == 1
        assert RecurringOccurrence.objects.filter(template=monthly_rent).count() == 1

    def test_out_of_sequence(self, monthly_rent):
        with pytest.raises(OccurrenceNotDue) as exc_info:
            RecurringService.materialize(monthly_rent.id, due_date=date(2024, 2, 29), as_of=date(2024, 3, 1))

        assert exc_info.value.error_code == "OUT_OF_SEQUENCE"

    def test_not_yet_due(self, monthly_rent):
        with pytest.raises(OccurrenceNotDue) as exc_info:
            RecurringService.materialize(monthly_rent.id, as_of=date(2024, 1, 30))

        assert exc_info.value.error_code == "NOT_YET_DUE"
        assert not Transaction.objects.exists()

    def test_disables_after_end_date(self, make_template):
        template = make_template(start_date=date(2024, 1, 15), end_date=date(2024, 2, 20))

        RecurringService.materialize(template.id, as_of=date(2024, 3, 1))
        RecurringService.materialize(template.id, as_of=date(2024, 3, 1))
        template.refresh_from_db()

        assert template.enabled is False
        assert template.next_date == date(2024, 3, 15)
        with pytest.raises(TemplateDisabled):
            RecurringService.materialize(template.id, as_of=date(2024, 4, 1))

    def test_records_materialize_action(self, monthly_rent):
        txn = RecurringService.materialize(monthly_rent.id, as_of=date(2024, 2, 1))

        assert ActionHistory.objects.filter(action_type=ActionType.MATERIALIZE, entity_id=txn.id).exists()


class TestSkip:
    """Tests for skipping an occurrence."""

    def test_advances_without_posting(self, monthly_rent):
        template = RecurringService.skip(monthly_rent.id)

        assert template.next_date == date(2024, 2, 29)
        assert not Transaction.objects.exists()
        assert ActionHistory.objects.filter(
            action_type=ActionType.SKIP_OCCURRENCE,
            entity_id=monthly_rent.id,
        ).exists()

    def test_disabled_template(self, monthly_rent):
        RecurringService.update_template(monthly_rent.id, enabled=False)

        with pytest.raises(TemplateDisabled):
            RecurringService.skip(monthly_rent.id)


class TestProcessDue:
    """Tests for the periodic catch-up sweep."""

    def test_catches_up_missed_occurrences(self, make_template):
        template = make_template(frequency=Frequency.WEEKLY, start_date=date(2024, 3, 1))

        result = RecurringService.process_due(as_of=date(2024, 3, 20))

        assert result == {"templates": 1, "created": 3, "failed": 0}
        template.refresh_from_db()
        assert template.next_date == date(2024, 3, 22)

    def test_respects_catch_up_limit(self, make_template, settings):
        settings.RECURRING_MAX_CATCH_UP_OCCURRENCES = 3
        template = make_template(frequency=Frequency.DAILY, start_date=date(2024, 3, 1))

        result = RecurringService.process_due(as_of=date(2024, 3, 10))

        assert result["created"] == 3
        template.refresh_from_db()
        assert template.next_date == date(2024, 3, 4)

    def test_skips_manual_templates(self, make_template):
        make_template(auto_create=False, start_date=date(2024, 3, 1))

        result = RecurringService.process_due(as_of=date(2024, 3, 20))

        assert result == {"templates": 0, "created": 0, "failed": 0}

    def test_failure_does_not_stop_other_templates(self, make_template, savings):
        broken = make_template(description="Gym", account_id=savings.id, start_date=date(2024, 3, 1))
        make_template(description="Internet", start_date=date(2024, 3, 1))
        savings.is_active = False
        savings.save(update_fields=["is_active"])

        result = RecurringService.process_due(as_of=date(2024, 3, 1))

        assert result == {"templates": 2, "created": 1, "failed": 1}
        broken.refresh_from_db()
        assert broken.next_date == date(2024, 3, 1)
        assert Transaction.objects.filter(description="Internet").count() == 1
