"""
Tests for recurring Celery tasks.
"""

from datetime import date

from core.exceptions import LockAcquisitionError
from ledger.models import Transaction
from recurring.choices import Frequency
from recurring.tasks import process_recurring_transactions


class TestProcessRecurringTransactions:
    """Tests for the process_recurring_transactions task."""

    def test_posts_due_occurrences(self, make_template, mocker):
        mocker.patch("recurring.tasks.DistributedLock")
        template = make_template(frequency=Frequency.WEEKLY, start_date=date(2024, 3, 1))

        result = process_recurring_transactions.apply(kwargs={"as_of": "2024-03-08"}).get()

        assert result == {"status": "completed", "templates": 1, "created": 2, "failed": 0}
        template.refresh_from_db()
        assert template.next_date == date(2024, 3, 15)

    def test_rerun_posts_nothing_twice(self, make_template, mocker):
        mocker.patch("recurring.tasks.DistributedLock")
        make_template(frequency=Frequency.WEEKLY, start_date=date(2024, 3, 1))

        process_recurring_transactions.apply(kwargs={"as_of": "2024-03-08"}).get()
        result = process_recurring_transactions.apply(kwargs={"as_of": "2024-03-08"}).get()

        assert result["created"] == 0
        assert Transaction.objects.count() == 2

    def test_skips_when_lock_held(self, monthly_rent, mocker):
        lock = mocker.patch("recurring.tasks.DistributedLock")
        lock.return_value.__enter__.side_effect = LockAcquisitionError("held")

        result = process_recurring_transactions.apply(kwargs={"as_of": "2024-03-31"}).get()

        assert result["status"] == "skipped"
        assert not Transaction.objects.exists()

    def test_uses_process_lock_key(self, monthly_rent, mocker):
        lock = mocker.patch("recurring.tasks.DistributedLock")

        process_recurring_transactions.apply(kwargs={"as_of": "2024-01-01"}).get()

        lock.assert_called_once_with("recurring:process_due", ttl=900, blocking=False)
