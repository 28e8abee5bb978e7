"""
QuerySet for ledger transactions.

Balance and activity queries all start from the same filters, so they live
here as chainable methods instead of being repeated in every service.

Visibility rules:
    counted()  - every row that moves a balance (everything except deleted)
    current()  - what a register shows: active, non-reversal rows only
    all()      - the audit view, including deleted and reversed rows

Usage:
    from ledger.models import Transaction

    # Rows that affect the balance of an account
    Transaction.objects.counted().touching(account)

    # Register view for an account
    Transaction.objects.current().touching(account).order_by("-date")

    # Spending in a category, ignoring budget assignments and moves
    Transaction.objects.counted().touching(category).non_budgeting()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models
from django.db.models import Q
from django.db.models.functions import Coalesce

from ledger.choices import BUDGETING_KINDS, TransactionKind, TransactionStatus

if TYPE_CHECKING:
    from datetime import date

    from ledger.models import Account


class TransactionQuerySet(models.QuerySet):
    """Chainable filters shared by the balance, budget and card engines."""

    def counted(self) -> TransactionQuerySet:
        """Exclude soft-deleted rows; reversed originals and reversals still net out."""
        return self.exclude(status=TransactionStatus.DELETED)

    def current(self) -> TransactionQuerySet:
        """Only live postings: no deleted rows, reversed originals or reversal markers."""
        return self.filter(status=TransactionStatus.ACTIVE).exclude(
            kind=TransactionKind.REVERSAL
        )

    def touching(self, account: Account) -> TransactionQuerySet:
        """Rows where the account is on either side."""
        return self.filter(Q(debit_account=account) | Q(credit_account=account))

    def in_period(self, start: date, end: date) -> TransactionQuerySet:
        """Rows dated within [start, end] inclusive."""
        return self.filter(date__gte=start, date__lte=end)

    def with_effective_kind(self) -> TransactionQuerySet:
        """
        Annotate effective_kind: the kind of the original for reversals.

        A reversed assignment must stay a budgeting posting, so reversal rows
        are classified by what they undo.
        """
        return self.annotate(
            effective_kind=Coalesce("reversal_of__kind", "kind"),
        )

    def budgeting(self) -> TransactionQuerySet:
        """Assignments and moves (and their reversals)."""
        return self.with_effective_kind().filter(effective_kind__in=BUDGETING_KINDS)

    def non_budgeting(self) -> TransactionQuerySet:
        """Everything that counts as activity rather than budgeting."""
        return self.with_effective_kind().exclude(effective_kind__in=BUDGETING_KINDS)
