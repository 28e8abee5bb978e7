"""
Reconciliation models.
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Reconciliation(UUIDPrimaryKeyMixin, BaseModel):
    """
    Append-only record of one reconciliation.

    difference = statement_balance - ledger_balance, where ledger_balance is
    the account balance as of statement_date before any adjustment.

    Fields:
        account: Reconciled account
        statement_date: Closing date of the bank statement
        statement_balance: Balance printed on the statement, in cents
        ledger_balance: Ledger balance as of statement_date
        difference: Amount the adjustment moved the balance by
        adjustment_transaction: The adjustment posting, when difference != 0
        cleared_count: Transactions marked reconciled by this run
    """

    account = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="reconciliations",
    )
    statement_date = models.DateField(db_index=True)
    statement_balance = models.BigIntegerField()
    ledger_balance = models.BigIntegerField()
    difference = models.BigIntegerField()
    adjustment_transaction = models.ForeignKey(
        "ledger.Transaction",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    cleared_count = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-statement_date", "-created_at"]

    def __str__(self) -> str:
        return f"{self.account.name} reconciled {self.statement_date}"
