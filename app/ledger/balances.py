"""
Balance engine.

Balances are never stored: they are computed on demand by database
aggregates over non-deleted transactions, so they can never drift from the
postings they summarize.

    asset_like accounts:     balance = debits - credits
    liability_like accounts: balance = credits - debits

Usage:
    from ledger.balances import BalanceService

    BalanceService.balance(checking.id)
    BalanceService.balance(checking.id, as_of=date(2024, 1, 31))
    BalanceService.history(checking.id, limit=20, offset=40)
    BalanceService.ledger_totals(budget.id).is_balanced  # always True
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models
from django.db.models import Case, F, Sum, Value, When, Window
from django.db.models.functions import Coalesce

from core.services import BaseService
from ledger.models import Account, Transaction
from ledger.services import AccountService
from ledger.types import BalanceHistoryEntry, LedgerTotals

if TYPE_CHECKING:
    from datetime import date


def signed_amount(account: Account) -> Case:
    """Expression for a transaction's effect on the given account."""
    increase, decrease = F("amount"), -F("amount")
    if not account.is_asset_like:
        increase, decrease = decrease, increase
    return Case(
        When(debit_account=account, then=increase),
        default=decrease,
        output_field=models.BigIntegerField(),
    )


class BalanceService(BaseService):
    """Read-only balance queries."""

    @staticmethod
    def balance(account_id: uuid.UUID, as_of: date | None = None) -> int:
        """
        Signed balance of an account in cents.

        Args:
            account_id: Account to total
            as_of: Optional inclusive upper bound on the transaction date

        Raises:
            AccountNotFound: If the account doesn't exist
        """
        account = AccountService.get_account(account_id)
        return account.get_balance(as_of=as_of)

    @staticmethod
    def history(account_id: uuid.UUID, limit: int = 50, offset: int = 0) -> list[BalanceHistoryEntry]:
        """
        Running balance after each transaction, most recent first.

        The running total is a window function ordered oldest first, so any
        page can be fetched independently with limit/offset.
        """
        account = AccountService.get_account(account_id)
        rows = (
            Transaction.objects.counted()
            .touching(account)
            .annotate(
                change=signed_amount(account),
                running_balance=Window(
                    expression=Sum(signed_amount(account)),
                    order_by=[F("date").asc(), F("created_at").asc(), F("id").asc()],
                ),
            )
            .order_by("-date", "-created_at", "-id")
            .values("id", "change", "running_balance", "date", "created_at")[offset : offset + limit]
        )
        return [
            BalanceHistoryEntry(
                transaction_id=row["id"],
                running_balance=row["running_balance"],
                amount=row["change"],
                date=row["date"],
                timestamp=row["created_at"],
            )
            for row in rows
        ]

    @staticmethod
    def ledger_totals(ledger_id: uuid.UUID) -> LedgerTotals:
        """
        Total debits and credits over every account of a ledger.

        Each side is summed from the accounts' point of view, so a posting
        that somehow referenced an account outside the ledger would show up
        as an imbalance.
        """
        counted = Transaction.objects.counted()
        zero = Value(0, output_field=models.BigIntegerField())
        debits = counted.filter(debit_account__ledger_id=ledger_id).aggregate(
            total=Coalesce(Sum("amount"), zero)
        )["total"]
        credits = counted.filter(credit_account__ledger_id=ledger_id).aggregate(
            total=Coalesce(Sum("amount"), zero)
        )["total"]
        return LedgerTotals(debits=debits, credits=credits)
