"""
Reconciliation service.

Reconciling an account marks the transactions that appear on a bank
statement as cleared and reconciled, then compares the ledger with the
statement. Any difference is booked as a single adjustment against the
Unassigned category, so the account matches the bank and the difference
becomes money to budget (or money the budget has to give back).

Reconciled transactions are frozen: LedgerService refuses to reverse, edit
or delete them, and their cleared flag can no longer be toggled.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db.models import BigIntegerField, Case, Sum, Value, When
from django.db.models.functions import Coalesce

from core.exceptions import ValidationError
from core.services import BaseService
from ledger.choices import AccountType, ActionType, SystemRole, TransactionKind, TransactionStatus
from ledger.exceptions import InvalidAccountForOperation, InvalidTransactionState, TransactionNotFound
from ledger.models import Account, Transaction
from ledger.services import AccountService, LedgerService, record_action, transaction_snapshot
from ledger.types import PostingParams
from reconciliation.exceptions import TransactionNotOnAccount, TransactionReconciled
from reconciliation.models import Reconciliation
from reconciliation.types import ReconciliationResult

if TYPE_CHECKING:
    from datetime import date
    from typing import Any

    from django.db.models import QuerySet

RECONCILABLE_TYPES = (AccountType.ASSET, AccountType.LIABILITY)


class ReconciliationService(BaseService):
    """Reconcile accounts against statements and manage cleared flags."""

    @classmethod
    def reconcilable_account(cls, account_id: uuid.UUID) -> Account:
        """
        Raises:
            AccountNotFound: Unknown id
            InvalidAccountForOperation: Categories and groups are not reconciled
        """
        account = AccountService.get_account(account_id)
        if account.type not in RECONCILABLE_TYPES:
            raise InvalidAccountForOperation(
                f"{account.name!r} is not a bank or card account",
                details={"account_id": str(account.id), "type": account.type},
            )
        return account

    @classmethod
    def reconcile(
        cls,
        account_id: uuid.UUID,
        statement_date: date,
        statement_balance: int,
        cleared_transaction_ids: list[uuid.UUID] | None = None,
        notes: str = "",
        user: Any = None,
    ) -> ReconciliationResult:
        """
        Reconcile an account to a statement balance.

        Steps (one atomic block, account row locked):
            1. Mark the listed transactions cleared and reconciled
            2. difference = statement_balance - balance as of statement_date
            3. Post one adjustment of |difference| against Unassigned, dated
               statement_date, when the difference is not zero
            4. Record the Reconciliation row and an audit entry

        Raises:
            InvalidAccountForOperation: The account is a category
            TransactionNotFound: A listed id does not exist in the ledger
            TransactionNotOnAccount: A listed transaction is not a live posting of the account
        """
        if isinstance(statement_balance, bool) or not isinstance(statement_balance, int):
            raise ValidationError(
                "statement_balance must be an integer number of cents",
                error_code="INVALID_AMOUNT",
                details={"statement_balance": repr(statement_balance)},
            )
        account = cls.reconcilable_account(account_id)
        ids = set(cleared_transaction_ids or [])

        with cls.atomic():
            account = Account.objects.select_for_update().get(id=account.id)
            cleared = cls._lock_cleared(account, ids)
            Transaction.objects.filter(id__in=[txn.id for txn in cleared]).update(cleared=True, reconciled=True)

            ledger_balance = account.get_balance(as_of=statement_date)
            difference = statement_balance - ledger_balance
            adjustment = None
            if difference != 0:
                adjustment = cls._post_adjustment(account, statement_date, difference, user)

            reconciliation = Reconciliation.objects.create(
                account=account,
                statement_date=statement_date,
                statement_balance=statement_balance,
                ledger_balance=ledger_balance,
                difference=difference,
                adjustment_transaction=adjustment,
                cleared_count=len(cleared),
                notes=notes,
            )
            record_action(
                account.ledger_id,
                ActionType.RECONCILE,
                "reconciliation",
                reconciliation.id,
                user=user,
                new_data={
                    "account": str(account.id),
                    "statement_date": statement_date.isoformat(),
                    "statement_balance": statement_balance,
                    "ledger_balance": ledger_balance,
                    "difference": difference,
                    "cleared": sorted(str(txn.id) for txn in cleared),
                },
            )

        cls.get_logger().info(
            "Reconciled account",
            extra={
                "account_id": str(account.id),
                "statement_date": statement_date.isoformat(),
                "difference": difference,
                "cleared_count": len(cleared),
            },
        )
        return ReconciliationResult(reconciliation, difference, adjustment)

    @staticmethod
    def _lock_cleared(account: Account, ids: set[uuid.UUID]) -> list[Transaction]:
        if not ids:
            return []
        rows = list(
            Transaction.objects.select_for_update()
            .filter(ledger_id=account.ledger_id, id__in=ids)
            .order_by("id")
        )
        missing = ids - {txn.id for txn in rows}
        if missing:
            raise TransactionNotFound(
                "Transactions not found",
                details={"transaction_ids": sorted(str(txn_id) for txn_id in missing)},
            )
        foreign = [
            txn
            for txn in rows
            if account.id not in (txn.debit_account_id, txn.credit_account_id)
            or txn.status != TransactionStatus.ACTIVE
            or txn.is_reversal
        ]
        if foreign:
            raise TransactionNotOnAccount(
                f"Only active transactions of {account.name!r} can be reconciled",
                details={"transaction_ids": sorted(str(txn.id) for txn in foreign)},
            )
        return rows

    @classmethod
    def _post_adjustment(cls, account: Account, statement_date: date, difference: int, user: Any) -> Transaction:
        """Post |difference| between the account and Unassigned, moving the account by difference."""
        unassigned = AccountService.system_account(account.ledger_id, SystemRole.UNASSIGNED)
        increase = difference > 0
        # Debits grow asset-like balances; credits grow liability-like ones
        if account.is_asset_like == increase:
            debit, credit = account, unassigned
        else:
            debit, credit = unassigned, account
        params = PostingParams(
            ledger_id=account.ledger_id,
            debit_account_id=debit.id,
            credit_account_id=credit.id,
            amount=abs(difference),
            date=statement_date,
            description="Reconciliation adjustment",
            kind=TransactionKind.ADJUSTMENT,
            user=user,
            cleared=True,
            reconciled=True,
        )
        return LedgerService.post_entry(params)

    @classmethod
    def toggle_cleared(cls, transaction_id: uuid.UUID, user: Any = None) -> Transaction:
        """
        Flip a transaction's cleared flag.

        Raises:
            TransactionNotFound: Unknown id
            TransactionReconciled: The transaction is already reconciled
            InvalidTransactionState: The transaction is deleted or reversed
        """
        with cls.atomic():
            txn = Transaction.objects.select_for_update().filter(id=transaction_id).first()
            if txn is None:
                raise TransactionNotFound(
                    f"Transaction {transaction_id} not found",
                    details={"transaction_id": str(transaction_id)},
                )
            if txn.reconciled:
                raise TransactionReconciled(
                    "Reconciled transactions cannot be un-cleared",
                    details={"transaction_id": str(txn.id)},
                )
            if txn.status != TransactionStatus.ACTIVE:
                raise InvalidTransactionState(
                    f"Cannot clear a {txn.status} transaction",
                    details={"transaction_id": str(txn.id), "current_status": txn.status},
                )
            old_data = transaction_snapshot(txn)
            txn.cleared = not txn.cleared
            txn.save(update_fields=["cleared"])
            record_action(
                txn.ledger_id,
                ActionType.TOGGLE_CLEARED,
                "transaction",
                txn.id,
                user=user,
                old_data=old_data,
                new_data=transaction_snapshot(txn),
            )
        return txn

    @classmethod
    def uncleared_transactions(cls, account_id: uuid.UUID) -> QuerySet:
        """Live postings of the account not yet cleared, oldest first."""
        account = cls.reconcilable_account(account_id)
        return (
            Transaction.objects.current()
            .touching(account)
            .filter(cleared=False)
            .select_related("debit_account", "credit_account")
            .order_by("date", "created_at")
        )

    @classmethod
    def cleared_balance(cls, account_id: uuid.UUID) -> int:
        """Balance of the account counting cleared postings only."""
        account = cls.reconcilable_account(account_id)
        totals = (
            Transaction.objects.counted()
            .touching(account)
            .filter(cleared=True)
            .aggregate(
                credits=Coalesce(
                    Sum(Case(When(credit_account=account, then="amount"), default=Value(0), output_field=BigIntegerField())),
                    Value(0),
                    output_field=BigIntegerField(),
                ),
                debits=Coalesce(
                    Sum(Case(When(debit_account=account, then="amount"), default=Value(0), output_field=BigIntegerField())),
                    Value(0),
                    output_field=BigIntegerField(),
                ),
            )
        )
        if account.is_asset_like:
            return totals["debits"] - totals["credits"]
        return totals["credits"] - totals["debits"]

    @classmethod
    def history(cls, account_id: uuid.UUID) -> QuerySet:
        """Reconciliations of the account, most recent statement first."""
        account = cls.reconcilable_account(account_id)
        return Reconciliation.objects.filter(account=account).select_related("adjustment_transaction")
