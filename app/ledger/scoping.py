"""
Owner-scoped lookups for API views.

Every API lookup is filtered by ledger__user=request.user, so a row that
belongs to someone else is indistinguishable from a row that doesn't exist.

Usage:
    from ledger.scoping import owned_account

    account = owned_account(request.user, account_id)
"""

from __future__ import annotations

from ledger.exceptions import AccountNotFound, ActionNotFound, LedgerNotFound, TransactionNotFound
from ledger.models import Account, ActionHistory, Ledger, Transaction


def owned_ledger(user, ledger_id) -> Ledger:
    ledger = Ledger.objects.filter(id=ledger_id, user=user).first()
    if ledger is None:
        raise LedgerNotFound(f"Ledger {ledger_id} not found", details={"ledger_id": str(ledger_id)})
    return ledger


def owned_account(user, account_id) -> Account:
    account = Account.objects.filter(id=account_id, ledger__user=user).first()
    if account is None:
        raise AccountNotFound(f"Account {account_id} not found", details={"account_id": str(account_id)})
    return account


def owned_transaction(user, transaction_id) -> Transaction:
    txn = Transaction.objects.filter(id=transaction_id, ledger__user=user).first()
    if txn is None:
        raise TransactionNotFound(
            f"Transaction {transaction_id} not found",
            details={"transaction_id": str(transaction_id)},
        )
    return txn


def owned_action(user, action_id) -> ActionHistory:
    action = ActionHistory.objects.filter(id=action_id, ledger__user=user).first()
    if action is None:
        raise ActionNotFound(f"Action {action_id} not found", details={"action_id": str(action_id)})
    return action
