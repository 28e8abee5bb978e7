"""
Reconciliation app: matching an account against a bank statement.

This app handles:
- Marking transactions cleared (and un-clearing them)
- Reconciling an account to a statement balance, posting one adjustment
  for any difference
- Reconciliation history per account

Usage:
    from reconciliation.services import ReconciliationService

    result = ReconciliationService.reconcile(
        checking.id, date(2024, 3, 31), 770000, cleared_transaction_ids=[...]
    )
    result.difference            # statement balance - ledger balance
    result.adjustment_transaction  # None when the balances agreed
"""
