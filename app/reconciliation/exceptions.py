"""
Reconciliation exceptions.

Exception Hierarchy:
    ValidationError (core)
    └── TransactionNotOnAccount - Cleared id that is not a live posting of the account
    ConflictError (core)
    └── TransactionReconciled - Toggling a transaction that is already reconciled
"""

from __future__ import annotations

from core.exceptions import ConflictError, ValidationError


class TransactionNotOnAccount(ValidationError):
    default_error_code: str = "TRANSACTION_NOT_ON_ACCOUNT"


class TransactionReconciled(ConflictError):
    default_error_code: str = "TRANSACTION_RECONCILED"
