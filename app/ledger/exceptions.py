"""
Ledger-specific exceptions.

Each class narrows one of the core exception families so the DRF exception
handler maps it to the right status code without any extra wiring.

Exception Hierarchy:
    NotFoundError
    ├── LedgerNotFound
    ├── AccountNotFound
    ├── TransactionNotFound
    └── ActionNotFound
    ValidationError
    ├── NonPostableAccount - Group headers and inactive accounts
    └── InvalidAccountForOperation - Wrong account type for an operation
    ConflictError
    ├── AccountInUse - Deleting an account that still has postings
    ├── ProtectedAccount - Renaming/deleting a system or paired account
    └── InvalidTransactionState - Reversing/deleting a non-active posting

Usage:
    from ledger.exceptions import AccountNotFound

    raise AccountNotFound(
        f"Account {account_id} not found",
        details={"account_id": str(account_id)},
    )
"""

from __future__ import annotations

from core.exceptions import ConflictError, NotFoundError, ValidationError


class LedgerNotFound(NotFoundError):
    """Raised when a ledger does not exist or belongs to another user."""

    default_error_code: str = "LEDGER_NOT_FOUND"


class AccountNotFound(NotFoundError):
    """
    Raised when an account cannot be found in the expected ledger.

    Use for:
    - Unknown account UUIDs
    - Accounts that exist but belong to a different ledger
    """

    default_error_code: str = "ACCOUNT_NOT_FOUND"


class TransactionNotFound(NotFoundError):
    """Raised when a transaction lookup fails."""

    default_error_code: str = "TRANSACTION_NOT_FOUND"


class ActionNotFound(NotFoundError):
    default_error_code: str = "ACTION_NOT_FOUND"


class NonPostableAccount(ValidationError):
    """
    Raised when a posting targets an account that cannot take postings.

    Category group headers never hold money; inactive accounts keep their
    history but reject new postings.
    """

    default_error_code: str = "NON_POSTABLE_ACCOUNT"


class InvalidAccountForOperation(ValidationError):
    default_error_code: str = "INVALID_ACCOUNT_FOR_OPERATION"


class AccountInUse(ConflictError):
    """Raised when deleting an account that is referenced by transactions."""

    default_error_code: str = "ACCOUNT_IN_USE"


class ProtectedAccount(ConflictError):
    """Raised when changing a system category or a card's payment category directly."""

    default_error_code: str = "PROTECTED_ACCOUNT"


class InvalidTransactionState(ConflictError):
    """
    Raised when a transaction cannot move to the requested state.

    Examples:
    - Reversing a transaction that was already reversed
    - Deleting a reversal row
    - Acting on a routed card leg instead of its primary posting
    """

    default_error_code: str = "INVALID_TRANSACTION_STATE"
