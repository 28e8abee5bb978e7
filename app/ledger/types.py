"""
Data types for ledger operations.

This module defines dataclasses used for type-safe data transfer between
the service layer, the budgeting engine and the API.

Types:
    PostingParams: Parameters for posting a single transaction
    BalanceHistoryEntry: One row of an account's running-balance history
    LedgerTotals: Global debit/credit totals of a ledger

Usage:
    from ledger.types import PostingParams

    params = PostingParams(
        ledger_id=ledger.id,
        debit_account_id=groceries.id,
        credit_account_id=checking.id,
        amount=4250,
        date=date(2024, 3, 2),
        description="Farmers market",
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime
from typing import Any

from core.exceptions import ValidationError
from ledger.choices import TransactionKind


def validate_amount(amount: Any, field_name: str = "amount") -> None:
    """
    Reject anything that is not a positive integer number of cents.

    Raises:
        ValidationError: If amount is not an int (bool excluded) or is <= 0
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(
            f"{field_name} must be an integer number of cents",
            error_code="INVALID_AMOUNT",
            details={field_name: repr(amount)},
        )
    if amount <= 0:
        raise ValidationError(
            f"{field_name} must be positive",
            error_code="INVALID_AMOUNT",
            details={field_name: amount},
        )


@dataclass
class PostingParams:
    """
    Parameters for posting one double-entry transaction.

    Required Attributes:
        ledger_id: Budget the posting belongs to
        debit_account_id: Account debited
        credit_account_id: Account credited
        amount: Positive integer cents
        date: Calendar date of the posting

    Optional Attributes:
        description: Human-readable description
        kind: TransactionKind (default: standard)
        idempotency_key: Unique key; a retry returns the existing transaction
        user: Acting user (None for scheduled jobs)
        cleared: Mark the posting cleared on creation
        reconciled: Mark the posting reconciled on creation
    """

    # Required fields
    ledger_id: uuid.UUID
    debit_account_id: uuid.UUID
    credit_account_id: uuid.UUID
    amount: int
    date: date_type

    # Optional fields
    description: str = ""
    kind: str = TransactionKind.STANDARD
    idempotency_key: str | None = None
    user: Any = None
    cleared: bool = False
    reconciled: bool = False

    def __post_init__(self) -> None:
        """Validate params after initialization."""
        validate_amount(self.amount)
        if self.debit_account_id == self.credit_account_id:
            raise ValidationError(
                "Debit and credit accounts must be different",
                error_code="SAME_ACCOUNT",
                details={"account_id": str(self.debit_account_id)},
            )
        if not isinstance(self.date, date_type):
            raise ValidationError(
                "A posting date is required",
                error_code="INVALID_DATE",
                details={"date": repr(self.date)},
            )
        if self.kind not in TransactionKind.values:
            raise ValidationError(
                f"Unknown transaction kind: {self.kind}",
                error_code="INVALID_KIND",
                details={"kind": self.kind},
            )


@dataclass(frozen=True)
class BalanceHistoryEntry:
    """
    Running balance of an account immediately after one transaction.

    Attributes:
        transaction_id: The posting this row describes
        running_balance: Account balance after the posting, in cents
        amount: Signed effect of the posting on the account
        date: Posting date
        timestamp: When the posting was recorded
    """

    transaction_id: uuid.UUID
    running_balance: int
    amount: int
    date: date_type
    timestamp: datetime


@dataclass(frozen=True)
class LedgerTotals:
    """Sum of every debit and every credit in a ledger."""

    debits: int
    credits: int

    @property
    def is_balanced(self) -> bool:
        return self.debits == self.credits
