"""
Data types returned by the credit card services.

Types:
    CardActivity: Card activity within a date range, by category of posting
    InterestAccrual: Outcome of one interest accrual attempt
    CreditCardSummary: Balance, limit, utilization and payment funding of a card
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from credit_cards.models import CreditCardStatement
    from ledger.models import Transaction


@dataclass(frozen=True)
class CardActivity:
    """
    Card activity in cents, each signed to grow the amount owed.

    purchases is net of refunds; payments is net of reversed payments.
    """

    purchases: int = 0
    payments: int = 0
    interest: int = 0
    fees: int = 0

    @property
    def net_change(self) -> int:
        return self.purchases + self.interest + self.fees - self.payments


@dataclass(frozen=True)
class InterestAccrual:
    """
    Result of CreditCardService.accrue_interest().

    Attributes:
        account_id: Card account
        accrual_date: Day the accrual was evaluated for
        accrued: Whether an interest transaction exists for the day
        amount: Interest in cents (0 when skipped)
        reason: Why nothing was charged, when skipped
        transaction: The interest posting, when accrued
    """

    account_id: uuid.UUID
    accrual_date: date
    accrued: bool
    amount: int = 0
    reason: str = ""
    transaction: Transaction | None = None


@dataclass(frozen=True)
class CreditCardSummary:
    """
    Point-in-time view of a card.

    funding_shortfall is how much the CC Payment category is short of the
    amount owed (0 when fully funded).
    """

    account_id: uuid.UUID
    name: str
    balance: int
    credit_limit: int | None
    available_credit: int | None
    utilization_percent: Decimal | None
    status: str
    payment_category_id: uuid.UUID | None
    payment_category_balance: int
    funding_shortfall: int
    current_statement: CreditCardStatement | None
