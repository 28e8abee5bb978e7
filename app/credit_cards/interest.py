"""
Interest accrual policies.

The policy is chosen by the card limit's compounding_frequency:

    daily:   every day, balance * apr / 100 / 365, rounded half up to cents.
             The balance includes interest already charged, so it compounds.
    monthly: on the statement day only, average daily balance over the cycle
             * apr / 100 / 365 * days in cycle, rounded half up to cents

Policies only compute amounts; CreditCardService.accrue_interest decides
whether to charge and posts the transaction.

Usage:
    from credit_cards.interest import policy_for

    policy = policy_for(limit.compounding_frequency)
    if policy.is_accrual_day(limit, day):
        cents = policy.interest_for(card, limit, day, cycle_start)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.db.models import BigIntegerField, Case, F, Sum, Value, When

from budgeting.periods import add_months
from credit_cards.choices import CompoundingFrequency
from ledger.models import Transaction

if TYPE_CHECKING:
    from credit_cards.models import CreditCardLimit
    from ledger.models import Account

DAYS_PER_YEAR = Decimal(365)


def round_cents(value: Decimal) -> int:
    """Round half up to whole cents."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def statement_close(limit: CreditCardLimit, day: date) -> date:
    """The statement close date in day's month (statement day clamped to month end)."""
    return add_months(day.replace(day=1), 0, anchor_day=limit.statement_day_of_month)


def daily_interest(balance: int, apr: Decimal) -> int:
    return round_cents(Decimal(balance) * apr / 100 / DAYS_PER_YEAR)


def daily_balances(card: Account, start: date, end: date) -> list[int]:
    """End-of-day amount owed on the card for each day in [start, end]."""
    opening = card.get_balance(as_of=start - timedelta(days=1))
    rows = (
        Transaction.objects.counted()
        .touching(card)
        .in_period(start, end)
        .order_by()
        .values("date")
        .annotate(
            change=Sum(
                Case(
                    When(credit_account=card, then="amount"),
                    When(debit_account=card, then=-F("amount")),
                    default=Value(0),
                    output_field=BigIntegerField(),
                )
            )
        )
    )
    changes = {row["date"]: row["change"] for row in rows}

    balances = []
    running = opening
    day = start
    while day <= end:
        running += changes.get(day, 0)
        balances.append(running)
        day += timedelta(days=1)
    return balances


class InterestPolicy(ABC):
    """How much interest a card accrues on a given day."""

    @abstractmethod
    def is_accrual_day(self, limit: CreditCardLimit, day: date) -> bool:
        """Whether interest is charged on this day at all."""

    @abstractmethod
    def interest_for(self, card: Account, limit: CreditCardLimit, day: date, cycle_start: date) -> int:
        """Interest in cents to charge on day."""


class DailyInterestPolicy(InterestPolicy):
    """Daily accrual on the end-of-day balance, earlier interest included."""

    def is_accrual_day(self, limit: CreditCardLimit, day: date) -> bool:
        return True

    def interest_for(self, card: Account, limit: CreditCardLimit, day: date, cycle_start: date) -> int:
        return daily_interest(card.get_balance(as_of=day), limit.apr)


class MonthlyInterestPolicy(InterestPolicy):
    """Average daily balance over the cycle, charged once on the statement day."""

    def is_accrual_day(self, limit: CreditCardLimit, day: date) -> bool:
        return day == statement_close(limit, day)

    def interest_for(self, card: Account, limit: CreditCardLimit, day: date, cycle_start: date) -> int:
        balances = daily_balances(card, cycle_start, day)
        days = len(balances)
        average = Decimal(sum(balances)) / days
        return round_cents(average * limit.apr / 100 / DAYS_PER_YEAR * days)


POLICIES: dict[str, InterestPolicy] = {
    CompoundingFrequency.DAILY: DailyInterestPolicy(),
    CompoundingFrequency.MONTHLY: MonthlyInterestPolicy(),
}


def policy_for(compounding_frequency: str) -> InterestPolicy:
    return POLICIES[compounding_frequency]
