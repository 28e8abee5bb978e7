"""
Date arithmetic for recurring schedules.

    daily     +1 day
    weekly    +7 days
    biweekly  +14 days
    monthly   +1 month, on anchor_day clamped to the month end
    yearly    +1 year, Feb 29 clamped to Feb 28 in common years
"""

from __future__ import annotations

from datetime import date, timedelta

from budgeting.periods import add_months
from recurring.choices import Frequency

FIXED_STEPS = {
    Frequency.DAILY: timedelta(days=1),
    Frequency.WEEKLY: timedelta(days=7),
    Frequency.BIWEEKLY: timedelta(days=14),
}

MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.YEARLY: 12,
}


def next_occurrence(day: date, frequency: str, anchor_day: int | None = None) -> date:
    """The due date following day."""
    if frequency in FIXED_STEPS:
        return day + FIXED_STEPS[frequency]
    return add_months(day, MONTH_STEPS[frequency], anchor_day=anchor_day)

