"""
Budget periods.

A period is one calendar month, written "YYYY-MM" in the API.

Usage:
    from budgeting.periods import Period

    march = Period.parse("2024-03")
    march.start          # date(2024, 3, 1)
    march.end            # date(2024, 3, 31)
    march.previous()     # Period(2024, 2)
    Period.containing(date(2024, 3, 15)) == march
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date

from django.utils import timezone

from core.exceptions import ValidationError

PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def add_months(day: date, months: int, anchor_day: int | None = None) -> date:
    """
    Shift a date by whole months, clamping to the last day of the month.

    anchor_day is the intended day of month; it keeps a series started on
    the 31st from drifting to the 28th after February.

        add_months(date(2024, 1, 31), 1)                 -> 2024-02-29
        add_months(date(2024, 2, 29), 1, anchor_day=31)  -> 2024-03-31
    """
    index = day.year * 12 + day.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    wanted = anchor_day or day.day
    return date(year, month, min(wanted, calendar.monthrange(year, month)[1]))


@dataclass(frozen=True, order=True)
class Period:
    """A calendar month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12 or not 1 <= self.year <= 9999:
            raise ValidationError(
                f"Invalid period: {self.year}-{self.month}",
                error_code="INVALID_PERIOD",
                details={"year": self.year, "month": self.month},
            )

    @classmethod
    def parse(cls, value: str) -> Period:
        """
        Parse "YYYY-MM".

        Raises:
            ValidationError: If the value is not a valid month
        """
        match = PERIOD_PATTERN.match(value or "")
        if match is None:
            raise ValidationError(
                "Period must be formatted YYYY-MM",
                error_code="INVALID_PERIOD",
                details={"period": value},
            )
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def containing(cls, day: date) -> Period:
        return cls(day.year, day.month)

    @classmethod
    def current(cls) -> Period:
        return cls.containing(timezone.localdate())

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def previous(self) -> Period:
        if self.month == 1:
            return Period(self.year - 1, 12)
        return Period(self.year, self.month - 1)

    def next(self) -> Period:
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    def months_until(self, other: Period) -> int:
        """Signed number of months from this period to other."""
        return (other.year - self.year) * 12 + (other.month - self.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
