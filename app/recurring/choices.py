"""
Choice enums for recurring transaction models.
"""

from django.db import models


class Frequency(models.TextChoices):
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    BIWEEKLY = "biweekly", "Every Two Weeks"
    MONTHLY = "monthly", "Monthly"
    YEARLY = "yearly", "Yearly"


class RecurringTransactionType(models.TextChoices):
    """
    Direction of the posting.

    INFLOW: money into the account (debit account, credit category or Income)
    OUTFLOW: money out of the account (debit category or Unassigned, credit account)
    """

    INFLOW = "inflow", "Inflow"
    OUTFLOW = "outflow", "Outflow"
