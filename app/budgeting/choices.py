"""
Enumerations for budgeting models.
"""

from django.db import models


class GoalType(models.TextChoices):
    """
    Kind of category goal.

    Values:
        MONTHLY_FUNDING: Budget target_amount into the category every month
        TARGET_BALANCE: Reach a balance of target_amount, no deadline
        TARGET_BY_DATE: Reach target_amount by the month of target_date
    """

    MONTHLY_FUNDING = "monthly_funding", "Monthly Funding"
    TARGET_BALANCE = "target_balance", "Target Balance"
    TARGET_BY_DATE = "target_by_date", "Target By Date"
