"""
Choice enums for credit card models.

ScheduledPaymentStatus is managed by django-fsm on ScheduledPayment:

    SCHEDULED -> COMPLETED
    SCHEDULED -> FAILED
    SCHEDULED -> CANCELLED

InstallmentPlanStatus and InstallmentStatus are managed the same way on
InstallmentPlan and Installment:

    ACTIVE -> COMPLETED | CANCELLED
    SCHEDULED -> PROCESSED | CANCELLED
"""

from django.db import models


class InterestType(models.TextChoices):
    FIXED = "fixed", "Fixed"
    VARIABLE = "variable", "Variable"


class CompoundingFrequency(models.TextChoices):
    """How interest accrues: every day, or once per cycle on the statement day."""

    DAILY = "daily", "Daily"
    MONTHLY = "monthly", "Monthly"


class AutoPaymentType(models.TextChoices):
    MINIMUM = "minimum", "Minimum Payment"
    FULL_BALANCE = "full_balance", "Full Balance"
    FIXED_AMOUNT = "fixed_amount", "Fixed Amount"


class PaymentType(models.TextChoices):
    """Amount a scheduled payment resolves to when processed."""

    MINIMUM = "minimum", "Minimum Payment"
    FULL_BALANCE = "full_balance", "Full Balance"
    FIXED_AMOUNT = "fixed_amount", "Fixed Amount"
    CUSTOM = "custom", "Custom"


# Payment types that carry their own amount
AMOUNT_PAYMENT_TYPES = frozenset({PaymentType.FIXED_AMOUNT, PaymentType.CUSTOM})


class ScheduledPaymentStatus(models.TextChoices):
    """
    Lifecycle of a scheduled payment.

    Terminal states: COMPLETED, CANCELLED, FAILED
    """

    SCHEDULED = "scheduled", "Scheduled"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"


class InstallmentFrequency(models.TextChoices):
    WEEKLY = "weekly", "Weekly"
    BIWEEKLY = "biweekly", "Every Two Weeks"
    MONTHLY = "monthly", "Monthly"


class InstallmentPlanStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class InstallmentStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    PROCESSED = "processed", "Processed"
    CANCELLED = "cancelled", "Cancelled"


class UtilizationStatus(models.TextChoices):
    GOOD = "good", "Good"
    WARNING = "warning", "Warning"
    CRITICAL = "critical", "Critical"
    OVER_LIMIT = "over_limit", "Over Limit"
    NOT_APPLICABLE = "not_applicable", "Not Applicable"
