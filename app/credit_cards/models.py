"""
Credit card models.

This module defines:
- CreditCardLimit: Limit, APR, statement and auto-payment settings of a card
- CreditCardStatement: Immutable snapshot of one billing cycle
- ScheduledPayment: A card payment to be posted on a future date
- InstallmentPlan: A card purchase whose budget impact is spread over installments
- Installment: One scheduled slice of an installment plan

Balances are never stored here: statements snapshot figures computed from
the ledger at generation time, and everything else reads the ledger live.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from credit_cards.choices import (
    AutoPaymentType,
    CompoundingFrequency,
    InstallmentFrequency,
    InstallmentPlanStatus,
    InstallmentStatus,
    InterestType,
    PaymentType,
    ScheduledPaymentStatus,
)


def default_warning_threshold() -> int:
    return settings.BUDGET_DEFAULT_WARNING_THRESHOLD_PERCENT


class CreditCardLimit(UUIDPrimaryKeyMixin, BaseModel):
    """
    Limit and billing configuration of one credit card.

    Rows are never edited: reconfiguring deactivates the active row and
    inserts a new one, so the history of limits and rates is kept.

    Fields:
        credit_card: Card account (kind credit_card)
        credit_limit: Limit in cents (0 means no limit)
        apr: Annual percentage rate, e.g. 24.990
        warning_threshold_percent: Utilization at which status turns "warning"
        compounding_frequency: daily accrual, or monthly on the statement day
        statement_day_of_month: Day the cycle closes (clamped to month end)
        due_date_offset_days: Days from statement close to payment due date
        grace_period_days: Extra days after the due date a full payment still
            keeps the grace period
        minimum_payment_percent / minimum_payment_flat: Minimum payment rule
        auto_payment_*: Payment scheduled automatically with each statement
    """

    credit_card = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="credit_limits",
        help_text="Credit card account",
    )
    credit_limit = models.PositiveBigIntegerField(
        help_text="Credit limit in cents",
    )
    apr = models.DecimalField(
        max_digits=6,
        decimal_places=3,
        default=Decimal("0"),
        help_text="Annual percentage rate",
    )
    warning_threshold_percent = models.PositiveSmallIntegerField(
        default=default_warning_threshold,
        help_text="Utilization percent that triggers the warning status",
    )
    interest_type = models.CharField(
        max_length=10,
        choices=InterestType.choices,
        default=InterestType.VARIABLE,
    )
    compounding_frequency = models.CharField(
        max_length=10,
        choices=CompoundingFrequency.choices,
        default=CompoundingFrequency.DAILY,
    )
    statement_day_of_month = models.PositiveSmallIntegerField(
        default=1,
        help_text="Day of month the billing cycle closes",
    )
    due_date_offset_days = models.PositiveSmallIntegerField(
        default=21,
        help_text="Days from statement close to the due date",
    )
    grace_period_days = models.PositiveSmallIntegerField(
        default=0,
        help_text="Days after the due date a full payment still counts as on time",
    )
    minimum_payment_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("1.00"),
        help_text="Minimum payment as a percent of the ending balance",
    )
    minimum_payment_flat = models.PositiveBigIntegerField(
        default=2500,
        help_text="Minimum payment floor in cents",
    )
    auto_payment_enabled = models.BooleanField(default=False)
    auto_payment_type = models.CharField(
        max_length=20,
        choices=AutoPaymentType.choices,
        null=True,
        blank=True,
    )
    auto_payment_amount = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount in cents for fixed_amount auto-payments",
    )
    auto_payment_date = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text="Day of month to pay on (default: the due date)",
    )
    auto_payment_bank_account = models.ForeignKey(
        "ledger.Account",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Bank account auto-payments are drawn from",
    )
    notes = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["credit_card"],
                condition=Q(is_active=True),
                name="unique_active_limit_per_card",
            ),
            models.CheckConstraint(
                condition=Q(statement_day_of_month__gte=1, statement_day_of_month__lte=31),
                name="credit_limit_statement_day_valid",
            ),
            models.CheckConstraint(
                condition=Q(warning_threshold_percent__gte=1, warning_threshold_percent__lte=100),
                name="credit_limit_warning_threshold_valid",
            ),
        ]

    def __str__(self) -> str:
        return f"Limit {self.credit_limit / 100:,.2f} for {self.credit_card.name}"


class CreditCardStatement(UUIDPrimaryKeyMixin, BaseModel):
    """
    One billing cycle of a card, covering period_start..period_end inclusive.

    ending_balance = previous_balance + purchases + interest + fees - payments

    Only is_current changes after creation.
    """

    credit_card = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="statements",
    )
    period_start = models.DateField()
    period_end = models.DateField(db_index=True)
    previous_balance = models.BigIntegerField(help_text="Ending balance of the previous statement")
    purchases_amount = models.BigIntegerField(help_text="Purchases net of refunds")
    payments_amount = models.BigIntegerField()
    interest_charged = models.BigIntegerField()
    fees_charged = models.BigIntegerField()
    ending_balance = models.BigIntegerField()
    minimum_payment_due = models.BigIntegerField()
    due_date = models.DateField()
    is_current = models.BooleanField(default=True)

    class Meta:
        ordering = ["-period_end"]
        constraints = [
            models.UniqueConstraint(
                fields=["credit_card"],
                condition=Q(is_current=True),
                name="unique_current_statement_per_card",
            ),
            models.UniqueConstraint(
                fields=["credit_card", "period_end"],
                name="unique_statement_period_per_card",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.credit_card.name} statement {self.period_start}..{self.period_end}"


class ScheduledPayment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A card payment to post on scheduled_date.

    State Flow:
        SCHEDULED -> COMPLETED (posted; transaction set)
        SCHEDULED -> FAILED    (posting rejected; failure_reason set)
        SCHEDULED -> CANCELLED
    """

    credit_card = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="scheduled_payments",
    )
    bank_account = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Account the payment is drawn from",
    )
    statement = models.ForeignKey(
        CreditCardStatement,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_payments",
    )
    scheduled_date = models.DateField(db_index=True)
    payment_type = models.CharField(max_length=20, choices=PaymentType.choices)
    payment_amount = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount in cents for fixed_amount and custom payments",
    )
    status = FSMField(
        default=ScheduledPaymentStatus.SCHEDULED,
        choices=ScheduledPaymentStatus.choices,
        db_index=True,
        help_text="Lifecycle state (managed by FSM)",
    )
    actual_amount_paid = models.PositiveBigIntegerField(default=0)
    transaction = models.ForeignKey(
        "ledger.Transaction",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["scheduled_date", "created_at"]
        indexes = [
            models.Index(fields=["status", "scheduled_date"], name="credit_card_status_due_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_payment_type_display()} payment for {self.credit_card.name} on {self.scheduled_date}"

    @transition(
        field=status,
        source=ScheduledPaymentStatus.SCHEDULED,
        target=ScheduledPaymentStatus.COMPLETED,
    )
    def complete(self, amount: int, transaction=None):
        """
        Record the posted payment.

        Transition: SCHEDULED -> COMPLETED
        """
        self.actual_amount_paid = amount
        self.transaction = transaction
        self.processed_at = timezone.now()

    @transition(
        field=status,
        source=ScheduledPaymentStatus.SCHEDULED,
        target=ScheduledPaymentStatus.FAILED,
    )
    def fail(self, reason: str):
        """Transition: SCHEDULED -> FAILED"""
        self.failure_reason = reason
        self.processed_at = timezone.now()

    @transition(
        field=status,
        source=ScheduledPaymentStatus.SCHEDULED,
        target=ScheduledPaymentStatus.CANCELLED,
    )
    def cancel(self):
        """Transition: SCHEDULED -> CANCELLED"""


class InstallmentPlan(UUIDPrimaryKeyMixin, BaseModel):
    """
    A card purchase paid off in installments.

    The card owes the full purchase_amount from purchase_date on. The spending
    category is charged one installment at a time, each moving the slice into
    the card's CC Payment category.

    State Flow:
        ACTIVE -> COMPLETED (every installment processed)
        ACTIVE -> CANCELLED (before any installment was processed)
    """

    credit_card = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="installment_plans",
    )
    category = models.ForeignKey(
        "ledger.Account",
        on_delete=models.PROTECT,
        related_name="+",
        help_text="Category each installment is charged to",
    )
    purchase_transaction = models.ForeignKey(
        "ledger.Transaction",
        on_delete=models.PROTECT,
        related_name="+",
        help_text="Posting that put the purchase on the card",
    )
    purchase_amount = models.PositiveBigIntegerField(help_text="Purchase amount in cents")
    purchase_date = models.DateField()
    description = models.CharField(max_length=255)
    number_of_installments = models.PositiveSmallIntegerField()
    installment_amount = models.PositiveBigIntegerField(
        help_text="Regular installment in cents (the last one absorbs rounding)",
    )
    frequency = models.CharField(
        max_length=10,
        choices=InstallmentFrequency.choices,
        default=InstallmentFrequency.MONTHLY,
    )
    start_date = models.DateField(help_text="Due date of the first installment")
    status = FSMField(
        default=InstallmentPlanStatus.ACTIVE,
        choices=InstallmentPlanStatus.choices,
        db_index=True,
        help_text="Lifecycle state (managed by FSM)",
    )
    completed_installments = models.PositiveSmallIntegerField(default=0)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(number_of_installments__gte=2),
                name="installment_plan_at_least_two",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.description} in {self.number_of_installments} installments"

    @property
    def ledger_id(self):
        return self.credit_card.ledger_id

    @transition(
        field=status,
        source=InstallmentPlanStatus.ACTIVE,
        target=InstallmentPlanStatus.COMPLETED,
    )
    def complete(self):
        """Transition: ACTIVE -> COMPLETED"""

    @transition(
        field=status,
        source=InstallmentPlanStatus.ACTIVE,
        target=InstallmentPlanStatus.CANCELLED,
    )
    def cancel(self):
        """Transition: ACTIVE -> CANCELLED"""


class Installment(UUIDPrimaryKeyMixin, BaseModel):
    """
    One installment of a plan, numbered from 1.

    State Flow:
        SCHEDULED -> PROCESSED (posted; transaction set)
        SCHEDULED -> CANCELLED
    """

    plan = models.ForeignKey(
        InstallmentPlan,
        on_delete=models.CASCADE,
        related_name="installments",
    )
    number = models.PositiveSmallIntegerField()
    due_date = models.DateField(db_index=True)
    amount = models.PositiveBigIntegerField(help_text="Scheduled amount in cents")
    status = FSMField(
        default=InstallmentStatus.SCHEDULED,
        choices=InstallmentStatus.choices,
        db_index=True,
        help_text="Lifecycle state (managed by FSM)",
    )
    processed_date = models.DateField(null=True, blank=True)
    transaction = models.ForeignKey(
        "ledger.Transaction",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["due_date", "number"]
        constraints = [
            models.UniqueConstraint(
                fields=["plan", "number"],
                name="unique_installment_number_per_plan",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "due_date"], name="installment_status_due_idx"),
        ]

    def __str__(self) -> str:
        return f"Installment {self.number} of {self.plan.description}"

    @transition(
        field=status,
        source=InstallmentStatus.SCHEDULED,
        target=InstallmentStatus.PROCESSED,
    )
    def process(self, processed_date, transaction=None):
        """Transition: SCHEDULED -> PROCESSED"""
        self.processed_date = processed_date
        self.transaction = transaction

    @transition(
        field=status,
        source=InstallmentStatus.SCHEDULED,
        target=InstallmentStatus.CANCELLED,
    )
    def cancel(self):
        """Transition: SCHEDULED -> CANCELLED"""
