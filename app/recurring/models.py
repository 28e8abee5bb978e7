"""
Recurring transaction models.

This module defines:
- RecurringTransaction: A template posted on a schedule
- RecurringOccurrence: One materialized due date of a template
"""

from __future__ import annotations

from django.db import models
from django.db.models import F, Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from recurring.choices import Frequency, RecurringTransactionType


class RecurringTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    Template for a transaction that repeats.

    next_date only ever moves forward. anchor_day is the day of month the
    schedule was started on, so a monthly template started on the 31st
    lands on Feb 29 and then returns to Mar 31.

    Fields:
        account: Bank or card account the money moves through
        category: Category debited (outflow) or credited (inflow); None
            falls back to Unassigned (outflow) or Income (inflow)
        auto_create: Whether the periodic sweep posts it automatically
        enabled: Disabled templates are kept but never posted
    """

    ledger = models.ForeignKey(
        "ledger.Ledger",
        on_delete=models.CASCADE,
        related_name="recurring_transactions",
    )
    description = models.CharField(max_length=255)
    amount = models.PositiveBigIntegerField(help_text="Amount in cents")
    frequency = models.CharField(max_length=10, choices=Frequency.choices)
    next_date = models.DateField(db_index=True, help_text="Next due date")
    end_date = models.DateField(null=True, blank=True, help_text="Last date an occurrence may fall on")
    anchor_day = models.PositiveSmallIntegerField(help_text="Intended day of month for monthly and yearly schedules")
    account = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="recurring_transactions",
    )
    category = models.ForeignKey(
        "ledger.Account",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    transaction_type = models.CharField(max_length=10, choices=RecurringTransactionType.choices)
    auto_create = models.BooleanField(default=True)
    enabled = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["next_date", "description"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="recurring_amount_positive"),
            models.CheckConstraint(
                condition=Q(anchor_day__gte=1, anchor_day__lte=31),
                name="recurring_anchor_day_valid",
            ),
            models.CheckConstraint(
                condition=Q(end_date__isnull=True) | Q(end_date__gte=F("next_date")) | Q(enabled=False),
                name="recurring_end_after_next",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.description} ({self.get_frequency_display()}, next {self.next_date})"


class RecurringOccurrence(UUIDPrimaryKeyMixin, BaseModel):
    """
    A due date of a template that has been posted.

    (template, due_date) is unique, which makes materialization idempotent.
    """

    template = models.ForeignKey(
        RecurringTransaction,
        on_delete=models.CASCADE,
        related_name="occurrences",
    )
    due_date = models.DateField()
    transaction = models.ForeignKey(
        "ledger.Transaction",
        on_delete=models.CASCADE,
        related_name="+",
    )

    class Meta:
        ordering = ["due_date"]
        constraints = [
            models.UniqueConstraint(fields=["template", "due_date"], name="unique_occurrence_per_due_date"),
        ]

    def __str__(self) -> str:
        return f"{self.template.description} on {self.due_date}"
