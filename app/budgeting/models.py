"""
Budgeting models.

Budget assignments live in the ledger as transactions, so the only table
this app owns is Goal.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from budgeting.choices import GoalType
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Goal(UUIDPrimaryKeyMixin, BaseModel):
    """
    A savings or funding goal for one budget category.

    Fields:
        category: Equity account the goal tracks
        goal_type: monthly_funding, target_balance or target_by_date
        target_amount: Target in cents
        target_date: Deadline month (target_by_date only)
        is_active: Only one active goal per category

    Creating a goal for a category deactivates its previous goal rather than
    deleting it.
    """

    category = models.ForeignKey(
        "ledger.Account",
        on_delete=models.CASCADE,
        related_name="goals",
        help_text="Budget category this goal tracks",
    )
    goal_type = models.CharField(
        max_length=20,
        choices=GoalType.choices,
        help_text="How progress is measured",
    )
    target_amount = models.PositiveBigIntegerField(
        help_text="Target in cents",
    )
    target_date = models.DateField(
        null=True,
        blank=True,
        help_text="Deadline (target_by_date goals only)",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive goals are kept for history only",
    )

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["category"],
                condition=Q(is_active=True),
                name="unique_active_goal_per_category",
            ),
            models.CheckConstraint(
                condition=Q(target_amount__gt=0),
                name="budgeting_goal_target_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_goal_type_display()} goal for {self.category.name}"
