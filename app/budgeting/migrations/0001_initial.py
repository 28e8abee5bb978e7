import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("ledger", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Goal",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "goal_type",
                    models.CharField(
                        choices=[
                            ("monthly_funding", "Monthly Funding"),
                            ("target_balance", "Target Balance"),
                            ("target_by_date", "Target By Date"),
                        ],
                        help_text="How progress is measured",
                        max_length=20,
                    ),
                ),
                ("target_amount", models.PositiveBigIntegerField(help_text="Target in cents")),
                (
                    "target_date",
                    models.DateField(
                        blank=True,
                        help_text="Deadline (target_by_date goals only)",
                        null=True,
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Inactive goals are kept for history only",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        help_text="Budget category this goal tracks",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="goals",
                        to="ledger.account",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("category",),
                        name="unique_active_goal_per_category",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("target_amount__gt", 0)),
                        name="budgeting_goal_target_positive",
                    ),
                ],
            },
        ),
    ]
