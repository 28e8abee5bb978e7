import uuid

import django.db.models.deletion
from django.db import migrations, models


def base_fields():
    return [
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
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("ledger", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RecurringTransaction",
            fields=[
                *base_fields(),
                ("description", models.CharField(max_length=255)),
                ("amount", models.PositiveBigIntegerField(help_text="Amount in cents")),
                (
                    "frequency",
                    models.CharField(
                        choices=[
                            ("daily", "Daily"),
                            ("weekly", "Weekly"),
                            ("biweekly", "Every Two Weeks"),
                            ("monthly", "Monthly"),
                            ("yearly", "Yearly"),
                        ],
                        max_length=10,
                    ),
                ),
                ("next_date", models.DateField(db_index=True, help_text="Next due date")),
                (
                    "end_date",
                    models.DateField(blank=True, help_text="Last date an occurrence may fall on", null=True),
                ),
                (
                    "anchor_day",
                    models.PositiveSmallIntegerField(
                        help_text="Intended day of month for monthly and yearly schedules"
                    ),
                ),
                (
                    "transaction_type",
                    models.CharField(choices=[("inflow", "Inflow"), ("outflow", "Outflow")], max_length=10),
                ),
                ("auto_create", models.BooleanField(default=True)),
                ("enabled", models.BooleanField(db_index=True, default=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recurring_transactions",
                        to="ledger.account",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="ledger.account",
                    ),
                ),
                (
                    "ledger",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recurring_transactions",
                        to="ledger.ledger",
                    ),
                ),
            ],
            options={
                "ordering": ["next_date", "description"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="recurring_amount_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("anchor_day__gte", 1), ("anchor_day__lte", 31)),
                        name="recurring_anchor_day_valid",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("end_date__isnull", True),
                            ("end_date__gte", models.F("next_date")),
                            ("enabled", False),
                            _connector="OR",
                        ),
                        name="recurring_end_after_next",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RecurringOccurrence",
            fields=[
                *base_fields(),
                ("due_date", models.DateField()),
                (
                    "template",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="occurrences",
                        to="recurring.recurringtransaction",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="ledger.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["due_date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("template", "due_date"), name="unique_occurrence_per_due_date"
                    ),
                ],
            },
        ),
    ]
