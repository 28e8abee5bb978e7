import uuid

import django.db.models.deletion
import django_fsm
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
    dependencies = [
        ("credit_cards", "0002_add_credit_card_schedules"),
        ("ledger", "0004_add_installment_choices"),
    ]

    operations = [
        migrations.CreateModel(
            name="InstallmentPlan",
            fields=base_fields()
            + [
                ("purchase_amount", models.PositiveBigIntegerField(help_text="Purchase amount in cents")),
                ("purchase_date", models.DateField()),
                ("description", models.CharField(max_length=255)),
                ("number_of_installments", models.PositiveSmallIntegerField()),
                (
                    "installment_amount",
                    models.PositiveBigIntegerField(
                        help_text="Regular installment in cents (the last one absorbs rounding)",
                    ),
                ),
                (
                    "frequency",
                    models.CharField(
                        choices=[
                            ("weekly", "Weekly"),
                            ("biweekly", "Every Two Weeks"),
                            ("monthly", "Monthly"),
                        ],
                        default="monthly",
                        max_length=10,
                    ),
                ),
                ("start_date", models.DateField(help_text="Due date of the first installment")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="active",
                        help_text="Lifecycle state (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("completed_installments", models.PositiveSmallIntegerField(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "credit_card",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="installment_plans",
                        to="ledger.account",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        help_text="Category each installment is charged to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="ledger.account",
                    ),
                ),
                (
                    "purchase_transaction",
                    models.ForeignKey(
                        help_text="Posting that put the purchase on the card",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="ledger.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("number_of_installments__gte", 2)),
                        name="installment_plan_at_least_two",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Installment",
            fields=base_fields()
            + [
                ("number", models.PositiveSmallIntegerField()),
                ("due_date", models.DateField(db_index=True)),
                ("amount", models.PositiveBigIntegerField(help_text="Scheduled amount in cents")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("processed", "Processed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="scheduled",
                        help_text="Lifecycle state (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("processed_date", models.DateField(blank=True, null=True)),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="installments",
                        to="credit_cards.installmentplan",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="ledger.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["due_date", "number"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("plan", "number"),
                        name="unique_installment_number_per_plan",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["status", "due_date"], name="installment_status_due_idx"),
                ],
            },
        ),
    ]
