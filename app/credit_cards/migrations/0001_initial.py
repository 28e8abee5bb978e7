import uuid
from decimal import Decimal

import django.db.models.deletion
import django_fsm
from django.db import migrations, models

import credit_cards.models


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
            name="CreditCardLimit",
            fields=base_fields()
            + [
                ("credit_limit", models.PositiveBigIntegerField(help_text="Credit limit in cents")),
                (
                    "apr",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Annual percentage rate",
                        max_digits=6,
                    ),
                ),
                (
                    "warning_threshold_percent",
                    models.PositiveSmallIntegerField(
                        default=credit_cards.models.default_warning_threshold,
                        help_text="Utilization percent that triggers the warning status",
                    ),
                ),
                (
                    "interest_type",
                    models.CharField(
                        choices=[("fixed", "Fixed"), ("variable", "Variable")],
                        default="variable",
                        max_length=10,
                    ),
                ),
                (
                    "compounding_frequency",
                    models.CharField(
                        choices=[("daily", "Daily"), ("monthly", "Monthly")],
                        default="daily",
                        max_length=10,
                    ),
                ),
                (
                    "statement_day_of_month",
                    models.PositiveSmallIntegerField(default=1, help_text="Day of month the billing cycle closes"),
                ),
                (
                    "due_date_offset_days",
                    models.PositiveSmallIntegerField(default=21, help_text="Days from statement close to the due date"),
                ),
                (
                    "grace_period_days",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Days after the due date a full payment still counts as on time",
                    ),
                ),
                (
                    "minimum_payment_percent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("1.00"),
                        help_text="Minimum payment as a percent of the ending balance",
                        max_digits=5,
                    ),
                ),
                (
                    "minimum_payment_flat",
                    models.PositiveBigIntegerField(default=2500, help_text="Minimum payment floor in cents"),
                ),
                ("auto_payment_enabled", models.BooleanField(default=False)),
                (
                    "auto_payment_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("minimum", "Minimum Payment"),
                            ("full_balance", "Full Balance"),
                            ("fixed_amount", "Fixed Amount"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "auto_payment_amount",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Amount in cents for fixed_amount auto-payments",
                        null=True,
                    ),
                ),
                (
                    "auto_payment_date",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Day of month to pay on (default: the due date)",
                        null=True,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                (
                    "credit_card",
                    models.ForeignKey(
                        help_text="Credit card account",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="credit_limits",
                        to="ledger.account",
                    ),
                ),
                (
                    "auto_payment_bank_account",
                    models.ForeignKey(
                        blank=True,
                        help_text="Bank account auto-payments are drawn from",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="ledger.account",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("credit_card",),
                        name="unique_active_limit_per_card",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("statement_day_of_month__gte", 1), ("statement_day_of_month__lte", 31)),
                        name="credit_limit_statement_day_valid",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("warning_threshold_percent__gte", 1), ("warning_threshold_percent__lte", 100)
                        ),
                        name="credit_limit_warning_threshold_valid",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditCardStatement",
            fields=base_fields()
            + [
                ("period_start", models.DateField()),
                ("period_end", models.DateField(db_index=True)),
                (
                    "previous_balance",
                    models.BigIntegerField(help_text="Ending balance of the previous statement"),
                ),
                ("purchases_amount", models.BigIntegerField(help_text="Purchases net of refunds")),
                ("payments_amount", models.BigIntegerField()),
                ("interest_charged", models.BigIntegerField()),
                ("fees_charged", models.BigIntegerField()),
                ("ending_balance", models.BigIntegerField()),
                ("minimum_payment_due", models.BigIntegerField()),
                ("due_date", models.DateField()),
                ("is_current", models.BooleanField(default=True)),
                (
                    "credit_card",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="statements",
                        to="ledger.account",
                    ),
                ),
            ],
            options={
                "ordering": ["-period_end"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_current", True)),
                        fields=("credit_card",),
                        name="unique_current_statement_per_card",
                    ),
                    models.UniqueConstraint(
                        fields=("credit_card", "period_end"),
                        name="unique_statement_period_per_card",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScheduledPayment",
            fields=base_fields()
            + [
                ("scheduled_date", models.DateField(db_index=True)),
                (
                    "payment_type",
                    models.CharField(
                        choices=[
                            ("minimum", "Minimum Payment"),
                            ("full_balance", "Full Balance"),
                            ("fixed_amount", "Fixed Amount"),
                            ("custom", "Custom"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "payment_amount",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Amount in cents for fixed_amount and custom payments",
                        null=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="scheduled",
                        help_text="Lifecycle state (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("actual_amount_paid", models.PositiveBigIntegerField(default=0)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, default="")),
                (
                    "credit_card",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scheduled_payments",
                        to="ledger.account",
                    ),
                ),
                (
                    "bank_account",
                    models.ForeignKey(
                        help_text="Account the payment is drawn from",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="ledger.account",
                    ),
                ),
                (
                    "statement",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="scheduled_payments",
                        to="credit_cards.creditcardstatement",
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
                "ordering": ["scheduled_date", "created_at"],
                "indexes": [
                    models.Index(fields=["status", "scheduled_date"], name="credit_card_status_due_idx"),
                ],
            },
        ),
    ]
