import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Ledger",
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
                ("name", models.CharField(help_text="Display name of the budget", max_length=255)),
                (
                    "description",
                    models.TextField(blank=True, default="", help_text="Optional description"),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User who owns this budget",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ledgers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user", "created_at"], name="ledger_ledg_user_id_4c1a2e_idx")],
            },
        ),
        migrations.CreateModel(
            name="Account",
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
                ("name", models.CharField(help_text="Account name, unique within the ledger", max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("asset", "Asset"),
                            ("liability", "Liability"),
                            ("equity", "Equity"),
                            ("revenue", "Revenue"),
                            ("expense", "Expense"),
                        ],
                        help_text="Bookkeeping type",
                        max_length=20,
                    ),
                ),
                (
                    "internal_type",
                    models.CharField(
                        choices=[("asset_like", "Asset-like"), ("liability_like", "Liability-like")],
                        editable=False,
                        help_text="Balance sign convention derived from type",
                        max_length=20,
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("plain", "Plain"),
                            ("category_group", "Category Group"),
                            ("credit_card", "Credit Card"),
                            ("cc_payment_category", "CC Payment Category"),
                        ],
                        default="plain",
                        help_text="Role of the account within the budget",
                        max_length=30,
                    ),
                ),
                (
                    "system_role",
                    models.CharField(
                        blank=True,
                        choices=[("income", "Income"), ("unassigned", "Unassigned"), ("off_budget", "Off-budget")],
                        help_text="Reserved category role (Income, Unassigned, Off-budget)",
                        max_length=20,
                        null=True,
                    ),
                ),
                ("sort_order", models.IntegerField(default=0, help_text="Display order within the group")),
                (
                    "is_active",
                    models.BooleanField(
                        db_index=True,
                        default=True,
                        help_text="Whether new postings are accepted",
                    ),
                ),
                (
                    "ledger",
                    models.ForeignKey(
                        help_text="Budget this account belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="accounts",
                        to="ledger.ledger",
                    ),
                ),
                (
                    "parent_group",
                    models.ForeignKey(
                        blank=True,
                        help_text="Category group header owning this category",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="children",
                        to="ledger.account",
                    ),
                ),
                (
                    "payment_category",
                    models.OneToOneField(
                        blank=True,
                        help_text="Paired CC Payment category (credit cards only)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="credit_card",
                        to="ledger.account",
                    ),
                ),
            ],
            options={
                "ordering": ["sort_order", "name"],
                "indexes": [
                    models.Index(fields=["ledger", "type"], name="ledger_acco_ledger__8b0f31_idx"),
                    models.Index(fields=["ledger", "kind"], name="ledger_acco_ledger__d2e6c4_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("ledger", "name"), name="unique_account_name_per_ledger"),
                    models.UniqueConstraint(
                        condition=models.Q(("system_role__isnull", False)),
                        fields=("ledger", "system_role"),
                        name="unique_system_role_per_ledger",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
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
                ("date", models.DateField(db_index=True, help_text="Calendar date of the posting")),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Human-readable description",
                        max_length=255,
                    ),
                ),
                ("amount", models.PositiveBigIntegerField(help_text="Amount in cents (always positive)")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("standard", "Standard"),
                            ("assignment", "Assignment"),
                            ("move", "Move"),
                            ("transfer", "Transfer"),
                            ("card_payment", "Card Payment"),
                            ("card_routing", "Card Routing"),
                            ("interest", "Interest"),
                            ("fee", "Fee"),
                            ("adjustment", "Adjustment"),
                            ("reversal", "Reversal"),
                        ],
                        db_index=True,
                        default="standard",
                        help_text="What this posting represents",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("active", "Active"), ("reversed", "Reversed"), ("deleted", "Deleted")],
                        db_index=True,
                        default="active",
                        help_text="Lifecycle state (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("cleared", models.BooleanField(default=False, help_text="Seen on a bank or card statement")),
                (
                    "reconciled",
                    models.BooleanField(default=False, help_text="Locked by a completed reconciliation"),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        help_text="Unique key to prevent duplicate postings",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this transaction was recorded",
                    ),
                ),
                (
                    "deleted_at",
                    models.DateTimeField(blank=True, help_text="When this transaction was soft-deleted", null=True),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who posted this transaction",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "credit_account",
                    models.ForeignKey(
                        help_text="Account credited",
                        on_delete=django.db.models.deletion.RESTRICT,
                        related_name="credit_transactions",
                        to="ledger.account",
                    ),
                ),
                (
                    "debit_account",
                    models.ForeignKey(
                        help_text="Account debited",
                        on_delete=django.db.models.deletion.RESTRICT,
                        related_name="debit_transactions",
                        to="ledger.account",
                    ),
                ),
                (
                    "ledger",
                    models.ForeignKey(
                        help_text="Budget this transaction belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="ledger.ledger",
                    ),
                ),
                (
                    "linked_to",
                    models.ForeignKey(
                        blank=True,
                        help_text="Primary posting of a routed credit card leg",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="linked_legs",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "reversal_of",
                    models.OneToOneField(
                        blank=True,
                        help_text="Transaction this reversal offsets",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reversal",
                        to="ledger.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["ledger", "date"], name="ledger_tran_ledger__5e7a90_idx"),
                    models.Index(fields=["debit_account", "date"], name="ledger_tran_debit_a_1f3c62_idx"),
                    models.Index(fields=["credit_account", "date"], name="ledger_tran_credit__a94b17_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="ledger_transaction_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("debit_account", models.F("credit_account")), _negated=True),
                        name="ledger_transaction_distinct_accounts",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ActionHistory",
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
                    "action_type",
                    models.CharField(
                        choices=[
                            ("create_ledger", "Create Ledger"),
                            ("update_ledger", "Update Ledger"),
                            ("create_account", "Create Account"),
                            ("update_account", "Update Account"),
                            ("delete_account", "Delete Account"),
                            ("post_transaction", "Post Transaction"),
                            ("reverse_transaction", "Reverse Transaction"),
                            ("delete_transaction", "Delete Transaction"),
                            ("edit_transaction", "Edit Transaction"),
                            ("transfer", "Transfer"),
                            ("assign", "Assign"),
                            ("move", "Move"),
                            ("reconcile", "Reconcile"),
                            ("toggle_cleared", "Toggle Cleared"),
                            ("configure_limit", "Configure Limit"),
                            ("generate_statement", "Generate Statement"),
                            ("materialize", "Materialize"),
                            ("skip_occurrence", "Skip Occurrence"),
                        ],
                        db_index=True,
                        help_text="Kind of mutation",
                        max_length=40,
                    ),
                ),
                ("entity_type", models.CharField(help_text="Type of the changed entity", max_length=50)),
                ("entity_id", models.UUIDField(db_index=True, help_text="UUID of the changed entity")),
                ("old_data", models.JSONField(blank=True, help_text="Snapshot before the change", null=True)),
                ("new_data", models.JSONField(blank=True, help_text="Snapshot after the change", null=True)),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When the change was recorded",
                    ),
                ),
                (
                    "ledger",
                    models.ForeignKey(
                        help_text="Budget the change belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="action_history",
                        to="ledger.ledger",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who made the change",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Action history",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["ledger", "created_at"], name="ledger_acti_ledger__0b6d55_idx")],
            },
        ),
    ]
