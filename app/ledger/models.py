"""
Ledger models for double-entry envelope budgeting.

This module defines the core models of a budget:
- Ledger: The root scope owning every account and transaction
- Account: Bank accounts, cards, budget categories and group headers
- Transaction: One debit/credit posting between two accounts
- ActionHistory: Append-only audit trail of every mutation

Following double-entry bookkeeping principles, every transaction debits one
account and credits another with the same positive amount, so the ledger's
total debits always equal its total credits.

Usage:
    from ledger.models import Account, Transaction

    # Current balance in cents, signed by the account's internal type
    balance = account.get_balance()

    # Balance at the end of a day
    balance = account.get_balance(as_of=date(2024, 1, 31))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Case, Q, Sum, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from ledger.choices import (
    AccountKind,
    AccountType,
    ActionType,
    InternalType,
    SystemRole,
    TransactionKind,
    TransactionStatus,
    internal_type_for,
)
from ledger.managers import TransactionQuerySet

if TYPE_CHECKING:
    from datetime import date


class Ledger(UUIDPrimaryKeyMixin, BaseModel):
    """
    A budget: the isolated scope of its accounts and transactions.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        user: Owner; every API lookup is scoped to this user
        name: Display name
        description: Optional free text
        created_at/updated_at: From BaseModel

    Note:
        Created through LedgerService.create_ledger so the three system
        categories (Income, Unassigned, Off-budget) exist from the start.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ledgers",
        help_text="User who owns this budget",
    )
    name = models.CharField(
        max_length=255,
        help_text="Display name of the budget",
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text="Optional description",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="ledger_ledg_user_id_4c1a2e_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Account(UUIDPrimaryKeyMixin, BaseModel):
    """
    An account or budget category participating in double-entry postings.

    Fields:
        ledger: Owning budget
        name: Unique within the ledger
        type: asset, liability, equity, revenue or expense
        internal_type: Sign convention, always derived from type on save
        kind: plain, category_group, credit_card or cc_payment_category
        system_role: income, unassigned, off_budget (null for user accounts)
        parent_group: Category group header owning this category
        payment_category: For credit cards, the paired "CC Payment: <name>" category
        sort_order: Display order within the group
        is_active: Inactive accounts reject new postings

    Constraints:
        - Unique (ledger, name)
        - Each system role at most once per ledger

    Example:
        checking = Account.objects.create(
            ledger=ledger,
            name="Checking",
            type=AccountType.ASSET,
        )
        checking.internal_type  # "asset_like"
    """

    ledger = models.ForeignKey(
        Ledger,
        on_delete=models.CASCADE,
        related_name="accounts",
        help_text="Budget this account belongs to",
    )
    name = models.CharField(
        max_length=255,
        help_text="Account name, unique within the ledger",
    )
    type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        help_text="Bookkeeping type",
    )
    internal_type = models.CharField(
        max_length=20,
        choices=InternalType.choices,
        editable=False,
        help_text="Balance sign convention derived from type",
    )
    kind = models.CharField(
        max_length=30,
        choices=AccountKind.choices,
        default=AccountKind.PLAIN,
        help_text="Role of the account within the budget",
    )
    system_role = models.CharField(
        max_length=20,
        choices=SystemRole.choices,
        null=True,
        blank=True,
        help_text="Reserved category role (Income, Unassigned, Off-budget)",
    )
    parent_group = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="children",
        help_text="Category group header owning this category",
    )
    payment_category = models.OneToOneField(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="credit_card",
        help_text="Paired CC Payment category (credit cards only)",
    )
    sort_order = models.IntegerField(
        default=0,
        help_text="Display order within the group",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether new postings are accepted",
    )

    class Meta:
        ordering = ["sort_order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["ledger", "name"],
                name="unique_account_name_per_ledger",
            ),
            models.UniqueConstraint(
                fields=["ledger", "system_role"],
                condition=Q(system_role__isnull=False),
                name="unique_system_role_per_ledger",
            ),
        ]
        indexes = [
            models.Index(fields=["ledger", "type"], name="ledger_acco_ledger__8b0f31_idx"),
            models.Index(fields=["ledger", "kind"], name="ledger_acco_ledger__d2e6c4_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_type_display()})"

    def save(self, *args, **kwargs):
        """Derive internal_type from type before every save."""
        self.internal_type = internal_type_for(self.type)
        super().save(*args, **kwargs)

    @property
    def is_asset_like(self) -> bool:
        return internal_type_for(self.type) == InternalType.ASSET_LIKE

    @property
    def is_group(self) -> bool:
        return self.kind == AccountKind.CATEGORY_GROUP

    @property
    def is_system(self) -> bool:
        return self.system_role is not None

    @property
    def is_category(self) -> bool:
        """Equity accounts that hold budgeted money (including system categories)."""
        return self.type == AccountType.EQUITY and not self.is_group

    @property
    def is_budget_category(self) -> bool:
        """User categories shown in the budget grid."""
        return (
            self.type == AccountType.EQUITY
            and self.kind == AccountKind.PLAIN
            and self.system_role is None
        )

    @property
    def is_credit_card(self) -> bool:
        return self.kind == AccountKind.CREDIT_CARD

    def get_balance(self, as_of: date | None = None) -> int:
        """
        Compute the balance from non-deleted transactions.

        asset_like accounts: debits - credits
        liability_like accounts: credits - debits

        Args:
            as_of: Optional inclusive upper bound on the transaction date

        Returns:
            Balance in cents (negative means overdrawn or overspent)
        """
        queryset = Transaction.objects.counted().touching(self)
        if as_of is not None:
            queryset = queryset.filter(date__lte=as_of)

        totals = queryset.aggregate(
            credits=Coalesce(
                Sum(
                    Case(
                        When(credit_account=self, then="amount"),
                        default=Value(0),
                        output_field=models.BigIntegerField(),
                    )
                ),
                Value(0),
                output_field=models.BigIntegerField(),
            ),
            debits=Coalesce(
                Sum(
                    Case(
                        When(debit_account=self, then="amount"),
                        default=Value(0),
                        output_field=models.BigIntegerField(),
                    )
                ),
                Value(0),
                output_field=models.BigIntegerField(),
            ),
        )
        if self.is_asset_like:
            return totals["debits"] - totals["credits"]
        return totals["credits"] - totals["debits"]

    def has_postings(self) -> bool:
        """Whether any transaction (including deleted ones) references this account."""
        return Transaction.objects.touching(self).exists()


class Transaction(UUIDPrimaryKeyMixin, models.Model):
    """
    A double-entry posting of one positive amount from credit to debit.

    Rows are never edited in place. Corrections post a reversal (swapped
    accounts, same amount, kind=reversal, reversal_of=original) and mark the
    original REVERSED; a soft delete marks the row DELETED so balances
    ignore it while the audit view keeps it.

    Fields:
        ledger: Owning budget
        date: Calendar date the posting belongs to
        description: Free text
        amount: Positive integer cents
        debit_account / credit_account: The two sides (never equal)
        kind: TransactionKind (assignment and move are budgeting postings)
        status: active, reversed or deleted (django-fsm)
        reversal_of: For reversal rows, the transaction they offset
        linked_to: For secondary card-routing legs, the primary posting
        cleared / reconciled: Reconciliation flags
        idempotency_key: Optional key, unique per ledger; retries return the same row
        created_by: Acting user (null for scheduled jobs)
        deleted_at: When the row was soft-deleted

    Constraints:
        - amount > 0
        - debit_account != credit_account
        - (ledger, idempotency_key) unique when the key is set
    """

    ledger = models.ForeignKey(
        Ledger,
        on_delete=models.CASCADE,
        related_name="transactions",
        help_text="Budget this transaction belongs to",
    )
    date = models.DateField(
        db_index=True,
        help_text="Calendar date of the posting",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Human-readable description",
    )
    amount = models.PositiveBigIntegerField(
        help_text="Amount in cents (always positive)",
    )
    debit_account = models.ForeignKey(
        Account,
        on_delete=models.RESTRICT,
        related_name="debit_transactions",
        help_text="Account debited",
    )
    credit_account = models.ForeignKey(
        Account,
        on_delete=models.RESTRICT,
        related_name="credit_transactions",
        help_text="Account credited",
    )
    kind = models.CharField(
        max_length=20,
        choices=TransactionKind.choices,
        default=TransactionKind.STANDARD,
        db_index=True,
        help_text="What this posting represents",
    )
    status = FSMField(
        default=TransactionStatus.ACTIVE,
        choices=TransactionStatus.choices,
        db_index=True,
        help_text="Lifecycle state (managed by FSM)",
    )
    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="reversal",
        help_text="Transaction this reversal offsets",
    )
    linked_to = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="linked_legs",
        help_text="Primary posting of a routed credit card leg",
    )
    cleared = models.BooleanField(
        default=False,
        help_text="Seen on a bank or card statement",
    )
    reconciled = models.BooleanField(
        default=False,
        help_text="Locked by a completed reconciliation",
    )
    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Per-ledger key to prevent duplicate postings",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who posted this transaction",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this transaction was recorded",
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this transaction was soft-deleted",
    )

    objects = TransactionQuerySet.as_manager()

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["ledger", "date"], name="ledger_tran_ledger__5e7a90_idx"),
            models.Index(fields=["debit_account", "date"], name="ledger_tran_debit_a_1f3c62_idx"),
            models.Index(fields=["credit_account", "date"], name="ledger_tran_credit__a94b17_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="ledger_transaction_amount_positive",
            ),
            models.CheckConstraint(
                condition=~Q(debit_account=models.F("credit_account")),
                name="ledger_transaction_distinct_accounts",
            ),
            models.UniqueConstraint(
                fields=["ledger", "idempotency_key"],
                condition=Q(idempotency_key__isnull=False),
                name="ledger_transaction_unique_idempotency_key",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_kind_display()}: {self.amount} cents on {self.date}"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=TransactionStatus.ACTIVE,
        target=TransactionStatus.REVERSED,
    )
    def mark_reversed(self):
        """
        Mark as offset by a reversal row.

        Transition: ACTIVE -> REVERSED
        """

    @transition(
        field=status,
        source=TransactionStatus.ACTIVE,
        target=TransactionStatus.DELETED,
    )
    def mark_deleted(self):
        """
        Soft delete: drop out of every balance, stay in the audit view.

        Transition: ACTIVE -> DELETED
        """
        self.deleted_at = timezone.now()

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_reversal(self) -> bool:
        return self.kind == TransactionKind.REVERSAL

    @property
    def is_active(self) -> bool:
        return self.status == TransactionStatus.ACTIVE

    def signed_amount_for(self, account: Account) -> int:
        """Effect of this posting on the given account's balance."""
        if account.id == self.debit_account_id:
            return self.amount if account.is_asset_like else -self.amount
        if account.id == self.credit_account_id:
            return -self.amount if account.is_asset_like else self.amount
        return 0


class ActionHistory(UUIDPrimaryKeyMixin, models.Model):
    """
    Append-only record of one mutation, used for audit display and undo.

    Rows are written in the same database transaction as the change they
    describe. They are never updated; the retention task deletes rows older
    than ACTION_HISTORY_RETENTION_DAYS.

    Fields:
        ledger: Budget the change belongs to
        user: Acting user (null for scheduled jobs)
        action_type: ActionType value
        entity_type: Model label of the changed row (e.g. "transaction")
        entity_id: UUID of the changed row
        old_data / new_data: JSON snapshots before and after
        created_at: When the change was committed
    """

    ledger = models.ForeignKey(
        Ledger,
        on_delete=models.CASCADE,
        related_name="action_history",
        help_text="Budget the change belongs to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who made the change",
    )
    action_type = models.CharField(
        max_length=40,
        choices=ActionType.choices,
        db_index=True,
        help_text="Kind of mutation",
    )
    entity_type = models.CharField(
        max_length=50,
        help_text="Type of the changed entity",
    )
    entity_id = models.UUIDField(
        db_index=True,
        help_text="UUID of the changed entity",
    )
    old_data = models.JSONField(
        null=True,
        blank=True,
        help_text="Snapshot before the change",
    )
    new_data = models.JSONField(
        null=True,
        blank=True,
        help_text="Snapshot after the change",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the change was recorded",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Action history"
        indexes = [
            models.Index(fields=["ledger", "created_at"], name="ledger_acti_ledger__0b6d55_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_action_type_display()} {self.entity_type} {self.entity_id}"
