"""
DRF serializers for the ledger app.

This module provides serializers for:
- Ledger and account display and input
- Transaction display, posting, editing and transfers
- Balance, balance history and action history responses

Input serializers only validate shapes; every business rule (positive
amounts, ledger scoping, routing) is enforced by the services.

Related files:
    - services.py: AccountService, LedgerService
    - balances.py: BalanceService
    - views.py: Ledger API views

Usage:
    serializer = TransactionInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    txn = LedgerService.post(ledger_id=ledger.id, **serializer.validated_data)
"""

from __future__ import annotations

from rest_framework import serializers

from ledger.choices import AccountKind, AccountType, TransactionKind
from ledger.models import Account, ActionHistory, Ledger, Transaction

# =============================================================================
# Ledgers & Accounts
# =============================================================================


class LedgerSerializer(serializers.ModelSerializer):
    """Ledger display and create/update input."""

    class Meta:
        model = Ledger
        fields = ["id", "name", "description", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]


class AccountSerializer(serializers.ModelSerializer):
    """
    Account display.

    Fields:
        balance: Current balance in cents (computed)
        payment_category: Paired CC Payment category (cards only)
    """

    balance = serializers.SerializerMethodField()

    class Meta:
        model = Account
        fields = [
            "id",
            "name",
            "type",
            "internal_type",
            "kind",
            "system_role",
            "parent_group",
            "payment_category",
            "sort_order",
            "is_active",
            "balance",
            "created_at",
        ]
        read_only_fields = fields

    def get_balance(self, obj: Account) -> int:
        return obj.get_balance()


class AccountCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    type = serializers.ChoiceField(choices=AccountType.choices)
    kind = serializers.ChoiceField(
        choices=[AccountKind.PLAIN, AccountKind.CATEGORY_GROUP],
        default=AccountKind.PLAIN,
    )
    parent_group_id = serializers.UUIDField(required=False, allow_null=True)
    sort_order = serializers.IntegerField(required=False, default=0)


class AccountUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    sort_order = serializers.IntegerField(required=False)
    is_active = serializers.BooleanField(required=False)
    parent_group_id = serializers.UUIDField(required=False, allow_null=True)


# =============================================================================
# Transactions
# =============================================================================


class TransactionSerializer(serializers.ModelSerializer):
    """Transaction display, including audit fields."""

    debit_account_name = serializers.CharField(source="debit_account.name", read_only=True)
    credit_account_name = serializers.CharField(source="credit_account.name", read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "date",
            "description",
            "amount",
            "debit_account",
            "debit_account_name",
            "credit_account",
            "credit_account_name",
            "kind",
            "status",
            "reversal_of",
            "linked_to",
            "cleared",
            "reconciled",
            "idempotency_key",
            "created_at",
            "deleted_at",
        ]
        read_only_fields = fields


class TransactionInputSerializer(serializers.Serializer):
    """
    Serializer for posting a transaction.

    Fields:
        debit_account_id: Account debited
        credit_account_id: Account credited
        amount: Positive integer cents
        date: Posting date
        description: Optional text
        kind: Defaults to standard; budgeting kinds go through the budget endpoints
        idempotency_key: Optional retry key
    """

    debit_account_id = serializers.UUIDField()
    credit_account_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    date = serializers.DateField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    kind = serializers.ChoiceField(
        choices=[
            TransactionKind.STANDARD,
            TransactionKind.TRANSFER,
            TransactionKind.CARD_PAYMENT,
            TransactionKind.INTEREST,
            TransactionKind.FEE,
        ],
        default=TransactionKind.STANDARD,
    )
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_null=True, default=None)


class TransactionEditSerializer(serializers.Serializer):
    debit_account_id = serializers.UUIDField(required=False)
    credit_account_id = serializers.UUIDField(required=False)
    amount = serializers.IntegerField(min_value=1, required=False)
    date = serializers.DateField(required=False)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)


class TransferSerializer(serializers.Serializer):
    from_account_id = serializers.UUIDField()
    to_account_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    date = serializers.DateField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_null=True, default=None)


class BulkDeleteSerializer(serializers.Serializer):
    transaction_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


# =============================================================================
# Balances & History
# =============================================================================


class AsOfQuerySerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False, allow_null=True, default=None)


class BalanceSerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    balance = serializers.IntegerField()
    as_of = serializers.DateField(allow_null=True)


class BalanceHistoryEntrySerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    running_balance = serializers.IntegerField()
    amount = serializers.IntegerField()
    date = serializers.DateField()
    timestamp = serializers.DateTimeField()


class ActionHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ActionHistory
        fields = [
            "id",
            "action_type",
            "entity_type",
            "entity_id",
            "old_data",
            "new_data",
            "user",
            "created_at",
        ]
        read_only_fields = fields
