"""
DRF serializers for the recurring app.
"""

from __future__ import annotations

from rest_framework import serializers

from recurring.choices import Frequency, RecurringTransactionType
from recurring.models import RecurringTransaction


class RecurringTransactionSerializer(serializers.ModelSerializer):
    account_name = serializers.CharField(source="account.name", read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True, allow_null=True, default=None)

    class Meta:
        model = RecurringTransaction
        fields = [
            "id",
            "description",
            "amount",
            "frequency",
            "next_date",
            "end_date",
            "anchor_day",
            "account",
            "account_name",
            "category",
            "category_name",
            "transaction_type",
            "auto_create",
            "enabled",
            "created_at",
        ]
        read_only_fields = fields


class RecurringTransactionCreateSerializer(serializers.Serializer):
    """
    Fields:
        start_date: First due date; its day of month becomes the anchor day
        category_id: Optional; Unassigned (outflow) or Income (inflow) when omitted
    """

    description = serializers.CharField(max_length=255)
    amount = serializers.IntegerField(min_value=1)
    frequency = serializers.ChoiceField(choices=Frequency.choices)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    account_id = serializers.UUIDField()
    category_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    transaction_type = serializers.ChoiceField(choices=RecurringTransactionType.choices)
    auto_create = serializers.BooleanField(required=False, default=True)


class RecurringTransactionUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255, required=False)
    amount = serializers.IntegerField(min_value=1, required=False)
    category_id = serializers.UUIDField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    next_date = serializers.DateField(required=False)
    auto_create = serializers.BooleanField(required=False)
    enabled = serializers.BooleanField(required=False)


class MaterializeSerializer(serializers.Serializer):
    due_date = serializers.DateField(required=False, allow_null=True, default=None)


class RecurringListQuerySerializer(serializers.Serializer):
    due_on_or_before = serializers.DateField(required=False, allow_null=True, default=None)
