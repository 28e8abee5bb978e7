"""
DRF serializers for the reconciliation app.
"""

from __future__ import annotations

from rest_framework import serializers

from ledger.serializers import TransactionSerializer
from reconciliation.models import Reconciliation


class ReconcileSerializer(serializers.Serializer):
    """
    Fields:
        statement_date: Closing date of the statement
        statement_balance: Statement balance in cents (may be negative)
        cleared_transaction_ids: Transactions that appear on the statement
        notes: Optional text
    """

    statement_date = serializers.DateField()
    statement_balance = serializers.IntegerField()
    cleared_transaction_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReconciliationSerializer(serializers.ModelSerializer):
    adjustment_transaction = TransactionSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Reconciliation
        fields = [
            "id",
            "account",
            "statement_date",
            "statement_balance",
            "ledger_balance",
            "difference",
            "adjustment_transaction",
            "cleared_count",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class UnclearedSerializer(serializers.Serializer):
    cleared_balance = serializers.IntegerField()
    transactions = TransactionSerializer(many=True)
