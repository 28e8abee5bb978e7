"""
DRF serializers for the credit_cards app.

Amounts are integer cents; apr and percents are decimals.
"""

from __future__ import annotations

from rest_framework import serializers

from credit_cards.choices import (
    AutoPaymentType,
    CompoundingFrequency,
    InstallmentFrequency,
    InstallmentStatus,
    InterestType,
    PaymentType,
)
from credit_cards.installments import MAX_INSTALLMENTS, MIN_INSTALLMENTS
from credit_cards.models import (
    CreditCardLimit,
    CreditCardStatement,
    Installment,
    InstallmentPlan,
    ScheduledPayment,
)


class CreditCardCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)


class CreditCardLimitSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditCardLimit
        fields = [
            "id",
            "credit_card",
            "credit_limit",
            "apr",
            "warning_threshold_percent",
            "interest_type",
            "compounding_frequency",
            "statement_day_of_month",
            "due_date_offset_days",
            "grace_period_days",
            "minimum_payment_percent",
            "minimum_payment_flat",
            "auto_payment_enabled",
            "auto_payment_type",
            "auto_payment_amount",
            "auto_payment_date",
            "auto_payment_bank_account",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class CreditCardLimitInputSerializer(serializers.Serializer):
    """
    Serializer for configuring a card's limit.

    Omitted settings take their defaults; the previous configuration is
    replaced, not merged.
    """

    credit_limit = serializers.IntegerField(min_value=0)
    apr = serializers.DecimalField(max_digits=6, decimal_places=3, min_value=0, max_value=100, required=False)
    warning_threshold_percent = serializers.IntegerField(min_value=1, max_value=100, required=False)
    interest_type = serializers.ChoiceField(choices=InterestType.choices, required=False)
    compounding_frequency = serializers.ChoiceField(choices=CompoundingFrequency.choices, required=False)
    statement_day_of_month = serializers.IntegerField(min_value=1, max_value=31, required=False)
    due_date_offset_days = serializers.IntegerField(min_value=0, required=False)
    grace_period_days = serializers.IntegerField(min_value=0, required=False)
    minimum_payment_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )
    minimum_payment_flat = serializers.IntegerField(min_value=0, required=False)
    auto_payment_enabled = serializers.BooleanField(required=False)
    auto_payment_type = serializers.ChoiceField(choices=AutoPaymentType.choices, required=False, allow_null=True)
    auto_payment_amount = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    auto_payment_date = serializers.IntegerField(min_value=1, max_value=31, required=False, allow_null=True)
    auto_payment_bank_account_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class CreditCardStatementSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditCardStatement
        fields = [
            "id",
            "credit_card",
            "period_start",
            "period_end",
            "previous_balance",
            "purchases_amount",
            "payments_amount",
            "interest_charged",
            "fees_charged",
            "ending_balance",
            "minimum_payment_due",
            "due_date",
            "is_current",
            "created_at",
        ]
        read_only_fields = fields


class GenerateStatementSerializer(serializers.Serializer):
    as_of_date = serializers.DateField()


class CreditCardSummarySerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    name = serializers.CharField()
    balance = serializers.IntegerField()
    credit_limit = serializers.IntegerField(allow_null=True)
    available_credit = serializers.IntegerField(allow_null=True)
    utilization_percent = serializers.DecimalField(max_digits=9, decimal_places=2, allow_null=True)
    status = serializers.CharField()
    payment_category_id = serializers.UUIDField(allow_null=True)
    payment_category_balance = serializers.IntegerField()
    funding_shortfall = serializers.IntegerField()
    current_statement = CreditCardStatementSerializer(allow_null=True)


class CardPaymentSerializer(serializers.Serializer):
    bank_account_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    date = serializers.DateField(required=False, allow_null=True, default=None)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_null=True, default=None)


class InterestAccrualInputSerializer(serializers.Serializer):
    accrual_date = serializers.DateField()


class InterestAccrualSerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    accrual_date = serializers.DateField()
    accrued = serializers.BooleanField()
    amount = serializers.IntegerField()
    reason = serializers.CharField()
    transaction_id = serializers.SerializerMethodField()

    def get_transaction_id(self, obj) -> str | None:
        return str(obj.transaction.id) if obj.transaction is not None else None


class ScheduledPaymentSerializer(serializers.ModelSerializer):
    credit_card_name = serializers.CharField(source="credit_card.name", read_only=True)

    class Meta:
        model = ScheduledPayment
        fields = [
            "id",
            "credit_card",
            "credit_card_name",
            "bank_account",
            "statement",
            "scheduled_date",
            "payment_type",
            "payment_amount",
            "status",
            "actual_amount_paid",
            "transaction",
            "processed_at",
            "failure_reason",
            "created_at",
        ]
        read_only_fields = fields


class ScheduledPaymentInputSerializer(serializers.Serializer):
    """
    Fields:
        bank_account_id: Account the payment is drawn from
        payment_type: minimum, full_balance, fixed_amount or custom
        payment_amount: Required for fixed_amount and custom
        scheduled_date: Defaults to the statement's due date, or today
        statement_id: Statement the payment settles (optional)
    """

    bank_account_id = serializers.UUIDField()
    payment_type = serializers.ChoiceField(choices=PaymentType.choices)
    payment_amount = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    scheduled_date = serializers.DateField(required=False, allow_null=True, default=None)
    statement_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if attrs["payment_type"] in (PaymentType.FIXED_AMOUNT, PaymentType.CUSTOM) and not attrs.get(
            "payment_amount"
        ):
            raise serializers.ValidationError({"payment_amount": "Required for fixed_amount and custom payments."})
        return attrs


class InstallmentSerializer(serializers.ModelSerializer):
    plan_description = serializers.CharField(source="plan.description", read_only=True)
    total_installments = serializers.IntegerField(source="plan.number_of_installments", read_only=True)

    class Meta:
        model = Installment
        fields = [
            "id",
            "plan",
            "plan_description",
            "number",
            "total_installments",
            "due_date",
            "amount",
            "status",
            "processed_date",
            "transaction",
        ]
        read_only_fields = fields


class InstallmentPlanSerializer(serializers.ModelSerializer):
    credit_card_name = serializers.CharField(source="credit_card.name", read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True)
    remaining_amount = serializers.SerializerMethodField()

    class Meta:
        model = InstallmentPlan
        fields = [
            "id",
            "credit_card",
            "credit_card_name",
            "category",
            "category_name",
            "purchase_transaction",
            "purchase_amount",
            "purchase_date",
            "description",
            "number_of_installments",
            "installment_amount",
            "frequency",
            "start_date",
            "status",
            "completed_installments",
            "remaining_amount",
            "notes",
            "created_at",
        ]
        read_only_fields = fields

    def get_remaining_amount(self, obj) -> int:
        return sum(
            installment.amount
            for installment in obj.installments.all()
            if installment.status == InstallmentStatus.SCHEDULED
        )


class InstallmentPlanDetailSerializer(InstallmentPlanSerializer):
    installments = InstallmentSerializer(many=True, read_only=True)

    class Meta(InstallmentPlanSerializer.Meta):
        fields = InstallmentPlanSerializer.Meta.fields + ["installments"]
        read_only_fields = fields


class InstallmentPlanInputSerializer(serializers.Serializer):
    """
    Fields:
        category_id: Spending category the installments are charged to
        purchase_amount: Purchase in cents, put on the card at once
        number_of_installments: 2 to 36
        start_date: First due date (defaults to purchase_date)
    """

    category_id = serializers.UUIDField()
    purchase_amount = serializers.IntegerField(min_value=1)
    purchase_date = serializers.DateField()
    description = serializers.CharField(max_length=255)
    number_of_installments = serializers.IntegerField(min_value=MIN_INSTALLMENTS, max_value=MAX_INSTALLMENTS)
    frequency = serializers.ChoiceField(choices=InstallmentFrequency.choices, default=InstallmentFrequency.MONTHLY)
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_null=True, default=None)


class InstallmentPlanUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    category_id = serializers.UUIDField(required=False)
    remaining_installments = serializers.IntegerField(min_value=1, max_value=MAX_INSTALLMENTS, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No fields to update.")
        return attrs


class ProcessInstallmentSerializer(serializers.Serializer):
    processed_date = serializers.DateField(required=False, allow_null=True, default=None)


class InstallmentScheduleQuerySerializer(serializers.Serializer):
    plan = serializers.UUIDField(required=False, allow_null=True, default=None)
    status = serializers.ChoiceField(choices=InstallmentStatus.choices, required=False, allow_null=True, default=None)
    upcoming = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
