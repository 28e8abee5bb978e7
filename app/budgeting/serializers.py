"""
DRF serializers for the budgeting app.

Status, totals and goal progress are dataclasses computed by the services,
so their serializers are plain Serializers over attributes. Input
serializers only check shapes.
"""

from __future__ import annotations

from rest_framework import serializers

from budgeting.choices import GoalType
from budgeting.models import Goal
from budgeting.periods import Period
from core.exceptions import ValidationError as DomainValidationError
from ledger.serializers import TransactionSerializer


class PeriodField(serializers.Field):
    """A "YYYY-MM" month."""

    default_error_messages = {"invalid": "Period must be YYYY-MM."}

    def to_internal_value(self, data):
        if isinstance(data, Period):
            return data
        try:
            return Period.parse(str(data))
        except DomainValidationError:
            self.fail("invalid")

    def to_representation(self, value):
        return str(value)


class PeriodQuerySerializer(serializers.Serializer):
    period = PeriodField(required=False)

    def validate(self, attrs):
        attrs.setdefault("period", Period.current())
        return attrs


# =============================================================================
# Budget
# =============================================================================


class CategoryStatusSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    name = serializers.CharField()
    group_id = serializers.UUIDField(allow_null=True)
    previous_balance = serializers.IntegerField()
    budgeted = serializers.IntegerField()
    activity = serializers.IntegerField()
    balance = serializers.IntegerField()
    is_overspent = serializers.BooleanField()


class BudgetTotalsSerializer(serializers.Serializer):
    period = serializers.CharField()
    income = serializers.IntegerField()
    unassigned = serializers.IntegerField()
    budgeted = serializers.IntegerField()
    prior_overspending = serializers.IntegerField()
    left_to_budget = serializers.IntegerField()
    available_to_budget = serializers.IntegerField()
    overspent_total = serializers.IntegerField()
    is_overbudgeted = serializers.BooleanField()


class OverspentCategorySerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    name = serializers.CharField()
    balance = serializers.IntegerField()
    overspent_amount = serializers.IntegerField()


class AssignSerializer(serializers.Serializer):
    """
    Input for assigning (or unassigning) money.

    Fields:
        category_id: Target category
        amount: Positive integer cents
        period: Month the assignment counts toward (default: current month)
        allow_overbudget: When false an overage is rejected with 409
    """

    category_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    period = PeriodField(required=False)
    allow_overbudget = serializers.BooleanField(default=True)
    idempotency_key = serializers.CharField(max_length=255, required=False, allow_null=True, default=None)

    def validate(self, attrs):
        attrs.setdefault("period", Period.current())
        return attrs


class UnassignSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    period = PeriodField(required=False)

    def validate(self, attrs):
        attrs.setdefault("period", Period.current())
        return attrs


class MoveMoneySerializer(serializers.Serializer):
    from_category_id = serializers.UUIDField()
    to_category_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    date = serializers.DateField(required=False, allow_null=True, default=None)


class CoverOverspendingSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    source_category_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)


class AssignmentResultSerializer(serializers.Serializer):
    """Assignment transaction plus the overage warning, if any."""

    transaction = TransactionSerializer()
    warning = serializers.SerializerMethodField()

    def get_warning(self, obj) -> dict | None:
        return obj.warning.to_dict() if obj.warning is not None else None


# =============================================================================
# Goals
# =============================================================================


class GoalSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True)

    class Meta:
        model = Goal
        fields = [
            "id",
            "category",
            "category_name",
            "goal_type",
            "target_amount",
            "target_date",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields


class GoalCreateSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    goal_type = serializers.ChoiceField(choices=GoalType.choices)
    target_amount = serializers.IntegerField(min_value=1)
    target_date = serializers.DateField(required=False, allow_null=True, default=None)


class GoalProgressSerializer(serializers.Serializer):
    goal_id = serializers.UUIDField()
    category_id = serializers.UUIDField()
    goal_type = serializers.CharField()
    target_amount = serializers.IntegerField()
    target_date = serializers.DateField(allow_null=True)
    budgeted_this_period = serializers.IntegerField()
    balance = serializers.IntegerField()
    percent_complete = serializers.IntegerField()
    is_complete = serializers.BooleanField()
    needed_this_month = serializers.IntegerField(allow_null=True)
    remaining_amount = serializers.IntegerField(allow_null=True)
    months_remaining = serializers.IntegerField(allow_null=True)
    needed_per_month = serializers.IntegerField(allow_null=True)
    is_on_track = serializers.BooleanField(allow_null=True)


class FundedGoalSerializer(serializers.Serializer):
    goal_id = serializers.UUIDField()
    category_id = serializers.UUIDField()
    amount = serializers.IntegerField()
    transaction_id = serializers.UUIDField()
