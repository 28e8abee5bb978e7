"""
Budgeting API views.

This module provides API views for:
- Budget grid, totals and overspent categories for a period
- Assigning, unassigning and moving money between categories
- Covering overspending
- Goal CRUD, progress and quick funding

Related files:
    - services.py: EnvelopeService
    - goals.py: GoalService
    - serializers.py: Request/response serialization

Security:
    - All endpoints require authentication
    - Every lookup is scoped to the requesting user's ledgers
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from budgeting.goals import GoalService
from budgeting.models import Goal
from budgeting.serializers import (
    AssignmentResultSerializer,
    AssignSerializer,
    BudgetTotalsSerializer,
    CategoryStatusSerializer,
    CoverOverspendingSerializer,
    FundedGoalSerializer,
    GoalCreateSerializer,
    GoalProgressSerializer,
    GoalSerializer,
    MoveMoneySerializer,
    OverspentCategorySerializer,
    PeriodQuerySerializer,
    UnassignSerializer,
)
from budgeting.services import EnvelopeService
from core.exceptions import NotFoundError
from ledger.scoping import owned_ledger
from ledger.serializers import TransactionSerializer

PERIOD_PARAMETER = OpenApiParameter("period", str, description="Month as YYYY-MM (default: current month)")


def owned_goal(user, goal_id) -> Goal:
    goal = Goal.objects.select_related("category").filter(id=goal_id, category__ledger__user=user).first()
    if goal is None:
        raise NotFoundError(
            f"Goal {goal_id} not found",
            error_code="GOAL_NOT_FOUND",
            details={"goal_id": str(goal_id)},
        )
    return goal


def _period(request):
    params = PeriodQuerySerializer(data=request.query_params)
    params.is_valid(raise_exception=True)
    return params.validated_data["period"]


# =============================================================================
# Budget
# =============================================================================


@extend_schema(
    tags=["Budget"],
    summary="Budget status",
    parameters=[PERIOD_PARAMETER],
    responses={200: CategoryStatusSerializer(many=True)},
)
class BudgetStatusView(APIView):
    """
    GET /api/v1/ledgers/{id}/budget/?period=YYYY-MM

    Budgeted, activity and rolling balance per category.
    """

    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        rows = EnvelopeService.budget_status(budget.id, _period(request))
        return Response(CategoryStatusSerializer(rows, many=True).data)


@extend_schema(
    tags=["Budget"],
    summary="Budget totals",
    parameters=[PERIOD_PARAMETER],
    responses={200: BudgetTotalsSerializer},
)
class BudgetTotalsView(APIView):
    """GET /api/v1/ledgers/{id}/budget/totals/?period=YYYY-MM"""

    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        return Response(BudgetTotalsSerializer(EnvelopeService.totals(budget.id, _period(request))).data)


@extend_schema(
    tags=["Budget"],
    summary="Overspent categories",
    parameters=[PERIOD_PARAMETER],
    responses={200: OverspentCategorySerializer(many=True)},
)
class OverspentCategoriesView(APIView):
    """GET /api/v1/ledgers/{id}/budget/overspent/?period=YYYY-MM"""

    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        rows = EnvelopeService.overspent_categories(budget.id, _period(request))
        return Response(OverspentCategorySerializer(rows, many=True).data)


@extend_schema(
    tags=["Budget"],
    summary="Assign money",
    description="Assigning more than is available succeeds with a warning unless allow_overbudget is false.",
    request=AssignSerializer,
    responses={201: AssignmentResultSerializer},
)
class AssignView(APIView):
    """POST /api/v1/ledgers/{id}/budget/assign/"""

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = EnvelopeService.assign(budget.id, user=request.user, **serializer.validated_data)
        return Response(AssignmentResultSerializer(result).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Budget"], summary="Unassign money", request=UnassignSerializer, responses={201: TransactionSerializer})
class UnassignView(APIView):
    """POST /api/v1/ledgers/{id}/budget/unassign/"""

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = UnassignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = EnvelopeService.unassign(budget.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Budget"], summary="Move money", request=MoveMoneySerializer, responses={201: TransactionSerializer})
class MoveMoneyView(APIView):
    """POST /api/v1/ledgers/{id}/budget/move/"""

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = MoveMoneySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = EnvelopeService.move_money(budget.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Budget"],
    summary="Cover overspending",
    request=CoverOverspendingSerializer,
    responses={201: TransactionSerializer},
)
class CoverOverspendingView(APIView):
    """
    POST /api/v1/ledgers/{id}/budget/cover/

    Omitting amount covers the full overspent balance.
    """

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = CoverOverspendingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = EnvelopeService.cover_overspending(budget.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Goals
# =============================================================================


@extend_schema(tags=["Goals"])
class GoalListCreateView(APIView):
    """
    GET: Progress of every active goal for ?period=YYYY-MM
    POST: Create a goal (replaces the category's active goal)

    URL: /api/v1/ledgers/{id}/goals/
    """

    @extend_schema(
        summary="Goal progress",
        parameters=[PERIOD_PARAMETER],
        responses={200: GoalProgressSerializer(many=True)},
    )
    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        rows = GoalService.ledger_progress(budget.id, _period(request))
        return Response(GoalProgressSerializer(rows, many=True).data)

    @extend_schema(summary="Create goal", request=GoalCreateSerializer, responses={201: GoalSerializer})
    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = GoalCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        goal = GoalService.create_goal(budget.id, **serializer.validated_data)
        return Response(GoalSerializer(goal).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Goals"],
    summary="Fund underfunded goals",
    parameters=[PERIOD_PARAMETER],
    request=None,
    responses={201: FundedGoalSerializer(many=True)},
)
class FundGoalsView(APIView):
    """
    POST /api/v1/ledgers/{id}/goals/fund/?period=YYYY-MM

    Assigns each goal's need, oldest first, until available money runs out.
    """

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        funded = GoalService.fund_underfunded_goals(budget.id, _period(request), user=request.user)
        return Response(FundedGoalSerializer(funded, many=True).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Goals"])
class GoalDetailView(APIView):
    """
    GET/DELETE a single goal.

    URL: /api/v1/goals/{id}/
    """

    @extend_schema(summary="Get goal", responses={200: GoalSerializer})
    def get(self, request, goal_id):
        return Response(GoalSerializer(owned_goal(request.user, goal_id)).data)

    @extend_schema(summary="Delete goal", responses={204: None})
    def delete(self, request, goal_id):
        goal = owned_goal(request.user, goal_id)
        GoalService.delete_goal(goal.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
