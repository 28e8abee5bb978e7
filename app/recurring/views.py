"""
Recurring transaction API views.

This module provides API views for:
- Listing (optionally only due) and creating templates
- Reading, updating and deleting a template
- Materializing or skipping the next occurrence

Security:
    - All endpoints require authentication
    - Every lookup is scoped to the requesting user's ledgers
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.scoping import owned_ledger
from ledger.serializers import TransactionSerializer
from recurring.exceptions import RecurringTransactionNotFound
from recurring.models import RecurringTransaction
from recurring.serializers import (
    MaterializeSerializer,
    RecurringListQuerySerializer,
    RecurringTransactionCreateSerializer,
    RecurringTransactionSerializer,
    RecurringTransactionUpdateSerializer,
)
from recurring.services import RecurringService


def owned_template(user, template_id) -> RecurringTransaction:
    template = RecurringTransaction.objects.filter(id=template_id, ledger__user=user).first()
    if template is None:
        raise RecurringTransactionNotFound(
            f"Recurring transaction {template_id} not found",
            details={"template_id": str(template_id)},
        )
    return template


@extend_schema(tags=["Recurring"])
class RecurringListCreateView(APIView):
    """
    GET: Templates of the ledger; ?due_on_or_before=YYYY-MM-DD lists only due ones
    POST: Create a template

    URL: /api/v1/ledgers/{id}/recurring/
    """

    @extend_schema(
        summary="List recurring transactions",
        parameters=[OpenApiParameter("due_on_or_before", str, description="Only templates due by this date")],
        responses={200: RecurringTransactionSerializer(many=True)},
    )
    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        params = RecurringListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        due = params.validated_data["due_on_or_before"]
        if due is not None:
            templates = RecurringService.due_transactions(budget.id, due)
        else:
            templates = RecurringService.templates(budget.id)
        return Response(RecurringTransactionSerializer(templates, many=True).data)

    @extend_schema(
        summary="Create recurring transaction",
        request=RecurringTransactionCreateSerializer,
        responses={201: RecurringTransactionSerializer},
    )
    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = RecurringTransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        template = RecurringService.create_template(budget.id, **serializer.validated_data)
        return Response(RecurringTransactionSerializer(template).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Recurring"])
class RecurringDetailView(APIView):
    """
    GET/PATCH/DELETE a template.

    URL: /api/v1/recurring/{id}/
    """

    @extend_schema(summary="Get recurring transaction", responses={200: RecurringTransactionSerializer})
    def get(self, request, template_id):
        return Response(RecurringTransactionSerializer(owned_template(request.user, template_id)).data)

    @extend_schema(
        summary="Update recurring transaction",
        request=RecurringTransactionUpdateSerializer,
        responses={200: RecurringTransactionSerializer},
    )
    def patch(self, request, template_id):
        template = owned_template(request.user, template_id)
        serializer = RecurringTransactionUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        template = RecurringService.update_template(template.id, **serializer.validated_data)
        return Response(RecurringTransactionSerializer(template).data)

    @extend_schema(summary="Delete recurring transaction", responses={204: None})
    def delete(self, request, template_id):
        template = owned_template(request.user, template_id)
        RecurringService.delete_template(template.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    tags=["Recurring"],
    summary="Materialize occurrence",
    description="Posts the occurrence due on due_date (default: next_date). Repeating a due date returns the same transaction.",
    request=MaterializeSerializer,
    responses={201: TransactionSerializer},
)
class MaterializeView(APIView):
    """POST /api/v1/recurring/{id}/materialize/"""

    def post(self, request, template_id):
        template = owned_template(request.user, template_id)
        serializer = MaterializeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = RecurringService.materialize(template.id, due_date=serializer.validated_data["due_date"], user=request.user)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Recurring"],
    summary="Skip next occurrence",
    request=None,
    responses={200: RecurringTransactionSerializer},
)
class SkipView(APIView):
    """POST /api/v1/recurring/{id}/skip/"""

    def post(self, request, template_id):
        template = owned_template(request.user, template_id)
        template = RecurringService.skip(template.id, user=request.user)
        return Response(RecurringTransactionSerializer(template).data)
