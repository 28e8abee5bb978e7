"""
Reconciliation API views.

Endpoints:
    POST /api/v1/accounts/{id}/reconcile/
    GET  /api/v1/accounts/{id}/reconciliations/
    GET  /api/v1/accounts/{id}/uncleared/
    POST /api/v1/transactions/{id}/toggle-cleared/

Every lookup is scoped to the requesting user's ledgers.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.scoping import owned_account, owned_transaction
from ledger.serializers import TransactionSerializer
from reconciliation.serializers import ReconcileSerializer, ReconciliationSerializer, UnclearedSerializer
from reconciliation.services import ReconciliationService


@extend_schema(
    tags=["Reconciliation"],
    summary="Reconcile account",
    description=(
        "Marks the listed transactions reconciled and books any difference between the "
        "statement and the ledger as one adjustment against Unassigned."
    ),
    request=ReconcileSerializer,
    responses={201: ReconciliationSerializer},
)
class ReconcileView(APIView):
    def post(self, request, account_id):
        account = owned_account(request.user, account_id)
        serializer = ReconcileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ReconciliationService.reconcile(account.id, user=request.user, **serializer.validated_data)
        return Response(ReconciliationSerializer(result.reconciliation).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Reconciliation"], summary="Reconciliation history", responses={200: ReconciliationSerializer(many=True)})
class ReconciliationHistoryView(APIView):
    def get(self, request, account_id):
        account = owned_account(request.user, account_id)
        return Response(ReconciliationSerializer(ReconciliationService.history(account.id), many=True).data)


@extend_schema(tags=["Reconciliation"], summary="Uncleared transactions", responses={200: UnclearedSerializer})
class UnclearedTransactionsView(APIView):
    def get(self, request, account_id):
        account = owned_account(request.user, account_id)
        payload = {
            "cleared_balance": ReconciliationService.cleared_balance(account.id),
            "transactions": ReconciliationService.uncleared_transactions(account.id),
        }
        return Response(UnclearedSerializer(payload).data)


@extend_schema(tags=["Reconciliation"], summary="Toggle cleared", request=None, responses={200: TransactionSerializer})
class ToggleClearedView(APIView):
    def post(self, request, transaction_id):
        txn = owned_transaction(request.user, transaction_id)
        txn = ReconciliationService.toggle_cleared(txn.id, user=request.user)
        return Response(TransactionSerializer(txn).data)
