"""
Ledger API views.

This module provides API views for:
- Ledger CRUD
- Account CRUD, balances and running-balance history
- Posting, editing, reversing and soft-deleting transactions
- Transfers, action history and undo

Related files:
    - services.py: AccountService, LedgerService
    - balances.py: BalanceService
    - serializers.py: Request/response serialization
    - urls.py: URL routing

Security:
    - All endpoints require authentication
    - Every lookup is scoped to the requesting user's ledgers
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.balances import BalanceService
from ledger.exceptions import TransactionNotFound
from ledger.models import Ledger
from ledger.scoping import owned_account, owned_action, owned_ledger, owned_transaction
from ledger.serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
    ActionHistorySerializer,
    AsOfQuerySerializer,
    BalanceHistoryEntrySerializer,
    BalanceSerializer,
    BulkDeleteSerializer,
    LedgerSerializer,
    TransactionEditSerializer,
    TransactionInputSerializer,
    TransactionSerializer,
    TransferSerializer,
)
from ledger.services import AccountService, LedgerService

# =============================================================================
# Ledgers
# =============================================================================


@extend_schema(tags=["Ledgers"])
class LedgerListCreateView(generics.ListAPIView):
    """
    GET: List the user's ledgers
    POST: Create a ledger with its system categories

    URL: /api/v1/ledgers/
    """

    serializer_class = LedgerSerializer

    def get_queryset(self):
        return Ledger.objects.filter(user=self.request.user)

    @extend_schema(summary="Create ledger", request=LedgerSerializer, responses={201: LedgerSerializer})
    def post(self, request):
        serializer = LedgerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        budget = AccountService.create_ledger(request.user, **serializer.validated_data)
        return Response(LedgerSerializer(budget).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Ledgers"])
class LedgerDetailView(APIView):
    """
    GET/PATCH/DELETE a single ledger.

    URL: /api/v1/ledgers/{id}/

    DELETE removes the ledger and every account and transaction in it.
    """

    @extend_schema(summary="Get ledger", responses={200: LedgerSerializer})
    def get(self, request, ledger_id):
        return Response(LedgerSerializer(owned_ledger(request.user, ledger_id)).data)

    @extend_schema(summary="Update ledger", request=LedgerSerializer, responses={200: LedgerSerializer})
    def patch(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = LedgerSerializer(budget, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        budget = AccountService.update_ledger(budget.id, user=request.user, **serializer.validated_data)
        return Response(LedgerSerializer(budget).data)

    @extend_schema(summary="Delete ledger", responses={204: None})
    def delete(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        AccountService.delete_ledger(budget.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Accounts
# =============================================================================


@extend_schema(tags=["Accounts"])
class AccountListCreateView(APIView):
    """
    GET: List accounts and categories of a ledger
    POST: Create an account, category or category group

    URL: /api/v1/ledgers/{id}/accounts/
    """

    @extend_schema(summary="List accounts", responses={200: AccountSerializer(many=True)})
    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        accounts = budget.accounts.all()
        return Response(AccountSerializer(accounts, many=True).data)

    @extend_schema(summary="Create account", request=AccountCreateSerializer, responses={201: AccountSerializer})
    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = AccountService.create_account(budget.id, user=request.user, **serializer.validated_data)
        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Accounts"])
class AccountDetailView(APIView):
    """
    GET/PATCH/DELETE a single account.

    URL: /api/v1/accounts/{id}/

    DELETE is rejected with 409 while any transaction references the account.
    """

    @extend_schema(summary="Get account", responses={200: AccountSerializer})
    def get(self, request, account_id):
        return Response(AccountSerializer(owned_account(request.user, account_id)).data)

    @extend_schema(summary="Update account", request=AccountUpdateSerializer, responses={200: AccountSerializer})
    def patch(self, request, account_id):
        account = owned_account(request.user, account_id)
        serializer = AccountUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = AccountService.update_account(account.id, user=request.user, **serializer.validated_data)
        return Response(AccountSerializer(account).data)

    @extend_schema(summary="Delete account", responses={204: None})
    def delete(self, request, account_id):
        account = owned_account(request.user, account_id)
        AccountService.delete_account(account.id, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    tags=["Accounts"],
    summary="Account balance",
    parameters=[OpenApiParameter("as_of", str, description="Inclusive date bound (YYYY-MM-DD)")],
    responses={200: BalanceSerializer},
)
class AccountBalanceView(APIView):
    """
    GET /api/v1/accounts/{id}/balance/?as_of=YYYY-MM-DD
    """

    def get(self, request, account_id):
        account = owned_account(request.user, account_id)
        params = AsOfQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        as_of = params.validated_data["as_of"]
        return Response(
            BalanceSerializer(
                {
                    "account_id": account.id,
                    "balance": BalanceService.balance(account.id, as_of=as_of),
                    "as_of": as_of,
                }
            ).data
        )


@extend_schema(
    tags=["Accounts"],
    summary="Running balance history",
    parameters=[
        OpenApiParameter("limit", int, description="Page size (default 50)"),
        OpenApiParameter("offset", int, description="Rows to skip (default 0)"),
    ],
    responses={200: BalanceHistoryEntrySerializer(many=True)},
)
class AccountHistoryView(APIView):
    """
    GET /api/v1/accounts/{id}/history/?limit=50&offset=0

    Most recent first; running_balance is the balance right after each row.
    """

    def get(self, request, account_id):
        account = owned_account(request.user, account_id)
        try:
            limit = min(max(int(request.query_params.get("limit", 50)), 1), 500)
            offset = max(int(request.query_params.get("offset", 0)), 0)
        except (TypeError, ValueError):
            return Response(
                {"detail": "limit and offset must be integers"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        entries = BalanceService.history(account.id, limit=limit, offset=offset)
        return Response(BalanceHistoryEntrySerializer(entries, many=True).data)


# =============================================================================
# Transactions
# =============================================================================


@extend_schema(
    tags=["Transactions"],
    parameters=[
        OpenApiParameter("account", str, description="Only transactions touching this account"),
        OpenApiParameter("audit", bool, description="Include deleted, reversed and reversal rows"),
    ],
)
class TransactionListCreateView(generics.ListAPIView):
    """
    GET: Register (or ?audit=true for every row)
    POST: Post a transaction

    URL: /api/v1/ledgers/{id}/transactions/
    """

    serializer_class = TransactionSerializer

    def get_queryset(self):
        budget = owned_ledger(self.request.user, self.kwargs["ledger_id"])
        account_id = self.request.query_params.get("account")
        if self.request.query_params.get("audit") in ("1", "true", "True"):
            return LedgerService.audit_transactions(budget.id, account_id=account_id)
        return LedgerService.current_transactions(budget.id, account_id=account_id)

    @extend_schema(
        summary="Post transaction",
        request=TransactionInputSerializer,
        responses={201: TransactionSerializer},
    )
    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = TransactionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = LedgerService.post(ledger_id=budget.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Transactions"])
class TransactionDetailView(APIView):
    """
    GET: Transaction detail
    PATCH: Edit (reverse and repost)
    DELETE: Soft delete

    URL: /api/v1/transactions/{id}/
    """

    @extend_schema(summary="Get transaction", responses={200: TransactionSerializer})
    def get(self, request, transaction_id):
        return Response(TransactionSerializer(owned_transaction(request.user, transaction_id)).data)

    @extend_schema(
        summary="Edit transaction",
        description="Reverses the original and posts the corrected transaction.",
        request=TransactionEditSerializer,
        responses={200: TransactionSerializer},
    )
    def patch(self, request, transaction_id):
        txn = owned_transaction(request.user, transaction_id)
        serializer = TransactionEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        corrected = LedgerService.edit(txn.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(corrected).data)

    @extend_schema(summary="Soft-delete transaction", responses={204: None})
    def delete(self, request, transaction_id):
        txn = owned_transaction(request.user, transaction_id)
        LedgerService.soft_delete(txn.id, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Transactions"], summary="Reverse transaction", request=None, responses={201: TransactionSerializer})
class TransactionReverseView(APIView):
    """
    POST /api/v1/transactions/{id}/reverse/

    Returns the reversal transaction.
    """

    def post(self, request, transaction_id):
        txn = owned_transaction(request.user, transaction_id)
        reversal = LedgerService.reverse(txn.id, user=request.user)
        return Response(TransactionSerializer(reversal).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Transactions"], summary="Bulk soft-delete", request=BulkDeleteSerializer)
class TransactionBulkDeleteView(APIView):
    """
    POST /api/v1/ledgers/{id}/transactions/bulk-delete/

    All listed transactions are deleted, or none are.
    """

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data["transaction_ids"]
        for transaction_id in ids:
            if owned_transaction(request.user, transaction_id).ledger_id != budget.id:
                raise TransactionNotFound(
                    f"Transaction {transaction_id} not found",
                    details={"transaction_id": str(transaction_id)},
                )
        deleted = LedgerService.bulk_soft_delete(ids, user=request.user)
        return Response({"deleted": deleted})


@extend_schema(tags=["Transactions"], summary="Transfer", request=TransferSerializer, responses={201: TransactionSerializer})
class TransferView(APIView):
    """
    POST /api/v1/ledgers/{id}/transfers/

    Moves money between two bank or card accounts.
    """

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = TransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = LedgerService.transfer(ledger_id=budget.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Action History & Undo
# =============================================================================


@extend_schema(tags=["History"], summary="Action history")
class ActionHistoryListView(generics.ListAPIView):
    """
    GET /api/v1/ledgers/{id}/history/

    Most recent first.
    """

    serializer_class = ActionHistorySerializer

    def get_queryset(self):
        budget = owned_ledger(self.request.user, self.kwargs["ledger_id"])
        return budget.action_history.order_by("-created_at")


@extend_schema(tags=["History"], summary="Undo action", request=None, responses={201: TransactionSerializer})
class UndoActionView(APIView):
    """
    POST /api/v1/actions/{id}/undo/

    Reverses the transaction created by the logged action.
    """

    def post(self, request, action_id):
        action = owned_action(request.user, action_id)
        reversal = LedgerService.undo(action.id, user=request.user)
        return Response(TransactionSerializer(reversal).data, status=status.HTTP_201_CREATED)
