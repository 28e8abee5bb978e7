"""
Credit card API views.

This module provides API views for:
- Creating credit cards (with their CC Payment category)
- Card summary: balance, limit, utilization and payment funding
- Limit configuration
- Statements, interest accrual and payments
- Scheduled payments
- Installment plans and their schedule

Related files:
    - services.py: CreditCardService
    - installments.py: InstallmentService
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

from credit_cards.exceptions import InstallmentNotFound, InstallmentPlanNotFound, ScheduledPaymentNotFound
from credit_cards.installments import InstallmentService
from credit_cards.models import Installment, InstallmentPlan, ScheduledPayment
from credit_cards.serializers import (
    CardPaymentSerializer,
    CreditCardCreateSerializer,
    CreditCardLimitInputSerializer,
    CreditCardLimitSerializer,
    CreditCardStatementSerializer,
    CreditCardSummarySerializer,
    GenerateStatementSerializer,
    InstallmentPlanDetailSerializer,
    InstallmentPlanInputSerializer,
    InstallmentPlanSerializer,
    InstallmentPlanUpdateSerializer,
    InstallmentScheduleQuerySerializer,
    InstallmentSerializer,
    InterestAccrualInputSerializer,
    InterestAccrualSerializer,
    ProcessInstallmentSerializer,
    ScheduledPaymentInputSerializer,
    ScheduledPaymentSerializer,
)
from credit_cards.services import CreditCardService
from ledger.scoping import owned_account, owned_ledger
from ledger.serializers import AccountSerializer, TransactionSerializer
from ledger.services import AccountService


def owned_card(user, account_id):
    account = owned_account(user, account_id)
    return CreditCardService.get_card(account.id)


def owned_scheduled_payment(user, payment_id) -> ScheduledPayment:
    payment = ScheduledPayment.objects.filter(id=payment_id, credit_card__ledger__user=user).first()
    if payment is None:
        raise ScheduledPaymentNotFound(
            f"Scheduled payment {payment_id} not found",
            details={"payment_id": str(payment_id)},
        )
    return payment


def owned_installment_plan(user, plan_id) -> InstallmentPlan:
    if not InstallmentPlan.objects.filter(id=plan_id, credit_card__ledger__user=user).exists():
        raise InstallmentPlanNotFound(
            f"Installment plan {plan_id} not found",
            details={"plan_id": str(plan_id)},
        )
    return InstallmentService.get_plan(plan_id)


def owned_installment(user, installment_id) -> Installment:
    installment = Installment.objects.filter(id=installment_id, plan__credit_card__ledger__user=user).first()
    if installment is None:
        raise InstallmentNotFound(
            f"Installment {installment_id} not found",
            details={"installment_id": str(installment_id)},
        )
    return installment


@extend_schema(
    tags=["Credit Cards"],
    summary="Create a credit card",
    description="Creates the card account and its paired CC Payment category.",
    request=CreditCardCreateSerializer,
    responses={201: AccountSerializer},
)
class CreditCardCreateView(APIView):
    """POST /api/v1/ledgers/{id}/credit-cards/"""

    def post(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        serializer = CreditCardCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        card = AccountService.create_credit_card(budget.id, serializer.validated_data["name"], user=request.user)
        return Response(AccountSerializer(card).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Credit Cards"], summary="Card summary", responses={200: CreditCardSummarySerializer})
class CreditCardSummaryView(APIView):
    """GET /api/v1/credit-cards/{id}/summary/"""

    def get(self, request, account_id):
        card = owned_card(request.user, account_id)
        return Response(CreditCardSummarySerializer(CreditCardService.card_summary(card.id)).data)


@extend_schema(tags=["Credit Cards"])
class CreditCardLimitView(APIView):
    """
    GET: Active limit configuration
    PUT: Replace the limit configuration
    DELETE: Remove the limit

    URL: /api/v1/credit-cards/{id}/limit/
    """

    @extend_schema(summary="Get card limit", responses={200: CreditCardLimitSerializer})
    def get(self, request, account_id):
        card = owned_card(request.user, account_id)
        limit = CreditCardService.active_limit(card.id)
        if limit is None:
            return Response({"credit_limit": None})
        return Response(CreditCardLimitSerializer(limit).data)

    @extend_schema(
        summary="Configure card limit",
        request=CreditCardLimitInputSerializer,
        responses={200: CreditCardLimitSerializer},
    )
    def put(self, request, account_id):
        card = owned_card(request.user, account_id)
        serializer = CreditCardLimitInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        limit = CreditCardService.configure_limit(card.id, user=request.user, **serializer.validated_data)
        return Response(CreditCardLimitSerializer(limit).data)

    @extend_schema(summary="Remove card limit", responses={204: None})
    def delete(self, request, account_id):
        card = owned_card(request.user, account_id)
        CreditCardService.remove_limit(card.id, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Credit Cards"])
class StatementListCreateView(APIView):
    """
    GET: Statements, newest first
    POST: Close the cycle and generate a statement ending on as_of_date

    URL: /api/v1/credit-cards/{id}/statements/
    """

    @extend_schema(summary="List statements", responses={200: CreditCardStatementSerializer(many=True)})
    def get(self, request, account_id):
        card = owned_card(request.user, account_id)
        statements = CreditCardService.statements(card.id)
        return Response(CreditCardStatementSerializer(statements, many=True).data)

    @extend_schema(
        summary="Generate statement",
        request=GenerateStatementSerializer,
        responses={201: CreditCardStatementSerializer},
    )
    def post(self, request, account_id):
        card = owned_card(request.user, account_id)
        serializer = GenerateStatementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        statement = CreditCardService.generate_statement(
            card.id, serializer.validated_data["as_of_date"], user=request.user
        )
        return Response(CreditCardStatementSerializer(statement).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Credit Cards"],
    summary="Pay credit card",
    request=CardPaymentSerializer,
    responses={201: TransactionSerializer},
)
class CardPaymentView(APIView):
    """POST /api/v1/credit-cards/{id}/pay/"""

    def post(self, request, account_id):
        card = owned_card(request.user, account_id)
        serializer = CardPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = CreditCardService.pay_credit_card(card.id, user=request.user, **serializer.validated_data)
        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Credit Cards"],
    summary="Accrue interest",
    description="Runs one accrual for the given day; a day already charged returns the existing charge.",
    request=InterestAccrualInputSerializer,
    responses={200: InterestAccrualSerializer},
)
class InterestAccrualView(APIView):
    """POST /api/v1/credit-cards/{id}/interest/"""

    def post(self, request, account_id):
        card = owned_card(request.user, account_id)
        serializer = InterestAccrualInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = CreditCardService.accrue_interest(card.id, serializer.validated_data["accrual_date"])
        return Response(InterestAccrualSerializer(result).data)


@extend_schema(tags=["Scheduled Payments"])
class ScheduledPaymentListCreateView(APIView):
    """
    GET: Scheduled payments of the card
    POST: Schedule a payment

    URL: /api/v1/credit-cards/{id}/scheduled-payments/
    """

    @extend_schema(summary="List scheduled payments", responses={200: ScheduledPaymentSerializer(many=True)})
    def get(self, request, account_id):
        card = owned_card(request.user, account_id)
        payments = ScheduledPayment.objects.filter(credit_card=card).select_related("credit_card")
        return Response(ScheduledPaymentSerializer(payments, many=True).data)

    @extend_schema(
        summary="Schedule payment",
        request=ScheduledPaymentInputSerializer,
        responses={201: ScheduledPaymentSerializer},
    )
    def post(self, request, account_id):
        card = owned_card(request.user, account_id)
        serializer = ScheduledPaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = CreditCardService.schedule_payment(card.id, **serializer.validated_data)
        return Response(ScheduledPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Scheduled Payments"], summary="Cancel scheduled payment", responses={200: ScheduledPaymentSerializer})
class ScheduledPaymentCancelView(APIView):
    """POST /api/v1/scheduled-payments/{id}/cancel/"""

    def post(self, request, payment_id):
        payment = owned_scheduled_payment(request.user, payment_id)
        payment = CreditCardService.cancel_scheduled_payment(payment.id)
        return Response(ScheduledPaymentSerializer(payment).data)


@extend_schema(
    tags=["Scheduled Payments"],
    summary="Process scheduled payment now",
    description="Posts the payment immediately. A failed posting is reported on the payment, not as an error.",
    responses={200: ScheduledPaymentSerializer},
)
class ScheduledPaymentProcessView(APIView):
    """POST /api/v1/scheduled-payments/{id}/process/"""

    def post(self, request, payment_id):
        payment = owned_scheduled_payment(request.user, payment_id)
        payment = CreditCardService.process_scheduled_payment(payment.id)
        return Response(ScheduledPaymentSerializer(payment).data)


@extend_schema(tags=["Installments"])
class CardInstallmentPlanListCreateView(APIView):
    """
    GET: Installment plans of the card
    POST: Put a purchase on the card as an installment plan

    URL: /api/v1/credit-cards/{id}/installment-plans/
    """

    @extend_schema(summary="List card installment plans", responses={200: InstallmentPlanSerializer(many=True)})
    def get(self, request, account_id):
        card = owned_card(request.user, account_id)
        plans = InstallmentService.plans(card.ledger_id, account_id=card.id).prefetch_related("installments")
        return Response(InstallmentPlanSerializer(plans, many=True).data)

    @extend_schema(
        summary="Create installment plan",
        description="Posts the full purchase to the card and schedules the installments.",
        request=InstallmentPlanInputSerializer,
        responses={201: InstallmentPlanDetailSerializer},
    )
    def post(self, request, account_id):
        card = owned_card(request.user, account_id)
        serializer = InstallmentPlanInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        plan = InstallmentService.create_plan(card.id, user=request.user, **serializer.validated_data)
        return Response(InstallmentPlanDetailSerializer(plan).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Installments"], summary="List ledger installment plans")
class LedgerInstallmentPlanListView(APIView):
    """GET /api/v1/ledgers/{id}/installment-plans/"""

    @extend_schema(responses={200: InstallmentPlanSerializer(many=True)})
    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        plans = InstallmentService.plans(budget.id).prefetch_related("installments")
        return Response(InstallmentPlanSerializer(plans, many=True).data)


@extend_schema(tags=["Installments"])
class InstallmentPlanDetailView(APIView):
    """
    GET: Plan with its installments
    PATCH: Edit description, notes, category, or re-split the remaining installments

    URL: /api/v1/installment-plans/{id}/
    """

    @extend_schema(summary="Get installment plan", responses={200: InstallmentPlanDetailSerializer})
    def get(self, request, plan_id):
        plan = owned_installment_plan(request.user, plan_id)
        return Response(InstallmentPlanDetailSerializer(plan).data)

    @extend_schema(
        summary="Update installment plan",
        request=InstallmentPlanUpdateSerializer,
        responses={200: InstallmentPlanDetailSerializer},
    )
    def patch(self, request, plan_id):
        plan = owned_installment_plan(request.user, plan_id)
        serializer = InstallmentPlanUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        plan = InstallmentService.update_plan(plan.id, user=request.user, **serializer.validated_data)
        return Response(InstallmentPlanDetailSerializer(plan).data)


@extend_schema(
    tags=["Installments"],
    summary="Cancel installment plan",
    description="Only plans without processed installments; the purchase is reversed.",
    responses={200: InstallmentPlanDetailSerializer},
)
class InstallmentPlanCancelView(APIView):
    """POST /api/v1/installment-plans/{id}/cancel/"""

    def post(self, request, plan_id):
        plan = owned_installment_plan(request.user, plan_id)
        plan = InstallmentService.cancel_plan(plan.id, user=request.user)
        return Response(InstallmentPlanDetailSerializer(plan).data)


@extend_schema(
    tags=["Installments"],
    summary="Installment schedule",
    parameters=[
        OpenApiParameter("plan", str, description="Only this plan's installments"),
        OpenApiParameter("status", str, description="scheduled, processed or cancelled"),
        OpenApiParameter("upcoming", int, description="Only scheduled installments due within this many days"),
    ],
    responses={200: InstallmentSerializer(many=True)},
)
class InstallmentScheduleView(APIView):
    """GET /api/v1/ledgers/{id}/installments/"""

    def get(self, request, ledger_id):
        budget = owned_ledger(request.user, ledger_id)
        params = InstallmentScheduleQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        installments = InstallmentService.schedule(
            budget.id,
            plan_id=params.validated_data["plan"],
            status=params.validated_data["status"],
            upcoming_days=params.validated_data["upcoming"],
        )
        return Response(InstallmentSerializer(installments, many=True).data)


@extend_schema(
    tags=["Installments"],
    summary="Process installment now",
    request=ProcessInstallmentSerializer,
    responses={200: InstallmentSerializer},
)
class InstallmentProcessView(APIView):
    """POST /api/v1/installments/{id}/process/"""

    def post(self, request, installment_id):
        installment = owned_installment(request.user, installment_id)
        serializer = ProcessInstallmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        installment = InstallmentService.process_installment(
            installment.id,
            processed_date=serializer.validated_data["processed_date"],
            user=request.user,
        )
        return Response(InstallmentSerializer(installment).data)
