"""
URL configuration for the credit_cards app.

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from credit_cards import views

app_name = "credit_cards"

urlpatterns = [
    path("ledgers/<uuid:ledger_id>/credit-cards/", views.CreditCardCreateView.as_view(), name="card-create"),
    path("credit-cards/<uuid:account_id>/summary/", views.CreditCardSummaryView.as_view(), name="card-summary"),
    path("credit-cards/<uuid:account_id>/limit/", views.CreditCardLimitView.as_view(), name="card-limit"),
    path(
        "credit-cards/<uuid:account_id>/statements/",
        views.StatementListCreateView.as_view(),
        name="card-statements",
    ),
    path("credit-cards/<uuid:account_id>/pay/", views.CardPaymentView.as_view(), name="card-pay"),
    path("credit-cards/<uuid:account_id>/interest/", views.InterestAccrualView.as_view(), name="card-interest"),
    path(
        "credit-cards/<uuid:account_id>/scheduled-payments/",
        views.ScheduledPaymentListCreateView.as_view(),
        name="scheduled-payment-list",
    ),
    path(
        "scheduled-payments/<uuid:payment_id>/cancel/",
        views.ScheduledPaymentCancelView.as_view(),
        name="scheduled-payment-cancel",
    ),
    path(
        "scheduled-payments/<uuid:payment_id>/process/",
        views.ScheduledPaymentProcessView.as_view(),
        name="scheduled-payment-process",
    ),
    path(
        "credit-cards/<uuid:account_id>/installment-plans/",
        views.CardInstallmentPlanListCreateView.as_view(),
        name="card-installment-plans",
    ),
    path(
        "ledgers/<uuid:ledger_id>/installment-plans/",
        views.LedgerInstallmentPlanListView.as_view(),
        name="installment-plan-list",
    ),
    path(
        "ledgers/<uuid:ledger_id>/installments/",
        views.InstallmentScheduleView.as_view(),
        name="installment-schedule",
    ),
    path(
        "installment-plans/<uuid:plan_id>/",
        views.InstallmentPlanDetailView.as_view(),
        name="installment-plan-detail",
    ),
    path(
        "installment-plans/<uuid:plan_id>/cancel/",
        views.InstallmentPlanCancelView.as_view(),
        name="installment-plan-cancel",
    ),
    path(
        "installments/<uuid:installment_id>/process/",
        views.InstallmentProcessView.as_view(),
        name="installment-process",
    ),
]
