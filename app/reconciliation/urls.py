"""
URL configuration for the reconciliation app.

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from reconciliation import views

app_name = "reconciliation"

urlpatterns = [
    path("accounts/<uuid:account_id>/reconcile/", views.ReconcileView.as_view(), name="reconcile"),
    path(
        "accounts/<uuid:account_id>/reconciliations/",
        views.ReconciliationHistoryView.as_view(),
        name="reconciliation-history",
    ),
    path("accounts/<uuid:account_id>/uncleared/", views.UnclearedTransactionsView.as_view(), name="uncleared"),
    path(
        "transactions/<uuid:transaction_id>/toggle-cleared/",
        views.ToggleClearedView.as_view(),
        name="toggle-cleared",
    ),
]
