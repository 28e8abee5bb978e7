"""
URL configuration for the ledger app.

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from ledger import views

app_name = "ledger"

urlpatterns = [
    # Ledgers
    path("ledgers/", views.LedgerListCreateView.as_view(), name="ledger-list"),
    path("ledgers/<uuid:ledger_id>/", views.LedgerDetailView.as_view(), name="ledger-detail"),
    path("ledgers/<uuid:ledger_id>/accounts/", views.AccountListCreateView.as_view(), name="account-list"),
    path(
        "ledgers/<uuid:ledger_id>/transactions/",
        views.TransactionListCreateView.as_view(),
        name="transaction-list",
    ),
    path(
        "ledgers/<uuid:ledger_id>/transactions/bulk-delete/",
        views.TransactionBulkDeleteView.as_view(),
        name="transaction-bulk-delete",
    ),
    path("ledgers/<uuid:ledger_id>/transfers/", views.TransferView.as_view(), name="transfer"),
    path("ledgers/<uuid:ledger_id>/history/", views.ActionHistoryListView.as_view(), name="action-history"),
    # Accounts
    path("accounts/<uuid:account_id>/", views.AccountDetailView.as_view(), name="account-detail"),
    path("accounts/<uuid:account_id>/balance/", views.AccountBalanceView.as_view(), name="account-balance"),
    path("accounts/<uuid:account_id>/history/", views.AccountHistoryView.as_view(), name="account-history"),
    # Transactions
    path(
        "transactions/<uuid:transaction_id>/",
        views.TransactionDetailView.as_view(),
        name="transaction-detail",
    ),
    path(
        "transactions/<uuid:transaction_id>/reverse/",
        views.TransactionReverseView.as_view(),
        name="transaction-reverse",
    ),
    # Undo
    path("actions/<uuid:action_id>/undo/", views.UndoActionView.as_view(), name="action-undo"),
]
