"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/            - Obtain JWT pair (simplejwt)
    /api/v1/auth/token/refresh/    - Refresh JWT access token
    /api/v1/                       - Ledger endpoints
        ledgers/                   - Ledger list/create
        ledgers/{id}/              - Ledger detail/update/delete
        ledgers/{id}/accounts/     - Account list/create
        ledgers/{id}/transactions/ - Transaction list/post
        ledgers/{id}/transfers/    - Account-to-account transfer
        ledgers/{id}/history/      - Action history
        accounts/{id}/             - Account detail/update/delete
        accounts/{id}/balance/     - Account balance
        accounts/{id}/history/     - Running balance history
        transactions/{id}/         - Transaction detail / soft delete
        transactions/{id}/reverse/ - Reverse a transaction
        actions/{id}/undo/         - Undo a logged action
    /api/v1/                       - Budgeting endpoints
        ledgers/{id}/budget/       - Budget status for ?period=YYYY-MM
        ledgers/{id}/budget/totals/    - Budget totals
        ledgers/{id}/budget/assign/    - Assign money to a category
        ledgers/{id}/budget/unassign/  - Return money to Income
        ledgers/{id}/budget/move/      - Move money between categories
        ledgers/{id}/budget/cover/     - Cover overspending
        ledgers/{id}/budget/overspent/ - Overspent categories
        ledgers/{id}/goals/        - Goal list/create (with progress)
        ledgers/{id}/goals/fund/   - Fund underfunded goals
        goals/{id}/                - Goal detail/delete
    /api/v1/                       - Credit card endpoints
        ledgers/{id}/credit-cards/ - Create card with payment category
        credit-cards/{id}/summary/ - Balance, utilization, shortfall
        credit-cards/{id}/limit/   - Active limit configuration
        credit-cards/{id}/statements/ - Statement list/generate
        credit-cards/{id}/pay/     - Pay the card from a bank account
        credit-cards/{id}/interest/ - Accrue interest for a day
        credit-cards/{id}/scheduled-payments/ - Scheduled payment list/create
        scheduled-payments/{id}/cancel/  - Cancel a scheduled payment
        scheduled-payments/{id}/process/ - Execute a scheduled payment now
    /api/v1/                       - Reconciliation endpoints
        accounts/{id}/reconcile/   - Reconcile against a statement
        accounts/{id}/reconciliations/ - Reconciliation history
        accounts/{id}/uncleared/   - Uncleared transactions
        transactions/{id}/toggle-cleared/ - Toggle cleared flag
    /api/v1/                       - Recurring endpoints
        ledgers/{id}/recurring/    - Template list/create
        recurring/{id}/            - Template detail/update/delete
        recurring/{id}/materialize/ - Post the due occurrence
        recurring/{id}/skip/       - Skip the due occurrence

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Ledger, accounts, transactions
    path("", include("ledger.urls")),
    # Budget status, assignments, goals
    path("", include("budgeting.urls")),
    # Credit cards
    path("", include("credit_cards.urls")),
    # Reconciliation
    path("", include("reconciliation.urls")),
    # Recurring transactions
    path("", include("recurring.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Envelope Ledger Admin"
admin.site.site_title = "Envelope Ledger"
admin.site.index_title = "Ledger administration"
