"""
URL configuration for the recurring app.

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from recurring import views

app_name = "recurring"

urlpatterns = [
    path("ledgers/<uuid:ledger_id>/recurring/", views.RecurringListCreateView.as_view(), name="recurring-list"),
    path("recurring/<uuid:template_id>/", views.RecurringDetailView.as_view(), name="recurring-detail"),
    path(
        "recurring/<uuid:template_id>/materialize/",
        views.MaterializeView.as_view(),
        name="recurring-materialize",
    ),
    path("recurring/<uuid:template_id>/skip/", views.SkipView.as_view(), name="recurring-skip"),
]
