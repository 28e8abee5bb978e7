"""
URL configuration for the budgeting app.

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from budgeting import views

app_name = "budgeting"

urlpatterns = [
    # Budget
    path("ledgers/<uuid:ledger_id>/budget/", views.BudgetStatusView.as_view(), name="budget-status"),
    path("ledgers/<uuid:ledger_id>/budget/totals/", views.BudgetTotalsView.as_view(), name="budget-totals"),
    path(
        "ledgers/<uuid:ledger_id>/budget/overspent/",
        views.OverspentCategoriesView.as_view(),
        name="budget-overspent",
    ),
    path("ledgers/<uuid:ledger_id>/budget/assign/", views.AssignView.as_view(), name="budget-assign"),
    path("ledgers/<uuid:ledger_id>/budget/unassign/", views.UnassignView.as_view(), name="budget-unassign"),
    path("ledgers/<uuid:ledger_id>/budget/move/", views.MoveMoneyView.as_view(), name="budget-move"),
    path("ledgers/<uuid:ledger_id>/budget/cover/", views.CoverOverspendingView.as_view(), name="budget-cover"),
    # Goals
    path("ledgers/<uuid:ledger_id>/goals/", views.GoalListCreateView.as_view(), name="goal-list"),
    path("ledgers/<uuid:ledger_id>/goals/fund/", views.FundGoalsView.as_view(), name="goal-fund"),
    path("goals/<uuid:goal_id>/", views.GoalDetailView.as_view(), name="goal-detail"),
]
