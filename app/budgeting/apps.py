"""
Budgeting app configuration.
"""

from django.apps import AppConfig


class BudgetingConfig(AppConfig):
    """Configuration for the budgeting application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "budgeting"
    verbose_name = "Budgeting"
