"""
Recurring transactions app configuration.
"""

from django.apps import AppConfig


class RecurringConfig(AppConfig):
    """Configuration for the recurring transactions application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "recurring"
    verbose_name = "Recurring Transactions"
