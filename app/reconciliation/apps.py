"""
Reconciliation app configuration.
"""

from django.apps import AppConfig


class ReconciliationConfig(AppConfig):
    """Configuration for the reconciliation application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "reconciliation"
    verbose_name = "Reconciliation"
