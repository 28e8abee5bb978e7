"""
Credit cards app configuration.
"""

from django.apps import AppConfig


class CreditCardsConfig(AppConfig):
    """Configuration for the credit cards application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "credit_cards"
    verbose_name = "Credit Cards"
