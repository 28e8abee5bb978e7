"""
Ledger app configuration.

This app provides the double-entry core of a budget:
- Ledgers, accounts and budget categories
- Transactions with reversal, soft delete and audit trail
- Balance queries
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    """Configuration for the ledger application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "Ledger"
