"""
Django admin configuration for ledger models.

Ledger rows are read-only in the admin: transactions and the action
history are immutable, and accounts must change through AccountService so
the system categories and card pairings stay consistent.

Key features:
- Transaction and ActionHistory have no add/change/delete permissions
- Balance displayed on the Account list view
- Useful filters and search capabilities
"""

from django.contrib import admin

from .models import Account, ActionHistory, Ledger, Transaction


def format_cents(cents: int) -> str:
    return f"${cents / 100:,.2f}"


class ReadOnlyAdminMixin:
    """Disable every write through the admin."""

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Ledger)
class LedgerAdmin(admin.ModelAdmin):
    """
    Admin configuration for Ledger.

    Name and description stay editable; deleting a ledger goes through
    AccountService.delete_ledger.
    """

    list_display = ["id", "name", "user", "created_at"]
    search_fields = ["id", "name", "user__username", "user__email"]
    readonly_fields = ["id", "user", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Account)
class AccountAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for Account.

    Balance is computed dynamically from related transactions.
    """

    list_display = [
        "name",
        "ledger",
        "type",
        "kind",
        "system_role",
        "balance_display",
        "is_active",
    ]
    list_filter = ["type", "kind", "system_role", "is_active"]
    search_fields = ["id", "name", "ledger__name"]
    readonly_fields = ["id", "internal_type", "created_at", "balance_display"]
    ordering = ["ledger", "sort_order", "name"]

    def balance_display(self, obj: Account) -> str:
        """
        Display the account balance formatted as currency.

        This performs a database query to calculate the balance
        from related transactions.
        """
        return format_cents(obj.get_balance())

    balance_display.short_description = "Balance"


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for Transaction.

    Corrections are made with reversals through LedgerService, never by
    editing rows.
    """

    list_display = [
        "id",
        "date",
        "kind",
        "status",
        "amount_display",
        "debit_account",
        "credit_account",
        "cleared",
        "reconciled",
    ]
    list_filter = ["kind", "status", "cleared", "reconciled"]
    search_fields = ["id", "idempotency_key", "description"]
    date_hierarchy = "date"
    ordering = ["-date", "-created_at"]

    fieldsets = (
        (
            "Posting",
            {
                "fields": ("id", "ledger", "date", "description", "amount", "kind", "status"),
            },
        ),
        (
            "Accounts",
            {
                "fields": ("debit_account", "credit_account"),
            },
        ),
        (
            "Links",
            {
                "fields": ("reversal_of", "linked_to", "idempotency_key"),
            },
        ),
        (
            "Reconciliation",
            {
                "fields": ("cleared", "reconciled"),
            },
        ),
        (
            "Audit",
            {
                "fields": ("created_by", "created_at", "deleted_at"),
            },
        ),
    )

    def amount_display(self, obj: Transaction) -> str:
        """Display the amount formatted as currency."""
        return format_cents(obj.amount)

    amount_display.short_description = "Amount"


@admin.register(ActionHistory)
class ActionHistoryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["created_at", "action_type", "entity_type", "entity_id", "ledger", "user"]
    list_filter = ["action_type", "entity_type"]
    search_fields = ["entity_id"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
