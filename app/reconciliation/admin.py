"""Django admin configuration for reconciliation models."""

from django.contrib import admin

from ledger.admin import ReadOnlyAdminMixin, format_cents

from .models import Reconciliation


@admin.register(Reconciliation)
class ReconciliationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["account", "statement_date", "statement_display", "difference_display", "cleared_count", "created_at"]
    search_fields = ["account__name", "account__ledger__name", "notes"]
    date_hierarchy = "statement_date"
    raw_id_fields = ["account", "adjustment_transaction"]

    @admin.display(description="Statement balance")
    def statement_display(self, obj: Reconciliation) -> str:
        return format_cents(obj.statement_balance)

    @admin.display(description="Difference")
    def difference_display(self, obj: Reconciliation) -> str:
        return format_cents(obj.difference)
