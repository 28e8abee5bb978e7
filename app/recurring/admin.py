"""Django admin configuration for recurring transaction models."""

from django.contrib import admin

from ledger.admin import ReadOnlyAdminMixin, format_cents

from .models import RecurringOccurrence, RecurringTransaction


class RecurringOccurrenceInline(admin.TabularInline):
    model = RecurringOccurrence
    extra = 0
    can_delete = False
    readonly_fields = ["due_date", "transaction", "created_at"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(RecurringTransaction)
class RecurringTransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for RecurringTransaction.

    Only the enabled and auto_create switches are editable here.
    """

    list_display = ["description", "ledger", "amount_display", "frequency", "next_date", "auto_create", "enabled"]
    list_filter = ["frequency", "transaction_type", "enabled", "auto_create"]
    search_fields = ["description", "ledger__name"]
    readonly_fields = [
        "id",
        "ledger",
        "description",
        "amount",
        "frequency",
        "next_date",
        "end_date",
        "anchor_day",
        "account",
        "category",
        "transaction_type",
        "created_at",
        "updated_at",
    ]
    inlines = [RecurringOccurrenceInline]

    def has_add_permission(self, request) -> bool:
        return False

    @admin.display(description="Amount")
    def amount_display(self, obj: RecurringTransaction) -> str:
        return format_cents(obj.amount)


@admin.register(RecurringOccurrence)
class RecurringOccurrenceAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["template", "due_date", "transaction", "created_at"]
    search_fields = ["template__description"]
    raw_id_fields = ["template", "transaction"]
