"""Django admin configuration for credit card models."""

from django.contrib import admin

from ledger.admin import ReadOnlyAdminMixin, format_cents

from .models import CreditCardLimit, CreditCardStatement, Installment, InstallmentPlan, ScheduledPayment


@admin.register(CreditCardLimit)
class CreditCardLimitAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Limits are replaced through CreditCardService.configure_limit, never edited."""

    list_display = ["credit_card", "limit_display", "apr", "compounding_frequency", "statement_day_of_month", "is_active"]
    list_filter = ["is_active", "compounding_frequency", "interest_type", "auto_payment_enabled"]
    search_fields = ["credit_card__name", "credit_card__ledger__name"]
    ordering = ["-created_at"]

    @admin.display(description="Limit")
    def limit_display(self, obj: CreditCardLimit) -> str:
        return format_cents(obj.credit_limit)


@admin.register(CreditCardStatement)
class CreditCardStatementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["credit_card", "period_start", "period_end", "ending_display", "due_date", "is_current"]
    list_filter = ["is_current"]
    search_fields = ["credit_card__name"]
    date_hierarchy = "period_end"

    @admin.display(description="Ending balance")
    def ending_display(self, obj: CreditCardStatement) -> str:
        return format_cents(obj.ending_balance)


@admin.register(ScheduledPayment)
class ScheduledPaymentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Status only moves through the FSM transitions in CreditCardService."""

    list_display = ["credit_card", "scheduled_date", "payment_type", "status", "actual_amount_paid", "processed_at"]
    list_filter = ["status", "payment_type"]
    search_fields = ["credit_card__name", "failure_reason"]
    raw_id_fields = ["credit_card", "bank_account", "statement", "transaction"]


class InstallmentInline(admin.TabularInline):
    model = Installment
    extra = 0
    can_delete = False
    fields = ["number", "due_date", "amount", "status", "processed_date", "transaction"]
    readonly_fields = fields


@admin.register(InstallmentPlan)
class InstallmentPlanAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Plans change only through InstallmentService."""

    list_display = ["description", "credit_card", "purchase_display", "progress", "frequency", "status"]
    list_filter = ["status", "frequency"]
    search_fields = ["description", "credit_card__name", "category__name"]
    raw_id_fields = ["credit_card", "category", "purchase_transaction"]
    inlines = [InstallmentInline]

    @admin.display(description="Purchase")
    def purchase_display(self, obj: InstallmentPlan) -> str:
        return format_cents(obj.purchase_amount)

    @admin.display(description="Progress")
    def progress(self, obj: InstallmentPlan) -> str:
        return f"{obj.completed_installments}/{obj.number_of_installments}"
