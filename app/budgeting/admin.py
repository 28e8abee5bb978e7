"""Django admin configuration for budgeting models."""

from django.contrib import admin

from ledger.admin import format_cents

from .models import Goal


@admin.register(Goal)
class GoalAdmin(admin.ModelAdmin):
    """
    Admin configuration for Goal.

    Goals are created through GoalService so the previous active goal is
    deactivated; the admin only toggles is_active.
    """

    list_display = ["id", "category", "goal_type", "target_display", "target_date", "is_active", "created_at"]
    list_filter = ["goal_type", "is_active"]
    search_fields = ["id", "category__name", "category__ledger__name"]
    readonly_fields = ["id", "category", "goal_type", "target_amount", "target_date", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    @admin.display(description="Target")
    def target_display(self, obj: Goal) -> str:
        return format_cents(obj.target_amount)
