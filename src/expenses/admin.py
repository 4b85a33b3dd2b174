"""Admin registration for expense models."""
from django.contrib import admin

from expenses.models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ("date", "description", "category", "amount", "status", "locked")
    list_filter = ("status", "category", "payment_method", "locked")
    search_fields = ("description", "paid_by", "notes")
    readonly_fields = ("locked", "created_at", "updated_at")

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.locked:
            return False
        return super().has_change_permission(request, obj)
