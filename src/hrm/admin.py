"""Admin configuration for the HRM app."""
from django.contrib import admin

from hrm.models import Bonus, Employee, SalaryPayment


class SalaryPaymentInline(admin.TabularInline):
    model = SalaryPayment
    extra = 0
    fields = ("month", "amount", "bonus_amount", "deductions", "net_amount", "status", "paid_date")


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("employee_number", "name", "position", "department", "salary", "status")
    list_filter = ("status", "level", "department")
    search_fields = ("employee_number", "name", "email", "phone")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [SalaryPaymentInline]


@admin.register(SalaryPayment)
class SalaryPaymentAdmin(admin.ModelAdmin):
    list_display = ("employee", "month", "amount", "net_amount", "status", "paid_date")
    list_filter = ("status", "month")
    search_fields = ("employee__name", "employee__employee_number", "month")
    list_select_related = ("employee",)


@admin.register(Bonus)
class BonusAdmin(admin.ModelAdmin):
    list_display = ("employee", "amount", "reason", "date", "approved_by")
    search_fields = ("employee__name", "reason")
    list_select_related = ("employee",)
