"""Django admin for quarterly reporting."""
from django.contrib import admin

from quarters.models import Quarter


@admin.register(Quarter)
class QuarterAdmin(admin.ModelAdmin):
    list_display = (
        "quarter_id", "status", "total_revenue", "net_profit",
        "profit_margin", "remaining_balance", "closed_date",
    )
    list_filter = ("status", "year")
    search_fields = ("quarter_id",)
    ordering = ("-year", "-quarter")
    readonly_fields = (
        "quarter_id", "quarter", "year", "closed_date", "closed_by",
        "summary", "report_generated", "created_at", "updated_at",
    )
    fieldsets = (
        (None, {
            "fields": ("quarter_id", "quarter", "year", "status", "closed_date", "closed_by"),
        }),
        ("Closing figures", {
            "fields": (
                "total_revenue", "total_expenses", "total_salaries", "net_profit",
                "profit_margin", "cash_on_hand", "withdrawal_amount", "remaining_balance",
            ),
        }),
        ("KPI actuals", {
            "classes": ("collapse",),
            "fields": (
                "monthly_retainer_revenue", "total_leads", "conversion_rate",
                "proposals_sent", "meetings_booked", "partnership_outreach",
                "new_clients", "high_value_clients", "quarterly_revenue_collection",
                "accounts_receivable", "unpaid_invoices", "employee_of_the_month",
            ),
        }),
        ("Targets", {
            "classes": ("collapse",),
            "fields": Quarter.TARGET_FIELDS,
        }),
        ("Report", {
            "fields": ("summary", "report_generated", "created_at", "updated_at"),
        }),
    )

    def has_delete_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.status == Quarter.Status.ARCHIVED:
            return False
        return super().has_change_permission(request, obj)

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        if obj is not None and obj.status != Quarter.Status.OPEN:
            return fields + ("status",)
        return fields
