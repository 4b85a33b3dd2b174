"""Admin configuration for the invoices app."""
from django.contrib import admin

from .models import Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "client_name", "issue_date", "due_date", "amount", "status")
    list_filter = ("status", "service_type", "is_recurring")
    search_fields = ("invoice_number", "client_name", "description")
    readonly_fields = ("id", "created_at", "updated_at")
    raw_id_fields = ("client",)
    date_hierarchy = "issue_date"
