"""Admin configuration for the leads app."""
from django.contrib import admin

from .models import Lead


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ("name", "company", "source", "status", "priority", "estimated_value", "created_at")
    list_filter = ("status", "source", "priority")
    search_fields = ("name", "company", "email", "phone")
    readonly_fields = ("id", "created_at", "updated_at")
    date_hierarchy = "created_at"
