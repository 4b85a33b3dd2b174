"""Admin configuration for the clients app."""
from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "company",
        "category",
        "start_date",
        "number_of_projects",
        "status",
    )
    list_filter = ("status", "category")
    search_fields = ("name", "company", "contact", "email", "phone")
    readonly_fields = ("id", "created_at", "updated_at")
    fieldsets = (
        (None, {
            "fields": ("name", "company", "contact", "email", "phone", "status"),
        }),
        ("Engagement", {
            "fields": ("source", "category", "start_date", "number_of_projects", "total_spent", "retainer"),
        }),
        ("Notes", {
            "fields": ("notes",),
        }),
        ("System", {
            "fields": ("id", "created_at", "updated_at"),
        }),
    )
