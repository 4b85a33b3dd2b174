"""Models for the invoices app."""
from decimal import Decimal

from django.db import models

from core.models import TimeStampedModel


class Invoice(TimeStampedModel):
    """Invoice issued to a client."""

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"
        CANCELLED = "cancelled", "Cancelled"
        PARTIALLY_PAID = "partially paid", "Partially paid"
        CLOSED = "closed", "Closed"

    class ServiceType(models.TextChoices):
        WEB_DEVELOPMENT = "web development", "Web development"
        APP_DEVELOPMENT = "app development", "App development"
        AI_ML = "ai/ml solutions", "AI/ML solutions"
        RETAINERS = "retainers", "Retainers"
        CONSULTING = "consulting", "Consulting"

    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
        verbose_name="client",
    )
    client_name = models.CharField("client name", max_length=255, blank=True, default="")
    invoice_number = models.CharField("invoice number", max_length=40, unique=True)
    issue_date = models.DateField("issue date", db_index=True)
    due_date = models.DateField("due date", null=True, blank=True)
    service_type = models.CharField(
        "service type",
        max_length=30,
        choices=ServiceType.choices,
        blank=True,
        default="",
    )
    description = models.TextField("description", blank=True, default="")
    amount = models.DecimalField(
        "amount",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )
    paid_date = models.DateField("paid date", null=True, blank=True)
    is_recurring = models.BooleanField("recurring (retainer)", default=False)
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "invoice"
        verbose_name_plural = "invoices"
        ordering = ["-issue_date", "-created_at"]
        indexes = [
            models.Index(fields=["status", "issue_date"]),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.client_name or self.client_id}"
