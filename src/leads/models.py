"""Models for the leads app."""
from decimal import Decimal

from django.db import models

from core.models import TimeStampedModel


class Lead(TimeStampedModel):
    """A sales lead tracked until it converts into a client or is lost."""

    class Status(models.TextChoices):
        NEW = "new", "New"
        CONTACTED = "contacted", "Contacted"
        QUALIFIED = "qualified", "Qualified"
        PROPOSAL_SENT = "proposal sent", "Proposal sent"
        NEGOTIATION = "negotiation", "Negotiation"
        FOLLOW_UP = "follow-up", "Follow-up"
        CONVERTED = "converted", "Converted"
        LOST = "lost", "Lost"
        ARCHIVED = "archived", "Archived"

    class Source(models.TextChoices):
        WEBSITE = "website", "Website"
        LINKEDIN = "linkedin", "LinkedIn"
        REFERRAL = "referral", "Referral"
        COLD_EMAIL = "cold email", "Cold email"
        COLD_CALL = "cold call", "Cold call"
        FACEBOOK = "facebook", "Facebook"
        INSTAGRAM = "instagram", "Instagram"
        EVENT = "event", "Event"
        PARTNER = "partner", "Partner"
        OTHER = "other", "Other"

    class Priority(models.TextChoices):
        CRITICAL = "critical", "Critical"
        HIGH = "high", "High"
        MEDIUM = "medium", "Medium"
        LOW = "low", "Low"

    name = models.CharField("name", max_length=255)
    company = models.CharField("company", max_length=255, blank=True, default="")
    email = models.EmailField("e-mail", blank=True, default="")
    phone = models.CharField("phone", max_length=40, blank=True, default="")
    source = models.CharField(
        "source",
        max_length=20,
        choices=Source.choices,
        default=Source.OTHER,
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.NEW,
        db_index=True,
    )
    priority = models.CharField(
        "priority",
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
    )
    estimated_value = models.DecimalField(
        "estimated value",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    last_contact = models.DateField("last contact", null=True, blank=True)
    next_followup = models.DateField("next follow-up", null=True, blank=True)
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "lead"
        verbose_name_plural = "leads"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.status})"
