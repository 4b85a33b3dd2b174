"""Models for the clients app."""
from decimal import Decimal

from django.db import models

from core.models import TimeStampedModel


class Client(TimeStampedModel):
    """A paying client (or agency partner) of the business."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    class Category(models.TextChoices):
        CLIENT = "client", "Client"
        AGENCY_PARTNER = "agency partner", "Agency partner"

    name = models.CharField("name", max_length=255)
    company = models.CharField("company", max_length=255, blank=True, default="")
    contact = models.CharField("contact person", max_length=255, blank=True, default="")
    email = models.EmailField("e-mail", blank=True, default="")
    phone = models.CharField("phone", max_length=40, blank=True, default="")
    source = models.CharField("source", max_length=50, blank=True, default="")
    category = models.CharField(
        "category",
        max_length=20,
        choices=Category.choices,
        default=Category.CLIENT,
    )
    start_date = models.DateField("start date", null=True, blank=True, db_index=True)
    number_of_projects = models.PositiveIntegerField("number of projects", default=0)
    total_spent = models.DecimalField(
        "total spent",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    retainer = models.DecimalField(
        "monthly retainer",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "client"
        verbose_name_plural = "clients"
        ordering = ["name"]

    @property
    def is_high_value(self):
        """Clients with more than one project count as high value."""
        return self.number_of_projects > 1

    def __str__(self):
        return self.company or self.name
