"""Models for expense tracking."""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class Expense(TimeStampedModel):
    """Single business expense.

    ``locked`` is set when the quarter the expense belongs to is closed; a
    locked expense can no longer be edited through :mod:`expenses.services`.
    """

    class PaymentMethod(models.TextChoices):
        BANK_TRANSFER = "bank-transfer", "Bank transfer"
        CASH = "cash", "Cash"
        CREDIT_CARD = "credit-card", "Credit card"
        DIGITAL_WALLET = "digital-wallet", "Digital wallet"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        COMPLETED = "completed", "Completed"

    date = models.DateField("date", db_index=True)
    description = models.CharField("description", max_length=255)
    category = models.CharField(
        "category",
        max_length=60,
        db_index=True,
        help_text="Free-form category, e.g. 'Software' or 'opening-balance'.",
    )
    payment_method = models.CharField(
        "payment method",
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.BANK_TRANSFER,
    )
    amount = models.DecimalField(
        "amount",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    paid_by = models.CharField("paid by", max_length=150, blank=True, default="")
    notes = models.TextField("notes", blank=True, default="")
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    locked = models.BooleanField("locked", default=False, db_index=True)

    class Meta:
        verbose_name = "expense"
        verbose_name_plural = "expenses"
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["date", "category"]),
        ]

    def __str__(self):
        return f"{self.date} {self.description} ({self.amount})"
