"""HRM models: employees, monthly salary payments and bonuses."""
from decimal import Decimal

from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

from core.models import TimeStampedModel

month_validator = RegexValidator(r"^\d{4}-(0[1-9]|1[0-2])$", "Use the YYYY-MM format.")


# ---------------------------------------------------------------------------
# Employee
# ---------------------------------------------------------------------------

class Employee(TimeStampedModel):
    """Member of staff on the payroll."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        ON_LEAVE = "on-leave", "On leave"
        TERMINATED = "terminated", "Terminated"

    class Level(models.TextChoices):
        JUNIOR = "junior", "Junior"
        MID = "mid", "Mid"
        SENIOR = "senior", "Senior"
        LEAD = "lead", "Lead"
        MANAGER = "manager", "Manager"
        DIRECTOR = "director", "Director"

    employee_number = models.CharField("employee number", max_length=30, unique=True)
    name = models.CharField("name", max_length=255)
    email = models.EmailField("e-mail", blank=True, default="")
    phone = models.CharField("phone", max_length=30, blank=True, default="")
    position = models.CharField("position", max_length=100, blank=True, default="")
    department = models.CharField("department", max_length=100, blank=True, default="")
    level = models.CharField(
        "level",
        max_length=20,
        choices=Level.choices,
        default=Level.JUNIOR,
    )
    join_date = models.DateField("join date", null=True, blank=True)
    salary = models.DecimalField(
        "monthly salary",
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
    employee_of_month_count = models.PositiveIntegerField("employee of the month awards", default=0)
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "employee"
        verbose_name_plural = "employees"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.employee_number})"


# ---------------------------------------------------------------------------
# Payroll
# ---------------------------------------------------------------------------

class SalaryPayment(TimeStampedModel):
    """Salary paid (or due) to an employee for one calendar month."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"

    employee = models.ForeignKey(
        Employee,
        on_delete=models.PROTECT,
        related_name="salary_payments",
        verbose_name="employee",
    )
    month = models.CharField(
        "month",
        max_length=7,
        validators=[month_validator],
        db_index=True,
        help_text="Format YYYY-MM",
    )
    amount = models.DecimalField(
        "gross amount",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    bonus_amount = models.DecimalField(
        "bonus amount",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    deductions = models.DecimalField(
        "deductions",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    net_amount = models.DecimalField(
        "net amount",
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Falls back to the gross amount when empty.",
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    paid_date = models.DateField("paid date", null=True, blank=True)

    class Meta:
        verbose_name = "salary payment"
        verbose_name_plural = "salary payments"
        ordering = ["-month"]
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "month"],
                name="uniq_salary_payment_employee_month",
            ),
        ]

    def __str__(self):
        return f"{self.employee} - {self.month}"

    @property
    def effective_amount(self):
        return self.net_amount if self.net_amount is not None else self.amount


class Bonus(TimeStampedModel):
    """One-off bonus granted to an employee."""

    employee = models.ForeignKey(
        Employee,
        on_delete=models.PROTECT,
        related_name="bonuses",
        verbose_name="employee",
    )
    amount = models.DecimalField(
        "amount",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    reason = models.CharField("reason", max_length=255)
    date = models.DateField("date")
    approved_by = models.CharField("approved by", max_length=150, blank=True, default="")

    class Meta:
        verbose_name = "bonus"
        verbose_name_plural = "bonuses"
        ordering = ["-date"]

    def __str__(self):
        return f"{self.employee} +{self.amount} ({self.date})"
