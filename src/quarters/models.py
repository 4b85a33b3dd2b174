"""Models for quarterly financial reporting."""
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import TimeStampedModel

ZERO = Decimal("0.00")


def _amount(label, **kwargs):
    kwargs.setdefault("default", ZERO)
    return models.DecimalField(label, max_digits=14, decimal_places=2, **kwargs)


def _target(label):
    return models.DecimalField(label, max_digits=14, decimal_places=2, null=True, blank=True)


class Quarter(TimeStampedModel):
    """Financial snapshot and targets for one calendar quarter.

    Rows are created lazily (see ``quarters.services.get_or_create_quarter``)
    and are never deleted. ``status`` only moves forward:
    open -> closed -> archived.
    """

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        CLOSED = "closed", "Closed"
        ARCHIVED = "archived", "Archived"

    quarter_id = models.CharField(
        "quarter id",
        max_length=10,
        unique=True,
        help_text="Format q<1-4>-<year>, e.g. q1-2025",
    )
    quarter = models.PositiveSmallIntegerField(
        "quarter",
        validators=[MinValueValidator(1), MaxValueValidator(4)],
    )
    year = models.PositiveIntegerField("year", db_index=True)
    status = models.CharField(
        "status",
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
        db_index=True,
    )
    closed_date = models.DateTimeField("closed on", null=True, blank=True)

    # Closing figures
    total_revenue = _amount("total revenue")
    total_expenses = _amount("total expenses")
    total_salaries = _amount("total salaries")
    net_profit = _amount("net profit")
    profit_margin = models.DecimalField("profit margin (%)", max_digits=7, decimal_places=1, default=Decimal("0.0"))
    cash_on_hand = _amount("cash on hand")
    withdrawal_amount = _amount("withdrawal amount")
    remaining_balance = _amount("remaining balance")

    # KPI actuals
    monthly_retainer_revenue = _amount("monthly retainer revenue")
    total_leads = models.PositiveIntegerField("total leads", default=0)
    conversion_rate = models.DecimalField("conversion rate (%)", max_digits=7, decimal_places=2, default=ZERO)
    proposals_sent = models.PositiveIntegerField("proposals sent", default=0)
    meetings_booked = models.PositiveIntegerField("meetings booked", default=0)
    partnership_outreach = models.PositiveIntegerField("partnership outreach", default=0)
    new_clients = models.PositiveIntegerField("new clients", default=0)
    high_value_clients = models.PositiveIntegerField("high value clients", default=0)
    quarterly_revenue_collection = _amount("revenue collected")
    accounts_receivable = _amount("accounts receivable")
    unpaid_invoices = models.PositiveIntegerField("unpaid invoices", default=0)
    employee_of_the_month = models.JSONField("employees of the month", default=list, blank=True)

    # Targets
    revenue_target = _target("revenue target")
    expense_target = _target("expense target")
    profit_target = _target("profit target")
    retainer_revenue_target = _target("retainer revenue target")
    quarterly_revenue_collection_target = _target("revenue collection target")
    quarterly_expense_target = _target("quarterly expense target")
    total_leads_target = _target("total leads target")
    conversion_rate_target = _target("conversion rate target")
    proposals_sent_target = _target("proposals sent target")
    meetings_booked_target = _target("meetings booked target")
    partnership_outreach_target = _target("partnership outreach target")
    client_acquisition_target = _target("client acquisition target")
    high_value_clients_target = _target("high value clients target")
    total_salaries_target = _target("total salaries target")
    employees_vs_salaries_target = _target("employees vs salaries target")
    accounts_receivable_target = _target("accounts receivable target")
    invoices_pending_target = _target("pending invoices target")

    # Closure metadata
    closed_by = models.CharField("closed by", max_length=150, blank=True, default="")
    summary = models.TextField("closing summary", blank=True, default="")
    report_generated = models.BooleanField("report generated", default=False)

    TARGET_FIELDS = (
        "revenue_target",
        "expense_target",
        "profit_target",
        "retainer_revenue_target",
        "quarterly_revenue_collection_target",
        "quarterly_expense_target",
        "total_leads_target",
        "conversion_rate_target",
        "proposals_sent_target",
        "meetings_booked_target",
        "partnership_outreach_target",
        "client_acquisition_target",
        "high_value_clients_target",
        "total_salaries_target",
        "employees_vs_salaries_target",
        "accounts_receivable_target",
        "invoices_pending_target",
    )
    IMMUTABLE_FIELDS = ("id", "quarter_id", "quarter", "year", "created_at", "updated_at")

    class Meta:
        verbose_name = "quarter"
        verbose_name_plural = "quarters"
        ordering = ["-year", "-quarter"]
        constraints = [
            models.UniqueConstraint(
                fields=["year", "quarter"],
                name="uniq_quarter_year_quarter",
            ),
        ]

    def __str__(self):
        return self.display_name

    @property
    def name(self):
        return f"Q{self.quarter}-{self.year}"

    @property
    def display_name(self):
        return f"Q{self.quarter} {self.year}"

    @property
    def is_closed(self):
        return self.status == self.Status.CLOSED
