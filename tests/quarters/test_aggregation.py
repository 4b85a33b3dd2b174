from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync

from core.rowstore import RowStore
from expenses.models import Expense
from hrm.models import SalaryPayment
from invoices.models import Invoice
from quarters.aggregation import (
    SummaryStatus,
    build_summary,
    derive_status,
    get_quarterly_summaries,
    get_quarterly_summary,
)
from quarters.exceptions import InvalidIdError, PartialAggregationWarning
from quarters.models import Quarter
from quarters.periods import quarter_range

pytestmark = pytest.mark.django_db


class FailingStore(RowStore):
    """Row store whose reads of some collections blow up."""

    def __init__(self, broken, **kwargs):
        super().__init__(**kwargs)
        self.broken = set(broken)

    def _check(self, collection):
        if collection in self.broken:
            raise ConnectionError(f"{collection} offline")

    async def aggregate(self, collection, filters=None, **aggregates):
        self._check(collection)
        return await super().aggregate(collection, filters, **aggregates)

    async def count(self, collection, filters=None):
        self._check(collection)
        return await super().count(collection, filters)


def test_summary_totals_for_q1(q1_2025, q1_now):
    summary = async_to_sync(get_quarterly_summary)("q1-2025", q1_now)

    assert summary.id == "q1-2025"
    assert summary.name == "Q1-2025"
    assert summary.status == SummaryStatus.ACTIVE
    assert summary.start_date == date(2025, 1, 1)
    assert summary.end_date == date(2025, 3, 31)
    assert summary.total_revenue == Decimal("20000")
    assert summary.total_expenses == Decimal("1000")
    assert summary.total_salaries == Decimal("10000")
    assert summary.net_profit == Decimal("9000")
    assert summary.profit_margin == Decimal("45.0")
    assert summary.cash_on_hand == Decimal("9000")
    assert summary.counts == {
        "clients": 1,
        "new_clients": 1,
        "leads": 1,
        "converted_leads": 1,
        "invoices": 1,
        "paid_invoices": 1,
    }
    assert summary.is_partial is False


def test_rows_outside_quarter_are_not_summed(q1_2025, q1_now):
    Expense.objects.create(
        date=date(2025, 4, 1),
        description="April rent",
        category="Rent",
        amount=Decimal("700.00"),
    )

    summaries = async_to_sync(get_quarterly_summaries)(2025, q1_now)

    assert [s.id for s in summaries] == ["q1-2025", "q2-2025", "q3-2025", "q4-2025"]
    assert summaries[0].total_expenses == Decimal("1000")
    assert summaries[1].total_expenses == Decimal("700")
    assert summaries[1].total_revenue == 0
    assert summaries[1].profit_margin == 0


def test_unpaid_invoices_count_but_earn_nothing(q1_2025, q1_now):
    invoice = q1_2025["invoice"]
    invoice.status = "Sent"
    invoice.save(update_fields=["status"])

    summary = async_to_sync(get_quarterly_summary)("q1-2025", q1_now)

    assert summary.total_revenue == 0
    assert summary.counts["invoices"] == 1
    assert summary.counts["paid_invoices"] == 0
    assert summary.net_profit == Decimal("-11000")


def test_net_amount_falls_back_to_amount(q1_2025, q1_now):
    salary = q1_2025["salary"]
    salary.net_amount = None
    salary.amount = Decimal("8000.00")
    salary.save()

    summary = async_to_sync(get_quarterly_summary)("q1-2025", q1_now)

    assert summary.total_salaries == Decimal("8000")


def test_status_matching_ignores_case(employee, make_lead, q1_now):
    Expense.objects.create(
        date=date(2025, 2, 10), description="Hosting", category="Software", amount=Decimal("1000.00")
    )
    for month in ("2025-01", "2025-02"):
        SalaryPayment.objects.create(
            employee=employee,
            month=month,
            amount=Decimal("5000.00"),
            net_amount=Decimal("5000.00"),
        )
    Invoice.objects.create(
        invoice_number="INV-2025-0100",
        issue_date=date(2025, 3, 1),
        amount=Decimal("20000.00"),
        status="Paid",
    )
    make_lead(name="Imported lead", status="Converted")

    summary = async_to_sync(get_quarterly_summaries)(2025, q1_now)[0]

    assert summary.id == "q1-2025"
    assert summary.total_expenses == Decimal("1000")
    assert summary.total_salaries == Decimal("10000")
    assert summary.total_revenue == Decimal("20000")
    assert summary.net_profit == Decimal("9000")
    assert summary.profit_margin == Decimal("45.0")
    assert summary.counts["paid_invoices"] == 1
    assert summary.counts["converted_leads"] == 1


def test_summaries_default_to_current_year(q1_now):
    summaries = async_to_sync(get_quarterly_summaries)(None, q1_now)

    assert summaries[0].id == "q1-2025"
    assert [s.status for s in summaries] == ["active", "archived", "archived", "archived"]


def test_default_year_is_read_in_utc(settings):
    settings.TIME_ZONE = "Asia/Karachi"
    # Already 2026-01-01 in Karachi.
    new_years_eve = datetime(2025, 12, 31, 22, tzinfo=dt_timezone.utc)

    summaries = async_to_sync(get_quarterly_summaries)(None, new_years_eve)

    assert [s.id for s in summaries] == ["q1-2025", "q2-2025", "q3-2025", "q4-2025"]
    assert summaries[3].status == "active"


def test_status_comes_from_clock_and_closure_record(q1_now):
    Quarter.objects.create(quarter_id="q1-2025", quarter=1, year=2025, status=Quarter.Status.CLOSED)

    summaries = async_to_sync(get_quarterly_summaries)(2025, q1_now)

    assert summaries[0].status == SummaryStatus.CLOSED
    assert summaries[1].status == SummaryStatus.ARCHIVED


def test_past_quarters_are_closed(q1_now):
    summaries = async_to_sync(get_quarterly_summaries)(2024, q1_now)

    assert {s.status for s in summaries} == {SummaryStatus.CLOSED}


def test_derive_status_edges():
    period = quarter_range(2025, 1)

    assert derive_status(period, False, period.start) == SummaryStatus.ACTIVE
    assert derive_status(period, False, period.end) == SummaryStatus.ACTIVE
    assert derive_status(period, False, datetime(2024, 12, 31, 23, tzinfo=dt_timezone.utc)) == SummaryStatus.ARCHIVED
    assert derive_status(period, False, datetime(2025, 4, 1, tzinfo=dt_timezone.utc)) == SummaryStatus.CLOSED
    assert derive_status(period, True, period.start) == SummaryStatus.CLOSED


def test_failed_source_degrades_to_zero_with_warning(q1_2025, q1_now):
    summary = async_to_sync(build_summary)(2025, 1, q1_now, store=FailingStore({"salary_payments"}))

    assert summary.is_partial is True
    assert len(summary.warnings) == 1
    warning = summary.warnings[0]
    assert isinstance(warning, PartialAggregationWarning)
    assert warning.source == "salaries"
    assert "salaries unavailable" in str(warning)
    assert summary.total_salaries == 0
    assert summary.total_revenue == Decimal("20000")
    assert summary.net_profit == Decimal("19000")
    assert summary.as_dict()["warnings"] == [str(warning)]


def test_failed_closure_lookup_means_not_closed(q1_2025, q1_now):
    Quarter.objects.create(quarter_id="q1-2025", quarter=1, year=2025, status=Quarter.Status.CLOSED)

    summary = async_to_sync(build_summary)(2025, 1, q1_now, store=FailingStore({"quarters"}))

    assert summary.status == SummaryStatus.ACTIVE
    assert summary.is_partial is False


def test_malformed_quarter_id(q1_now):
    with pytest.raises(InvalidIdError):
        async_to_sync(get_quarterly_summary)("q5-2025", q1_now)
