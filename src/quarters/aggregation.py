"""Quarterly aggregation: roll transactional rows up into per-quarter summaries.

Summaries are recomputed on every call and never persisted. For each quarter
the five sources (expenses, salaries, invoices, clients, leads) are queried
concurrently; a source that fails is logged, reported on the summary as a
:class:`~quarters.exceptions.PartialAggregationWarning` and counted as zero.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db.models import Count, DecimalField, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.exceptions import NotFoundError
from core.rowstore import get_row_store
from quarters.exceptions import PartialAggregationWarning
from quarters.metrics import profit_margin
from quarters.models import Quarter
from quarters.periods import (
    QUARTERS,
    QuarterRange,
    current_quarter,
    make_quarter_id,
    parse_quarter_id,
    quarter_range,
)

logger = logging.getLogger("crm")

ZERO = Decimal("0")


class SummaryStatus:
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


def _decimal_sum(expression):
    return Coalesce(Sum(expression), ZERO, output_field=DecimalField())


@dataclass
class QuarterlySummary:
    id: str
    name: str
    status: str
    start_date: date
    end_date: date
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_salaries: Decimal = ZERO
    net_profit: Decimal = ZERO
    profit_margin: Decimal = Decimal("0.0")
    counts: dict = field(default_factory=dict)
    warnings: list = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)

    @property
    def cash_on_hand(self) -> Decimal:
        return self.total_revenue - self.total_expenses - self.total_salaries

    def as_dict(self) -> dict:
        data = asdict(self)
        data["warnings"] = [str(w) for w in self.warnings]
        return data


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

async def _expenses(store, period: QuarterRange) -> dict:
    totals = await store.aggregate(
        "expenses",
        {"date__range": period.date_bounds()},
        total=_decimal_sum("amount"),
    )
    return {"total_expenses": totals["total"]}


async def _salaries(store, period: QuarterRange) -> dict:
    totals = await store.aggregate(
        "salary_payments",
        {"month__in": period.months},
        total=_decimal_sum(Coalesce("net_amount", "amount")),
    )
    return {"total_salaries": totals["total"]}


async def _invoices(store, period: QuarterRange) -> dict:
    in_range = {"issue_date__range": period.date_bounds()}
    invoices = await store.count("invoices", in_range)
    paid = await store.aggregate(
        "invoices",
        {**in_range, "status__iexact": "paid"},
        total=_decimal_sum("amount"),
        count=Count("pk"),
    )
    return {
        "total_revenue": paid["total"],
        "invoices": invoices,
        "paid_invoices": paid["count"],
    }


async def _clients(store, period: QuarterRange) -> dict:
    # The total covers every client, not only those of the quarter.
    clients = await store.count("clients")
    new_clients = await store.count("clients", {"start_date__range": period.date_bounds()})
    return {"clients": clients, "new_clients": new_clients}


async def _leads(store, period: QuarterRange) -> dict:
    # Both lead counts cover every lead, not only the quarter's.
    leads = await store.count("leads")
    converted = await store.count("leads", {"status__iexact": "converted"})
    return {"leads": leads, "converted_leads": converted}


_SOURCES = (
    ("expenses", _expenses, {"total_expenses": ZERO}),
    ("salaries", _salaries, {"total_salaries": ZERO}),
    ("invoices", _invoices, {"total_revenue": ZERO, "invoices": 0, "paid_invoices": 0}),
    ("clients", _clients, {"clients": 0, "new_clients": 0}),
    ("leads", _leads, {"leads": 0, "converted_leads": 0}),
)


async def _guarded(quarter_id, name, source, fallback, store, period, warnings):
    try:
        return await source(store, period)
    except Exception as exc:
        warning = PartialAggregationWarning(quarter_id, name, exc)
        warnings.append(warning)
        logger.warning("Aggregation source failed: %s", warning)
        return dict(fallback)


async def _is_closed(store, quarter_id) -> bool:
    try:
        return await store.count("quarters", {"quarter_id": quarter_id, "status": Quarter.Status.CLOSED}) > 0
    except Exception as exc:
        logger.warning("Closure lookup failed for %s, treating as not closed: %s", quarter_id, exc)
        return False


def derive_status(period: QuarterRange, closed: bool, now) -> str:
    if closed:
        return SummaryStatus.CLOSED
    if now < period.start:
        return SummaryStatus.ARCHIVED
    if now > period.end:
        return SummaryStatus.CLOSED
    return SummaryStatus.ACTIVE


async def build_summary(year: int, quarter: int, now=None, *, store=None) -> QuarterlySummary:
    store = store or get_row_store()
    now = now or timezone.now()
    period = quarter_range(year, quarter)
    quarter_id = make_quarter_id(year, quarter)
    warnings: list[PartialAggregationWarning] = []

    parts = await asyncio.gather(*[
        _guarded(quarter_id, name, source, fallback, store, period, warnings)
        for name, source, fallback in _SOURCES
    ])
    values = {}
    for part in parts:
        values.update(part)

    revenue = values["total_revenue"]
    expenses = values["total_expenses"]
    salaries = values["total_salaries"]
    net_profit = revenue - expenses - salaries
    closed = await _is_closed(store, quarter_id)

    return QuarterlySummary(
        id=quarter_id,
        name=f"Q{quarter}-{year}",
        status=derive_status(period, closed, now),
        start_date=period.start_date,
        end_date=period.end_date,
        total_revenue=revenue,
        total_expenses=expenses,
        total_salaries=salaries,
        net_profit=net_profit,
        profit_margin=profit_margin(net_profit, revenue),
        counts={
            "clients": values["clients"],
            "new_clients": values["new_clients"],
            "leads": values["leads"],
            "converted_leads": values["converted_leads"],
            "invoices": values["invoices"],
            "paid_invoices": values["paid_invoices"],
        },
        warnings=warnings,
    )


async def get_quarterly_summaries(year: Optional[int] = None, now=None, *, store=None) -> list[QuarterlySummary]:
    """Summaries of the four quarters of ``year`` (default: the current year)."""
    now = now or timezone.now()
    if year is None:
        year = current_quarter(now)[0]
    store = store or get_row_store()
    summaries = []
    for quarter in QUARTERS:
        summaries.append(await build_summary(year, quarter, now, store=store))
    return summaries


async def get_quarterly_summary(quarter_id: str, now=None, *, store=None) -> QuarterlySummary:
    year, quarter = parse_quarter_id(quarter_id)
    wanted = make_quarter_id(year, quarter)
    for summary in await get_quarterly_summaries(year, now, store=store):
        if summary.id == wanted:
            return summary
    raise NotFoundError(f"Quarter {quarter_id} not found")
