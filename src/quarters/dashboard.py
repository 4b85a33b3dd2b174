"""Live figures for the landing dashboard (current quarter, unclosed data)."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from core.rowstore import get_row_store
from quarters.metrics import profit_margin
from quarters.periods import current_quarter, quarter_range

logger = logging.getLogger("crm")

ZERO = Decimal("0")


def _is_paid(row) -> bool:
    return (row.status or "").lower() == "paid" or bool(row.paid_date)


def _default_stats(year=None, quarter=None) -> dict:
    return {
        "quarter_id": f"q{quarter}-{year}" if year else None,
        "quarterly_revenue": ZERO,
        "total_expenses": ZERO,
        "total_salaries": ZERO,
        "profit_margin": Decimal("0.0"),
        "cash_on_hand": ZERO,
        "active_clients": 0,
    }


async def get_dashboard_stats(now=None, *, store=None) -> dict:
    """Revenue, spending and cash of the running quarter.

    Only paid invoices and paid salaries count. Returns zeroed figures if any
    source cannot be read.
    """
    store = store or get_row_store()
    year, quarter = current_quarter(now)
    period = quarter_range(year, quarter)
    try:
        invoices, expenses, salaries, active_clients = await asyncio.gather(
            store.list("invoices", {"issue_date__range": period.date_bounds()}),
            store.list("expenses", {"date__range": period.date_bounds()}),
            store.list("salary_payments", {"month__in": period.months}),
            store.count("clients", {"status__iexact": "active"}),
        )
    except Exception:
        logger.exception("Dashboard stats unavailable for q%s-%s", quarter, year)
        return _default_stats(year, quarter)

    revenue = sum((row.amount for row in invoices if _is_paid(row) and row.amount > 0), ZERO)
    spent = sum((row.amount for row in expenses if row.amount > 0), ZERO)
    salaries_paid = sum(
        (row.effective_amount for row in salaries if _is_paid(row) and row.effective_amount > 0),
        ZERO,
    )
    profit = revenue - spent - salaries_paid

    stats = _default_stats(year, quarter)
    stats.update(
        quarterly_revenue=revenue,
        total_expenses=spent,
        total_salaries=salaries_paid,
        profit_margin=profit_margin(profit, revenue),
        cash_on_hand=max(ZERO, profit),
        active_clients=active_clients,
    )
    return stats


async def get_quick_stats(now=None, *, store=None) -> dict:
    store = store or get_row_store()
    today = timezone.localdate(now or timezone.now())
    try:
        clients, invoices = await asyncio.gather(
            store.list("clients"),
            store.list("invoices"),
        )
    except Exception:
        logger.exception("Quick stats unavailable")
        return {"active_projects": 0, "pending_invoices": 0, "overdue_invoices": 0, "total_invoices": 0}

    unpaid = [row for row in invoices if (row.status or "").lower() != "paid"]
    return {
        "active_projects": sum(row.number_of_projects or 0 for row in clients),
        "pending_invoices": len(unpaid),
        "overdue_invoices": sum(1 for row in unpaid if row.due_date and row.due_date < today),
        "total_invoices": len(invoices),
    }


async def get_recent_activities(limit=5, *, store=None) -> list[dict]:
    """Latest invoices and new employees, newest first."""
    store = store or get_row_store()
    try:
        invoices, employees = await asyncio.gather(
            store.list("invoices", order_by=["-created_at"], limit=3),
            store.list("employees", order_by=["-created_at"], limit=2),
        )
    except Exception:
        logger.exception("Recent activities unavailable")
        return []

    activities = [
        {
            "id": f"invoice-{row.pk}",
            "type": "invoice",
            "title": f"Invoice {row.invoice_number} created",
            "description": f"Invoice for {row.client_name} - {settings.CURRENCY} {row.amount}",
            "date": row.created_at,
        }
        for row in invoices
    ]
    activities.extend(
        {
            "id": f"employee-{row.pk}",
            "type": "employee",
            "title": "New employee added",
            "description": f"{row.name} joined as {row.position}".strip(),
            "date": row.created_at,
        }
        for row in employees
    )
    activities.sort(key=lambda item: item["date"], reverse=True)
    return activities[:limit]
