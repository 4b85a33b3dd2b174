"""Quarter close: freeze a quarter's rows and carry its cash forward.

Closing is not transactional. Preconditions are all checked before the first
write; once writing starts, a failure leaves the already applied updates in
place and surfaces as :class:`~quarters.exceptions.CloseFailedError`.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.utils import timezone

from core.rowstore import get_row_store
from quarters.aggregation import SummaryStatus, get_quarterly_summary
from quarters.exceptions import CloseFailedError, InvalidAmountError, InvalidStateError
from quarters.models import Quarter
from quarters.periods import parse_quarter_id, quarter_range
from quarters.services import get_or_create_quarter, update_quarter

logger = logging.getLogger("crm")

ZERO = Decimal("0")

# collection -> (date lookup, values written on close)
LOCK_PLAN = {
    "leads": ("created_at__range", {"status": "archived"}),
    "clients": ("start_date__range", {"status": "inactive"}),
    "invoices": ("issue_date__range", {"status": "closed"}),
    "expenses": ("date__range", {"locked": True}),
}


@dataclass
class ClosureResult:
    success: bool
    quarter_id: str
    closed_date: datetime
    withdrawal_amount: Decimal
    remaining_balance: Decimal
    report_generated: bool
    quarter_closure_id: str

    def as_dict(self) -> dict:
        return asdict(self)


def _clean_withdrawal(value) -> Decimal:
    try:
        amount = Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        raise InvalidAmountError(f"Invalid withdrawal amount: {value!r}") from None
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid withdrawal amount: {value!r}")
    if amount < 0:
        raise InvalidAmountError("Withdrawal amount cannot be negative")
    return amount


def build_summary_text(summary, currency=None) -> str:
    currency = currency or settings.CURRENCY
    counts = summary.counts
    return (
        f"Clients: {counts['clients']} ({counts['new_clients']} new), "
        f"Leads: {counts['leads']} ({counts['converted_leads']} converted), "
        f"Invoices: {counts['invoices']} ({counts['paid_invoices']} paid), "
        f"Revenue: {currency} {summary.total_revenue}, "
        f"Expenses: {currency} {summary.total_expenses}, "
        f"Salaries: {currency} {summary.total_salaries}, "
        f"Profit: {currency} {summary.net_profit}"
    )


async def _lock_rows(store, period) -> dict:
    collections = list(LOCK_PLAN)
    fetched = await asyncio.gather(*[
        store.list(
            name,
            {
                LOCK_PLAN[name][0]: (
                    period.datetime_bounds() if name == "leads" else period.date_bounds()
                ),
            },
        )
        for name in collections
    ])

    updates = []
    for name, rows in zip(collections, fetched):
        values = LOCK_PLAN[name][1]
        updates.extend(store.update(name, row.pk, values) for row in rows)
    await asyncio.gather(*updates)

    return {name: len(rows) for name, rows in zip(collections, fetched)}


async def close_quarter(quarter_id: str, withdrawal_amount=0, now=None, *, store=None) -> ClosureResult:
    """Close ``quarter_id`` and withdraw ``withdrawal_amount`` from its cash.

    Raises ``InvalidIdError``, ``NotFoundError``, ``InvalidStateError`` or
    ``InvalidAmountError`` before touching anything.
    """
    year, quarter = parse_quarter_id(quarter_id)
    now = now or timezone.now()
    store = store or get_row_store()

    summary = await get_quarterly_summary(quarter_id, now, store=store)
    if summary.status != SummaryStatus.ACTIVE:
        raise InvalidStateError(f"Quarter {summary.id} is not active and cannot be closed")

    stored = await store.list("quarters", {"quarter_id": summary.id}, limit=1)
    if stored and stored[0].status == Quarter.Status.ARCHIVED:
        raise InvalidStateError(f"Quarter {summary.id} is archived and cannot be closed")

    withdrawal = _clean_withdrawal(withdrawal_amount)
    cash_on_hand = summary.cash_on_hand
    if withdrawal > cash_on_hand:
        raise InvalidAmountError(
            f"Withdrawal amount ({withdrawal}) cannot exceed cash on hand ({cash_on_hand})"
        )
    remaining = cash_on_hand - withdrawal

    try:
        locked = await _lock_rows(store, quarter_range(year, quarter))
        logger.info(
            "Quarter %s rows locked: %s",
            summary.id,
            ", ".join(f"{name}={count}" for name, count in locked.items()),
        )

        await get_or_create_quarter(year, quarter, store=store)
        record = await update_quarter(
            summary.id,
            {
                "status": Quarter.Status.CLOSED,
                "closed_date": now,
                "total_revenue": summary.total_revenue,
                "total_expenses": summary.total_expenses,
                "total_salaries": summary.total_salaries,
                "net_profit": summary.net_profit,
                "profit_margin": summary.profit_margin,
                "cash_on_hand": cash_on_hand,
                "withdrawal_amount": withdrawal,
                "remaining_balance": remaining,
                "closed_by": settings.QUARTER_CLOSED_BY,
                "report_generated": True,
                "summary": build_summary_text(summary),
            },
            now=now,
            store=store,
        )

        if remaining > 0:
            await store.create(
                "expenses",
                {
                    "date": timezone.localdate(now),
                    "description": f"Opening balance from Q{quarter}-{year}",
                    "amount": remaining,
                    "category": settings.OPENING_BALANCE_CATEGORY,
                    "payment_method": "bank-transfer",
                    "status": "completed",
                    "notes": f"Carried forward from Q{quarter}-{year}",
                    "locked": True,
                },
            )
            logger.info("Opening balance carried forward from %s: %s", summary.id, remaining)
    except Exception as exc:
        logger.exception("Closing quarter %s failed", summary.id)
        raise CloseFailedError(f"Failed to close quarter: {exc}") from exc

    logger.info("Quarter %s closed (withdrawal=%s remaining=%s)", summary.id, withdrawal, remaining)
    return ClosureResult(
        success=True,
        quarter_id=summary.id,
        closed_date=record.closed_date,
        withdrawal_amount=withdrawal,
        remaining_balance=remaining,
        report_generated=True,
        quarter_closure_id=str(record.pk),
    )
