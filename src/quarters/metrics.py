"""Target tracking for quarters.

``calculate_metric`` compares one actual value with its target; the KPI
builder groups those comparisons the way the dashboard shows them and folds
the financial ones into a single 0-100 performance score.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_CEILING, ROUND_HALF_UP, Decimal
from typing import Optional

from django.utils import timezone

from quarters.periods import days_remaining, quarter_range

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

CATEGORIES = ("financial", "clients", "employees", "invoices")

PERFORMANCE_WEIGHTS = {
    "revenue": Decimal("0.3"),
    "profit": Decimal("0.4"),
    "expenses": Decimal("0.2"),
    "retainer_revenue": Decimal("0.1"),
}
# Lower spending scores higher.
INVERTED_METRICS = frozenset({"expenses"})

ON_TRACK_THRESHOLD = 70
NEEDS_ATTENTION_THRESHOLD = 50


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class Metric:
    actual: Decimal
    target: Decimal
    progress: Decimal
    is_met: bool
    variance: Decimal

    def as_dict(self) -> dict:
        return asdict(self)


def calculate_metric(actual, target) -> Metric:
    """Compare ``actual`` with ``target`` (a missing target counts as 0).

    ``progress`` is capped at 100, ``variance`` is signed and uncapped, and
    both are 0 when there is no target.
    """
    actual = _dec(actual)
    target = _dec(target)
    if target == 0:
        progress = ZERO
        variance = ZERO
    else:
        progress = min(actual / target * HUNDRED, HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
        variance = ((actual - target) / target * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    return Metric(
        actual=actual,
        target=target,
        progress=progress,
        is_met=actual >= target,
        variance=variance,
    )


def profit_margin(net_profit, revenue) -> Decimal:
    """Net margin in percent, one decimal place with halves rounded up; 0 without revenue."""
    net_profit = _dec(net_profit)
    revenue = _dec(revenue)
    if revenue <= 0:
        return Decimal("0.0")
    return (net_profit / revenue * HUNDRED).quantize(Decimal("0.1"), rounding=ROUND_HALF_CEILING)


# ---------------------------------------------------------------------------
# Metric groups
# ---------------------------------------------------------------------------

def get_financial_metrics(quarter) -> dict[str, Metric]:
    return {
        "revenue": calculate_metric(quarter.total_revenue, quarter.revenue_target),
        "expenses": calculate_metric(quarter.total_expenses, quarter.expense_target),
        "profit": calculate_metric(quarter.net_profit, quarter.profit_target),
        "retainer_revenue": calculate_metric(
            quarter.monthly_retainer_revenue, quarter.retainer_revenue_target
        ),
        "quarterly_expense": calculate_metric(
            quarter.total_expenses, quarter.quarterly_expense_target
        ),
    }


def get_client_metrics(quarter) -> dict[str, Metric]:
    return {
        "leads": calculate_metric(quarter.total_leads, quarter.total_leads_target),
        "conversion_rate": calculate_metric(quarter.conversion_rate, quarter.conversion_rate_target),
        "proposals_sent": calculate_metric(quarter.proposals_sent, quarter.proposals_sent_target),
        "meetings_booked": calculate_metric(quarter.meetings_booked, quarter.meetings_booked_target),
        "partnership_outreach": calculate_metric(
            quarter.partnership_outreach, quarter.partnership_outreach_target
        ),
        "client_acquisition": calculate_metric(quarter.new_clients, quarter.client_acquisition_target),
        "high_value_clients": calculate_metric(
            quarter.high_value_clients, quarter.high_value_clients_target
        ),
    }


def get_employee_metrics(quarter) -> dict[str, Metric]:
    target = quarter.employees_vs_salaries_target
    ratio = calculate_metric(len(quarter.employee_of_the_month or []), target)
    # Met when the salary bill stays at or under the target.
    is_met = bool(target) and _dec(quarter.total_salaries) <= _dec(target)
    return {
        "salaries": calculate_metric(quarter.total_salaries, quarter.total_salaries_target),
        "employees_vs_salaries": Metric(
            actual=ratio.actual,
            target=ratio.target,
            progress=ratio.progress,
            is_met=is_met,
            variance=ratio.variance,
        ),
    }


def get_invoice_metrics(quarter) -> dict[str, Metric]:
    return {
        "revenue_collection": calculate_metric(
            quarter.quarterly_revenue_collection, quarter.quarterly_revenue_collection_target
        ),
        "accounts_receivable": calculate_metric(
            quarter.accounts_receivable, quarter.accounts_receivable_target
        ),
        "invoices_pending": calculate_metric(quarter.unpaid_invoices, quarter.invoices_pending_target),
    }


_GROUP_BUILDERS = {
    "financial": get_financial_metrics,
    "clients": get_client_metrics,
    "employees": get_employee_metrics,
    "invoices": get_invoice_metrics,
}


def get_metrics_by_category(quarter, category: str) -> dict[str, Metric]:
    """Metrics of one group; unknown categories give an empty dict."""
    builder = _GROUP_BUILDERS.get(category)
    return builder(quarter) if builder else {}


def get_all_metrics(quarter) -> dict[str, Metric]:
    metrics: dict[str, Metric] = {}
    for category in CATEGORIES:
        metrics.update(get_metrics_by_category(quarter, category))
    return metrics


def get_metric(quarter, key: str) -> Optional[Metric]:
    return get_all_metrics(quarter).get(key)


# ---------------------------------------------------------------------------
# Performance score
# ---------------------------------------------------------------------------

def calculate_overall_performance(quarter) -> int:
    """Weighted 0-100 score over revenue, profit, expenses and retainers."""
    financial = get_financial_metrics(quarter)
    total_weight = sum(PERFORMANCE_WEIGHTS.values())
    score = ZERO
    for key, weight in PERFORMANCE_WEIGHTS.items():
        progress = financial[key].progress
        if key in INVERTED_METRICS:
            progress = HUNDRED - progress
        score += progress * weight
    normalized = score / total_weight if total_weight else ZERO
    return min(int(normalized.quantize(Decimal("1"), rounding=ROUND_HALF_UP)), 100)


def performance_status(score: int) -> str:
    if score >= ON_TRACK_THRESHOLD:
        return "on-track"
    if score >= NEEDS_ATTENTION_THRESHOLD:
        return "needs-attention"
    return "at-risk"


@dataclass
class KpiSummary:
    quarter_id: str
    name: str
    status: str
    closed_date: Optional[object]
    financial: dict = field(default_factory=dict)
    clients: dict = field(default_factory=dict)
    employees: dict = field(default_factory=dict)
    invoices: dict = field(default_factory=dict)
    overall_performance: int = 0
    performance_status: str = "at-risk"
    days_remaining: int = 0
    is_closed: bool = False
    last_updated: Optional[object] = None

    def as_dict(self) -> dict:
        return asdict(self)


def generate_kpi_summary(quarter, now=None) -> KpiSummary:
    """Build the dashboard payload for ``quarter``.

    ``days_remaining`` counts down to the end of the quarter while it is open
    and is 0 once it has been closed or archived.
    """
    now = now or timezone.now()
    score = calculate_overall_performance(quarter)
    is_open = quarter.status == quarter.Status.OPEN
    remaining = days_remaining(quarter_range(quarter.year, quarter.quarter).end, now) if is_open else 0
    return KpiSummary(
        quarter_id=quarter.quarter_id,
        name=quarter.display_name,
        status=quarter.status,
        closed_date=quarter.closed_date,
        financial=get_financial_metrics(quarter),
        clients=get_client_metrics(quarter),
        employees=get_employee_metrics(quarter),
        invoices=get_invoice_metrics(quarter),
        overall_performance=score,
        performance_status=performance_status(score),
        days_remaining=remaining,
        is_closed=quarter.is_closed,
        last_updated=now,
    )
