"""Business services for posting and editing expenses."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from expenses.models import Expense

logger = logging.getLogger("crm")

EDITABLE_FIELDS = (
    "date",
    "description",
    "category",
    "payment_method",
    "amount",
    "paid_by",
    "notes",
    "status",
)


def _clean_amount(value) -> Decimal:
    amount = Decimal(str(value or "0"))
    if amount <= Decimal("0"):
        raise ValueError("Amount must be strictly greater than 0.")
    return amount


def create_expense(
    *,
    amount,
    description: str,
    category: str,
    expense_date: date | None = None,
    payment_method: str = Expense.PaymentMethod.BANK_TRANSFER,
    paid_by: str = "",
    notes: str = "",
    status: str = Expense.Status.PENDING,
) -> Expense:
    """Record a new, unlocked expense."""
    amount = _clean_amount(amount)
    category = (category or "").strip()
    if not category:
        raise ValueError("A category is required.")

    expense = Expense.objects.create(
        date=expense_date or timezone.localdate(),
        description=(description or "").strip(),
        category=category,
        payment_method=payment_method,
        amount=amount,
        paid_by=(paid_by or "").strip(),
        notes=(notes or "").strip(),
        status=status,
    )
    logger.info("Expense posted: %s amount=%s category=%s", expense.pk, expense.amount, expense.category)
    return expense


@transaction.atomic
def update_expense(expense: Expense, **changes) -> Expense:
    """Update an expense unless it has been locked by a quarter close."""
    locked_expense = Expense.objects.select_for_update().get(pk=expense.pk)
    if locked_expense.locked:
        raise ValueError("This expense belongs to a closed quarter and is locked.")

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    if "amount" in changes:
        changes["amount"] = _clean_amount(changes["amount"])
    for field in ("description", "category", "paid_by", "notes"):
        if field in changes:
            changes[field] = (changes[field] or "").strip()
    if "category" in changes and not changes["category"]:
        raise ValueError("A category is required.")

    for field, value in changes.items():
        setattr(locked_expense, field, value)
    locked_expense.save(update_fields=[*changes, "updated_at"])

    logger.info("Expense updated: %s fields=%s", locked_expense.pk, sorted(changes))
    return locked_expense
