"""Quarter record store: lazy creation and guarded updates of Quarter rows."""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError
from django.utils import timezone

from core.exceptions import NotFoundError
from core.rowstore import get_row_store
from quarters.exceptions import InvalidIdError, InvalidTransitionError
from quarters.models import Quarter
from quarters.periods import QUARTERS, current_quarter, make_quarter_id, parse_quarter_id

logger = logging.getLogger("crm")

COLLECTION = "quarters"

_ALLOWED_TRANSITIONS = {
    Quarter.Status.OPEN: {Quarter.Status.OPEN, Quarter.Status.CLOSED, Quarter.Status.ARCHIVED},
    Quarter.Status.CLOSED: {Quarter.Status.CLOSED, Quarter.Status.ARCHIVED},
    Quarter.Status.ARCHIVED: set(),
}


def _updatable_fields():
    return {
        f.name for f in Quarter._meta.concrete_fields
        if f.name not in Quarter.IMMUTABLE_FIELDS
    }


async def _find(quarter_id, store):
    rows = await store.list(COLLECTION, {"quarter_id": quarter_id}, limit=1)
    return rows[0] if rows else None


async def get_or_create_quarter(year: int, quarter: int, *, store=None) -> Quarter:
    """Return the row for ``(year, quarter)``, creating an open one if needed."""
    if quarter not in QUARTERS:
        raise InvalidIdError(f"Quarter must be between 1 and 4, got {quarter}")
    store = store or get_row_store()
    quarter_id = make_quarter_id(year, quarter)

    existing = await _find(quarter_id, store)
    if existing is not None:
        return existing

    try:
        created = await store.create(
            COLLECTION,
            {
                "quarter_id": quarter_id,
                "quarter": quarter,
                "year": year,
                "status": Quarter.Status.OPEN,
                "closed_date": None,
            },
        )
    except IntegrityError:
        # Another request created it between the check and the insert.
        winner = await _find(quarter_id, store)
        if winner is None:
            raise
        return winner

    logger.info("Quarter created: %s", quarter_id)
    return created


async def get_or_create_current_quarter(now=None, *, store=None) -> Quarter:
    year, quarter = current_quarter(now)
    return await get_or_create_quarter(year, quarter, store=store)


async def get_quarter(quarter_id: str, *, store=None) -> Quarter:
    year, quarter = parse_quarter_id(quarter_id)
    row = await _find(make_quarter_id(year, quarter), store or get_row_store())
    if row is None:
        raise NotFoundError(f"Quarter {quarter_id} not found")
    return row


async def update_quarter(quarter_id: str, updates: dict, now=None, *, store=None) -> Quarter:
    """Apply ``updates`` to a quarter while keeping its lifecycle rules.

    * archived quarters accept no update at all;
    * a closed quarter may only stay closed or move on to ``archived``;
    * ``closed_date`` is stamped once, when the quarter first becomes closed,
      with the supplied value or ``now``. Any other ``closed_date`` is ignored.
    """
    store = store or get_row_store()
    row = await get_quarter(quarter_id, store=store)
    updates = dict(updates)

    rejected = set(updates) - _updatable_fields()
    if rejected:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(rejected))}")

    current = row.status
    if current == Quarter.Status.ARCHIVED:
        raise InvalidTransitionError(f"Quarter {row.quarter_id} is archived and cannot be modified")

    new_status = updates.get("status")
    if new_status is not None:
        if new_status not in Quarter.Status.values:
            raise InvalidTransitionError(f"Unknown quarter status: {new_status!r}")
        if new_status not in _ALLOWED_TRANSITIONS[Quarter.Status(current)]:
            raise InvalidTransitionError(
                f"Quarter {row.quarter_id} cannot go from {current} to {new_status}"
            )

    requested_closed_date = updates.pop("closed_date", None)
    closing = new_status == Quarter.Status.CLOSED and current != Quarter.Status.CLOSED
    if closing and row.closed_date is None:
        updates["closed_date"] = requested_closed_date or now or timezone.now()

    if not updates:
        return row

    row = await store.update(COLLECTION, row.pk, updates)
    if new_status is not None and new_status != current:
        logger.info("Quarter %s status %s -> %s", row.quarter_id, current, new_status)
    return row


async def set_quarter_targets(quarter_id: str, targets: dict, *, store=None) -> Quarter:
    """Set (or clear, with ``None``) target fields of a quarter."""
    unknown = set(targets) - set(Quarter.TARGET_FIELDS)
    if unknown:
        raise ValueError(f"Not a target field: {', '.join(sorted(unknown))}")

    cleaned = {}
    for name, value in targets.items():
        if value is None or value == "":
            cleaned[name] = None
            continue
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{name} must be a number") from None
        if not amount.is_finite():
            raise ValueError(f"{name} must be a number")
        if amount < 0:
            raise ValueError(f"{name} cannot be negative")
        cleaned[name] = amount

    return await update_quarter(quarter_id, cleaned, store=store)
