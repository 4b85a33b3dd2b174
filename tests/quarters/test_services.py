from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from django.db import IntegrityError

from core.exceptions import NotFoundError
from core.rowstore import RowStore
from quarters.exceptions import InvalidIdError, InvalidTransitionError
from quarters.models import Quarter
from quarters.services import (
    get_or_create_current_quarter,
    get_or_create_quarter,
    get_quarter,
    set_quarter_targets,
    update_quarter,
)

pytestmark = pytest.mark.django_db

CLOSE_TIME = datetime(2025, 4, 1, 9, tzinfo=dt_timezone.utc)


class RacingStore(RowStore):
    """Another writer inserts the same quarter right before our insert."""

    async def create(self, collection, data, row_id=None):
        await super().create(collection, data, row_id)
        raise IntegrityError("duplicate key value violates unique constraint")


class BrokenInsertStore(RowStore):
    async def create(self, collection, data, row_id=None):
        raise IntegrityError("disk full")


# ---------------------------------------------------------------------------
# get_or_create
# ---------------------------------------------------------------------------

def test_get_or_create_quarter_creates_open_row():
    quarter = async_to_sync(get_or_create_quarter)(2025, 2)

    assert quarter.quarter_id == "q2-2025"
    assert quarter.status == Quarter.Status.OPEN
    assert quarter.closed_date is None
    assert quarter.total_revenue == 0


def test_get_or_create_quarter_is_idempotent():
    first = async_to_sync(get_or_create_quarter)(2025, 2)
    second = async_to_sync(get_or_create_quarter)(2025, 2)

    assert first.pk == second.pk
    assert Quarter.objects.count() == 1


def test_get_or_create_quarter_rejects_bad_quarter_number():
    with pytest.raises(InvalidIdError):
        async_to_sync(get_or_create_quarter)(2025, 5)


def test_get_or_create_recovers_from_concurrent_insert():
    quarter = async_to_sync(get_or_create_quarter)(2025, 3, store=RacingStore())

    assert quarter.quarter_id == "q3-2025"
    assert Quarter.objects.filter(quarter_id="q3-2025").count() == 1


def test_get_or_create_reraises_when_nobody_else_inserted():
    with pytest.raises(IntegrityError):
        async_to_sync(get_or_create_quarter)(2025, 3, store=BrokenInsertStore())


def test_get_or_create_current_quarter_uses_clock():
    quarter = async_to_sync(get_or_create_current_quarter)(
        datetime(2026, 8, 20, tzinfo=dt_timezone.utc)
    )

    assert quarter.quarter_id == "q3-2026"


# ---------------------------------------------------------------------------
# get / update
# ---------------------------------------------------------------------------

def test_get_quarter_accepts_upper_case_id():
    async_to_sync(get_or_create_quarter)(2025, 1)

    assert async_to_sync(get_quarter)("Q1-2025").quarter_id == "q1-2025"


def test_get_quarter_missing_raises_not_found():
    with pytest.raises(NotFoundError):
        async_to_sync(get_quarter)("q4-2031")


def test_get_quarter_malformed_id():
    with pytest.raises(InvalidIdError):
        async_to_sync(get_quarter)("2025-q1")


def test_close_stamps_closed_date_once():
    async_to_sync(get_or_create_quarter)(2025, 1)

    closed = async_to_sync(update_quarter)("q1-2025", {"status": "closed"}, now=CLOSE_TIME)
    assert closed.status == Quarter.Status.CLOSED
    assert closed.closed_date == CLOSE_TIME

    # The stamp never moves once set.
    reclosed = async_to_sync(update_quarter)(
        "q1-2025", {"status": "closed"}, now=datetime(2025, 5, 1, tzinfo=dt_timezone.utc)
    )
    assert reclosed.status == Quarter.Status.CLOSED
    assert reclosed.closed_date == CLOSE_TIME
    archived = async_to_sync(update_quarter)(
        "q1-2025",
        {"status": "archived", "closed_date": datetime(2030, 1, 1, tzinfo=dt_timezone.utc)},
    )
    assert archived.status == Quarter.Status.ARCHIVED
    assert archived.closed_date == CLOSE_TIME


def test_close_uses_supplied_closed_date():
    async_to_sync(get_or_create_quarter)(2025, 1)
    stamp = datetime(2025, 3, 31, 18, tzinfo=dt_timezone.utc)

    closed = async_to_sync(update_quarter)("q1-2025", {"status": "closed", "closed_date": stamp})

    assert closed.closed_date == stamp


def test_closed_date_ignored_while_open():
    async_to_sync(get_or_create_quarter)(2025, 1)

    quarter = async_to_sync(update_quarter)(
        "q1-2025", {"closed_date": CLOSE_TIME, "summary": "draft"}
    )

    assert quarter.closed_date is None
    assert Quarter.objects.get(quarter_id="q1-2025").summary == "draft"


def test_open_quarter_can_be_archived_directly():
    async_to_sync(get_or_create_quarter)(2025, 1)

    quarter = async_to_sync(update_quarter)("q1-2025", {"status": "archived"})

    assert quarter.status == Quarter.Status.ARCHIVED
    assert quarter.closed_date is None


@pytest.mark.parametrize(
    "updates",
    [{"status": "open"}, {"status": "closed"}, {"summary": "edited"}],
)
def test_archived_quarter_is_frozen(updates):
    async_to_sync(get_or_create_quarter)(2025, 1)
    async_to_sync(update_quarter)("q1-2025", {"status": "archived"})

    with pytest.raises(InvalidTransitionError):
        async_to_sync(update_quarter)("q1-2025", updates)


def test_closed_quarter_cannot_reopen():
    async_to_sync(get_or_create_quarter)(2025, 1)
    async_to_sync(update_quarter)("q1-2025", {"status": "closed"}, now=CLOSE_TIME)

    with pytest.raises(InvalidTransitionError):
        async_to_sync(update_quarter)("q1-2025", {"status": "open"})


def test_closed_quarter_accepts_updates_that_keep_it_closed():
    async_to_sync(get_or_create_quarter)(2025, 1)
    async_to_sync(update_quarter)("q1-2025", {"status": "closed"}, now=CLOSE_TIME)

    updated = async_to_sync(update_quarter)(
        "q1-2025", {"status": "closed", "summary": "Revenue restated"}
    )

    assert updated.status == Quarter.Status.CLOSED
    assert updated.summary == "Revenue restated"
    assert updated.closed_date == CLOSE_TIME
    assert Quarter.objects.get(quarter_id="q1-2025").summary == "Revenue restated"


def test_unknown_status_is_rejected():
    async_to_sync(get_or_create_quarter)(2025, 1)

    with pytest.raises(InvalidTransitionError):
        async_to_sync(update_quarter)("q1-2025", {"status": "paused"})


@pytest.mark.parametrize("field", ["quarter_id", "year", "created_at", "favourite_colour"])
def test_identity_and_unknown_fields_are_rejected(field):
    async_to_sync(get_or_create_quarter)(2025, 1)

    with pytest.raises(ValueError):
        async_to_sync(update_quarter)("q1-2025", {field: "x"})


def test_update_missing_quarter():
    with pytest.raises(NotFoundError):
        async_to_sync(update_quarter)("q2-2040", {"summary": "x"})


# ---------------------------------------------------------------------------
# targets
# ---------------------------------------------------------------------------

def test_set_targets_stores_decimals_and_clears_none():
    async_to_sync(get_or_create_quarter)(2025, 1)
    async_to_sync(set_quarter_targets)("q1-2025", {"profit_target": "1"})

    quarter = async_to_sync(set_quarter_targets)(
        "q1-2025",
        {"revenue_target": "150000.50", "total_leads_target": 40, "profit_target": None},
    )

    stored = Quarter.objects.get(pk=quarter.pk)
    assert stored.revenue_target == Decimal("150000.50")
    assert stored.total_leads_target == Decimal("40")
    assert stored.profit_target is None


@pytest.mark.parametrize(
    "targets",
    [{"revenue_target": "-1"}, {"revenue_target": "lots"}, {"revenue_target": "NaN"}, {"total_revenue": 5}],
)
def test_set_targets_rejects_bad_input(targets):
    async_to_sync(get_or_create_quarter)(2025, 1)

    with pytest.raises(ValueError):
        async_to_sync(set_quarter_targets)("q1-2025", targets)

    assert Quarter.objects.get(quarter_id="q1-2025").revenue_target is None
