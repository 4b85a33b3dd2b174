"""Collection-keyed async gateway over the transactional tables.

The quarterly workflow never imports another app's models directly; it talks
to named collections (``"expenses"``, ``"invoices"``...) through a
:class:`RowStore`.  Filters are plain Django field lookups, e.g.::

    await store.list("expenses", {"date__range": (start, end)}, limit=1000)
    await store.count("leads", {"status__iexact": "converted"})

Collection names resolve to model labels through the
``ROW_STORE_COLLECTIONS`` setting, so a test or a deployment can point a
collection at another model without touching the services.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from asgiref.sync import sync_to_async
from django.apps import apps
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction

from core.exceptions import NotFoundError, UnknownCollectionError

DEFAULT_COLLECTIONS = {
    "quarters": "quarters.Quarter",
    "leads": "leads.Lead",
    "clients": "clients.Client",
    "invoices": "invoices.Invoice",
    "expenses": "expenses.Expense",
    "employees": "hrm.Employee",
    "salary_payments": "hrm.SalaryPayment",
    "bonuses": "hrm.Bonus",
}


class RowStore:
    """Async list/get/create/update access to named collections."""

    def __init__(self, collections: Mapping[str, str] | None = None, using: str | None = None) -> None:
        if collections is None:
            collections = getattr(settings, "ROW_STORE_COLLECTIONS", DEFAULT_COLLECTIONS)
        self._collections = dict(collections)
        self.using = using

    def model_for(self, collection: str) -> type[models.Model]:
        try:
            label = self._collections[collection]
        except KeyError:
            raise UnknownCollectionError(f"Unknown collection: {collection}") from None
        return apps.get_model(label)

    def _queryset(self, collection, filters=None, order_by=None):
        qs = self.model_for(collection)._default_manager.db_manager(self.using).all()
        if filters:
            qs = qs.filter(**filters)
        if order_by:
            qs = qs.order_by(*order_by)
        return qs

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def list(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        order_by: Iterable[str] | None = None,
    ) -> list:
        qs = self._queryset(collection, filters, order_by)
        if limit is not None:
            qs = qs[:limit]
        return [row async for row in qs]

    async def get(self, collection: str, row_id) -> models.Model:
        model = self.model_for(collection)
        try:
            return await model._default_manager.db_manager(self.using).aget(pk=row_id)
        except (model.DoesNotExist, ValidationError, ValueError) as exc:
            raise NotFoundError(f"{collection} row {row_id} does not exist") from exc

    async def create(self, collection: str, data: Mapping[str, Any], row_id=None) -> models.Model:
        model = self.model_for(collection)
        values = dict(data)
        if row_id is not None:
            values["pk"] = row_id
        return await sync_to_async(self._create_row)(model, values)

    async def update(self, collection: str, row_id, data: Mapping[str, Any]) -> models.Model:
        row = await self.get(collection, row_id)
        update_fields = list(data)
        for field, value in data.items():
            setattr(row, field, value)
        if any(f.name == "updated_at" for f in row._meta.concrete_fields):
            update_fields.append("updated_at")
        await row.asave(using=self.using, update_fields=update_fields)
        return row

    # ------------------------------------------------------------------
    # Database-side totals
    # ------------------------------------------------------------------

    async def count(self, collection: str, filters: Mapping[str, Any] | None = None) -> int:
        return await self._queryset(collection, filters).acount()

    async def aggregate(self, collection: str, filters: Mapping[str, Any] | None = None, **aggregates) -> dict:
        return await self._queryset(collection, filters).aaggregate(**aggregates)

    def _create_row(self, model, values):
        # Savepoint so a unique-constraint violation leaves the outer
        # transaction usable for the caller's recovery query.
        with transaction.atomic(using=self.using):
            return model._default_manager.db_manager(self.using).create(**values)


def get_row_store() -> RowStore:
    return RowStore()
