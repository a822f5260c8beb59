"""Helpers shared by the handlers that mutate a sale."""

from __future__ import annotations

from backoffice.domain.exceptions import EntityNotFoundError
from backoffice.domain.model.sale import Sale
from backoffice.domain.repository.unit_of_work import UnitOfWork


def load_sale_for_update(uow: UnitOfWork, sale_id: str) -> Sale:
    """Resolve *sale_id* (internal ID or public code), lock it, re-read it.

    The lock is always keyed by the internal ID so two callers using
    different identifiers for the same sale still serialize.
    """
    found = uow.sales.get_by_id(sale_id)
    if found is None:
        raise EntityNotFoundError(f"Sale '{sale_id}' not found")
    uow.lock_sale(found.id)
    sale = uow.sales.get_by_id(found.id)
    if sale is None:
        raise EntityNotFoundError(f"Sale '{sale_id}' not found")
    return sale
