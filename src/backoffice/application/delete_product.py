"""Application service: Delete Product use case (admin only)."""

from __future__ import annotations

from collections.abc import Callable

from backoffice.application.access import Actor, Role, require_role
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.catalog_ledger import CatalogLedger


class DeleteProductHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, actor: Actor, product_id: str) -> None:
        """Only products with quantity == 0 and reserved == 0 can go."""
        require_role(actor, Role.ADMIN)

        with self._uow_factory() as uow:
            uow.lock_products([product_id])
            CatalogLedger(uow.products, uow.movements).delete_product(product_id)
            uow.commit()
