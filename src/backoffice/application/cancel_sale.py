"""Application service: Cancel Sale use case (admin only).

Restores every reserved unit back to on-hand quantity and moves the
sale to ``cancelada``.  Delivered or already cancelled sales are final.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from backoffice.application.access import Actor, Role, require_role
from backoffice.application.loading import load_sale_for_update
from backoffice.domain.model.sale import Sale
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.catalog_ledger import CatalogLedger

logger = logging.getLogger(__name__)


class CancelSaleHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, actor: Actor, sale_id: str) -> Sale:
        require_role(actor, Role.ADMIN)

        with self._uow_factory() as uow:
            sale = load_sale_for_update(uow, sale_id)
            sale.cancel()

            quantities = sale.reserved_quantities()
            uow.lock_products(quantities)
            ledger = CatalogLedger(uow.products, uow.movements)
            for product_id in sorted(quantities):
                ledger.restore(product_id, quantities[product_id], actor=actor.id, sale_id=sale.id)

            uow.sales.save(sale)
            uow.commit()

        logger.info("Sale %s cancelled", sale.public_id)
        return sale
