"""Application service: Approve Sale use case (admin only).

Clears the approval gate on the sale and its custom items.  No ledger
effect.  Approving a sale that needs no approval is a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from backoffice.application.access import Actor, Role, require_role
from backoffice.application.loading import load_sale_for_update
from backoffice.domain.model.sale import Sale
from backoffice.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ApproveSaleHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, actor: Actor, sale_id: str) -> Sale:
        require_role(actor, Role.ADMIN)

        with self._uow_factory() as uow:
            sale = load_sale_for_update(uow, sale_id)
            if not sale.approve():
                logger.info("Sale %s needs no approval; nothing to do", sale.public_id)
                return sale
            uow.sales.save(sale)
            uow.commit()

        logger.info("Sale %s approved by %s", sale.public_id, actor.id)
        return sale
