"""Application service: Create Sale use case.

Validates the draft, checks and reserves stock for every catalog product
and persists the sale in ``pendente`` status, all in one unit of work.
Custom items carry no stock; they only set the approval gate.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from decimal import Decimal

from backoffice.application.access import Actor
from backoffice.domain.exceptions import EntityNotFoundError
from backoffice.domain.model.draft import SaleDraft
from backoffice.domain.model.sale import Sale, format_public_id
from backoffice.domain.repository.client_directory import ClientDirectory
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.catalog_ledger import CatalogLedger
from backoffice.domain.service.sale_validation import (
    DEFAULT_PAYMENT_TOLERANCE,
    validate_draft,
)

logger = logging.getLogger(__name__)


class CreateSaleHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clients: ClientDirectory,
        tolerance: Decimal = DEFAULT_PAYMENT_TOLERANCE,
        currency: str = "BRL",
    ) -> None:
        self._uow_factory = uow_factory
        self._clients = clients
        self._tolerance = tolerance
        self._currency = currency

    def handle(
        self,
        actor: Actor,
        client_id: str,
        draft: SaleDraft,
        draft_id: str | None = None,
    ) -> Sale:
        """Create a sale.

        Steps:
        1. Make sure the client exists.
        2. Lock the draft ID (if any) and return the earlier sale on a retry.
        3. Lock every catalog product in the draft, then validate the draft
           against the locked rows.
        4. Reserve the summed quantity per product and persist the sale.
        """
        if not self._clients.exists(client_id):
            raise EntityNotFoundError(f"Client '{client_id}' not found")

        product_ids = {spec.product_id for spec in draft.items if not spec.is_custom}

        with self._uow_factory() as uow:
            if draft_id:
                uow.lock_draft(draft_id)
                existing = uow.sales.get_by_draft_id(draft_id)
                if existing is not None:
                    logger.info("Draft %s already became sale %s", draft_id, existing.public_id)
                    return existing

            uow.lock_products(product_ids)
            validated = validate_draft(
                draft,
                uow.products.get_by_id,
                tolerance=self._tolerance,
                currency=self._currency,
            )

            ledger = CatalogLedger(uow.products, uow.movements)
            ledger.check_available(validated.quantities)

            sale_id = uuid.uuid4().hex
            sale = Sale(
                id=sale_id,
                public_id=format_public_id(uow.next_sale_sequence()),
                client_id=client_id,
                items=validated.items,
                payments=validated.payments,
                discount=validated.discount,
                note=draft.note,
                delivery_date=draft.delivery_date,
                created_by=actor.id,
                draft_id=draft_id,
            )
            ledger.reserve_all(validated.quantities, actor=actor.id, sale_id=sale_id)
            uow.sales.save(sale)
            uow.commit()

        logger.info(
            "Created sale %s for client %s: total %s, requires_approval=%s",
            sale.public_id, client_id, sale.total, sale.requires_approval,
        )
        return sale
