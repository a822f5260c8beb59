"""Application service: Edit Sale use case (admin only).

Editing is a diff, not release-then-reserve: the per-product difference
between the old and the new composition is computed first, checked
against ``quantity + what this sale already holds``, and only then
applied to the ledger.  Unchanged products are never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from backoffice.application.access import Actor, Role, require_role
from backoffice.application.loading import load_sale_for_update
from backoffice.domain.exceptions import InvalidState
from backoffice.domain.model.draft import SaleDraft
from backoffice.domain.model.movement import MovementReason
from backoffice.domain.model.sale import Sale, SaleStatus
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.catalog_ledger import CatalogLedger
from backoffice.domain.service.sale_validation import (
    DEFAULT_PAYMENT_TOLERANCE,
    validate_draft,
)

logger = logging.getLogger(__name__)


def reservation_delta(old: dict[str, int], new: dict[str, int]) -> dict[str, int]:
    """Per-product change in reserved quantity; zero entries are dropped."""
    delta = {pid: new.get(pid, 0) - old.get(pid, 0) for pid in set(old) | set(new)}
    return {pid: qty for pid, qty in delta.items() if qty != 0}


class EditSaleHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        tolerance: Decimal = DEFAULT_PAYMENT_TOLERANCE,
        currency: str = "BRL",
    ) -> None:
        self._uow_factory = uow_factory
        self._tolerance = tolerance
        self._currency = currency

    def handle(self, actor: Actor, sale_id: str, draft: SaleDraft) -> Sale:
        require_role(actor, Role.ADMIN)

        with self._uow_factory() as uow:
            sale = load_sale_for_update(uow, sale_id)
            if sale.status is not SaleStatus.PENDENTE:
                raise InvalidState(
                    f"Cannot edit sale {sale.public_id} - "
                    f"current status is {sale.status.value}, expected pendente"
                )

            old = sale.reserved_quantities()
            new_ids = {spec.product_id for spec in draft.items if not spec.is_custom}
            uow.lock_products(set(old) | new_ids)

            validated = validate_draft(
                draft,
                uow.products.get_by_id,
                tolerance=self._tolerance,
                currency=self._currency,
            )
            new = validated.quantities

            ledger = CatalogLedger(uow.products, uow.movements)
            ledger.check_available(new, already_held=old)

            for product_id, qty in sorted(reservation_delta(old, new).items()):
                if qty > 0:
                    ledger.reserve(
                        product_id, qty, actor=actor.id, sale_id=sale.id,
                        reason=MovementReason.RESERVATION_INCREASE,
                    )
                else:
                    ledger.restore(
                        product_id, -qty, actor=actor.id, sale_id=sale.id,
                        reason=MovementReason.RESERVATION_DECREASE,
                    )

            sale.replace_contents(
                items=validated.items,
                payments=validated.payments,
                discount=validated.discount,
                note=draft.note,
                delivery_date=draft.delivery_date,
            )
            uow.sales.save(sale)
            uow.commit()

        logger.info(
            "Edited sale %s: total %s, requires_approval=%s",
            sale.public_id, sale.total, sale.requires_approval,
        )
        return sale
