"""Application service: Adjust Stock use case (admin only)."""

from __future__ import annotations

from collections.abc import Callable

from backoffice.application.access import Actor, Role, require_role
from backoffice.domain.exceptions import ValidationError
from backoffice.domain.model.movement import MovementType
from backoffice.domain.model.product import Product
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.catalog_ledger import CatalogLedger


def parse_movement_type(raw: str | MovementType) -> MovementType:
    if isinstance(raw, MovementType):
        return raw
    try:
        return MovementType((raw or "").strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown movement type {raw!r}; expected 'entrada' or 'saida'"
        ) from None


class AdjustStockHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        actor: Actor,
        product_id: str,
        movement_type: str | MovementType,
        amount: int,
        note: str | None = None,
    ) -> Product:
        """Record a manual entrada or saida against a product."""
        require_role(actor, Role.ADMIN)
        kind = parse_movement_type(movement_type)

        with self._uow_factory() as uow:
            uow.lock_products([product_id])
            ledger = CatalogLedger(uow.products, uow.movements)
            product = ledger.adjust(product_id, kind, amount, actor=actor.id, note=note)
            uow.commit()
        return product
