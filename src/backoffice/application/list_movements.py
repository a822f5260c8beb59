"""Application service: List Movements use case (query)."""

from __future__ import annotations

from collections.abc import Callable

from backoffice.application.adjust_stock import parse_movement_type
from backoffice.domain.model.movement import MovementType, StockMovement
from backoffice.domain.repository.unit_of_work import UnitOfWork


class ListMovementsHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        movement_type: str | MovementType | None = None,
        product_id: str | None = None,
    ) -> list[StockMovement]:
        """Movement history, newest first."""
        kind = parse_movement_type(movement_type) if movement_type else None
        with self._uow_factory() as uow:
            if product_id is not None:
                movements = uow.movements.list_for_product(product_id)
            else:
                movements = uow.movements.list_all()
        if kind is not None:
            movements = [m for m in movements if m.type is kind]
        # Stable sort keeps insertion order among equal timestamps.
        return list(reversed(sorted(movements, key=lambda m: m.created_at)))
