"""Document-backed implementation of the append-only MovementRepository."""

from __future__ import annotations

from datetime import datetime

from backoffice.domain.model.movement import MovementReason, MovementType, StockMovement
from backoffice.domain.repository.movement_repository import MovementRepository
from backoffice.infrastructure.persistence.row_source import RowSource


class DocumentMovementRepository(MovementRepository):

    def __init__(self, source: RowSource) -> None:
        self._source = source

    def append(self, movement: StockMovement) -> None:
        self._source.stage_movement(self._to_raw(movement))

    def list_all(self) -> list[StockMovement]:
        return [self._to_domain(raw) for raw in self._source.all_movements()]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(movement: StockMovement) -> dict:
        return {
            "id": movement.id,
            "product_id": movement.product_id,
            "type": movement.type.value,
            "reason": movement.reason.value,
            "amount": movement.amount,
            "quantity_delta": movement.quantity_delta,
            "reserved_delta": movement.reserved_delta,
            "actor": movement.actor,
            "note": movement.note,
            "sale_id": movement.sale_id,
            "created_at": movement.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockMovement:
        return StockMovement(
            id=raw["id"],
            product_id=raw["product_id"],
            type=MovementType(raw["type"]),
            reason=MovementReason(raw["reason"]),
            amount=raw["amount"],
            quantity_delta=raw["quantity_delta"],
            reserved_delta=raw["reserved_delta"],
            actor=raw.get("actor"),
            note=raw.get("note"),
            sale_id=raw.get("sale_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
