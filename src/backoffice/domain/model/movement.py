"""StockMovement: one immutable entry in the movement log.

Every change to a product's counters produces exactly one movement.
``quantity_delta`` and ``reserved_delta`` carry the effect on the product,
so the log can be replayed without knowing which operation wrote it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MovementType(Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"


class MovementReason(Enum):
    INITIAL_STOCK = "initial_stock"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    SALE_RESERVATION = "sale_reservation"
    RESERVATION_INCREASE = "reservation_increase"
    RESERVATION_DECREASE = "reservation_decrease"
    DELIVERY_RELEASE = "delivery_release"
    CANCELLATION_RESTORE = "cancellation_restore"


@dataclass(frozen=True)
class StockMovement:
    product_id: str
    type: MovementType
    reason: MovementReason
    amount: int
    quantity_delta: int
    reserved_delta: int
    actor: str | None = None
    note: str | None = None
    sale_id: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def replay_movements(movements: list[StockMovement]) -> dict[str, tuple[int, int]]:
    """Fold movements into ``{product_id: (quantity, reserved)}``.

    Starts every product from zero, so it only reproduces the live
    counters for products whose whole history is in *movements*.
    """
    state: dict[str, tuple[int, int]] = {}
    for movement in movements:
        quantity, reserved = state.get(movement.product_id, (0, 0))
        state[movement.product_id] = (
            quantity + movement.quantity_delta,
            reserved + movement.reserved_delta,
        )
    return state
