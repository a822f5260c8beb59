"""Abstract repository for the append-only movement log."""

from __future__ import annotations

from abc import ABC, abstractmethod

from backoffice.domain.model.movement import StockMovement


class MovementRepository(ABC):
    """Append-only: no update or delete."""

    @abstractmethod
    def append(self, movement: StockMovement) -> None:
        """Record a movement."""

    @abstractmethod
    def list_all(self) -> list[StockMovement]:
        """Return every movement in insertion order."""

    def list_for_product(self, product_id: str) -> list[StockMovement]:
        return [m for m in self.list_all() if m.product_id == product_id]
