"""Product aggregate: a catalog entry and its stock counters.

``quantity`` is what is on hand and still free to sell; ``reserved`` is
what pending sales have already taken out of ``quantity`` but not yet
delivered.  The counters are only ever changed through the methods below,
and those are only called by the CatalogLedger domain service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from backoffice.domain.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    InvariantViolation,
)
from backoffice.domain.model.value_objects import Money


@dataclass
class Product:
    """Aggregate root for a catalog product.

    Invariants:
    - ``quantity`` is never negative
    - ``reserved`` is never negative
    """

    id: str
    name: str
    sku: str
    price: Money
    factory_cost: Money
    quantity: int = 0
    reserved: int = 0
    image_ref: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return self.quantity == 0 and self.reserved == 0

    # --- Ledger primitives ----------------------------------------------------

    def reserve(self, amount: int) -> None:
        """Move *amount* from on-hand to reserved."""
        _require_positive(amount, "Reservation")
        if amount > self.quantity:
            raise InsufficientStock(
                f"Insufficient stock for {self.name} "
                f"(need {amount}, have {self.quantity} available)"
            )
        self.quantity -= amount
        self.reserved += amount

    def release(self, amount: int) -> None:
        """Drop *amount* from reserved; the goods have left with the customer."""
        _require_positive(amount, "Release")
        if amount > self.reserved:
            raise InvariantViolation(
                f"Cannot release {amount} of {self.name} "
                f"- only {self.reserved} currently reserved"
            )
        self.reserved -= amount

    def restore(self, amount: int) -> None:
        """Undo a reservation: reserved goes back to on-hand."""
        _require_positive(amount, "Restore")
        if amount > self.reserved:
            raise InvariantViolation(
                f"Cannot restore {amount} of {self.name} "
                f"- only {self.reserved} currently reserved"
            )
        self.reserved -= amount
        self.quantity += amount

    def receive(self, amount: int) -> None:
        """Manual stock entry (entrada)."""
        _require_positive(amount, "Entry")
        self.quantity += amount

    def withdraw(self, amount: int) -> None:
        """Manual stock removal (saida); cannot touch reserved goods."""
        _require_positive(amount, "Withdrawal")
        if amount > self.quantity:
            raise InsufficientStock(
                f"Insufficient stock for {self.name} to withdraw {amount} "
                f"(have {self.quantity} available)"
            )
        self.quantity -= amount


def _require_positive(amount: int, what: str) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidQuantity(f"{what} quantity must be a positive integer")
