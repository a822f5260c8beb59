"""Domain service: Catalog Ledger.

The only code path allowed to change a product's ``quantity`` or
``reserved`` counters.  Each operation mutates one product and appends
exactly one StockMovement describing the effect, so the movement log is
a faithful event stream of the ledger.

The ledger does not lock or commit.  Callers run it inside a UnitOfWork
and must hold the row lock of every product they pass in; the unit of
work makes the counter change and its movement atomic.
"""

from __future__ import annotations

import logging

from backoffice.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    InvalidQuantity,
    InvalidState,
    InvariantViolation,
)
from backoffice.domain.model.movement import MovementReason, MovementType, StockMovement
from backoffice.domain.model.product import Product
from backoffice.domain.repository.movement_repository import MovementRepository
from backoffice.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class CatalogLedger:

    def __init__(
        self,
        product_repo: ProductRepository,
        movement_repo: MovementRepository,
    ) -> None:
        self._product_repo = product_repo
        self._movement_repo = movement_repo

    # --- Reservation primitives -----------------------------------------------

    def reserve(
        self,
        product_id: str,
        qty: int,
        *,
        actor: str | None = None,
        sale_id: str | None = None,
        reason: MovementReason = MovementReason.SALE_RESERVATION,
    ) -> Product:
        """``quantity -= qty; reserved += qty``.  Fails with InsufficientStock."""
        product = self._load(product_id)
        product.reserve(qty)
        return self._record(
            product, MovementType.SAIDA, reason, qty,
            quantity_delta=-qty, reserved_delta=qty,
            actor=actor, sale_id=sale_id,
        )

    def release(
        self,
        product_id: str,
        qty: int,
        *,
        actor: str | None = None,
        sale_id: str | None = None,
    ) -> Product:
        """``reserved -= qty`` on delivery; on-hand was consumed at reservation."""
        product = self._load(product_id)
        try:
            product.release(qty)
        except InvariantViolation:
            logger.critical(
                "Ledger invariant violated releasing %s x%d for sale %s (reserved=%d)",
                product_id, qty, sale_id, product.reserved,
            )
            raise
        return self._record(
            product, MovementType.SAIDA, MovementReason.DELIVERY_RELEASE, qty,
            quantity_delta=0, reserved_delta=-qty,
            actor=actor, sale_id=sale_id,
        )

    def restore(
        self,
        product_id: str,
        qty: int,
        *,
        actor: str | None = None,
        sale_id: str | None = None,
        reason: MovementReason = MovementReason.CANCELLATION_RESTORE,
    ) -> Product:
        """``reserved -= qty; quantity += qty``, undoing a reserve."""
        product = self._load(product_id)
        try:
            product.restore(qty)
        except InvariantViolation:
            logger.critical(
                "Ledger invariant violated restoring %s x%d for sale %s (reserved=%d)",
                product_id, qty, sale_id, product.reserved,
            )
            raise
        return self._record(
            product, MovementType.ENTRADA, reason, qty,
            quantity_delta=qty, reserved_delta=-qty,
            actor=actor, sale_id=sale_id,
        )

    def reserve_all(
        self,
        quantities: dict[str, int],
        *,
        actor: str | None = None,
        sale_id: str | None = None,
    ) -> None:
        """Reserve several products, all or nothing.

        Phase 1 checks every product before Phase 2 touches any of them,
        so a shortage never leaves a partial reservation behind.
        """
        self.check_available(quantities)
        for product_id in sorted(quantities):
            self.reserve(product_id, quantities[product_id], actor=actor, sale_id=sale_id)

    def check_available(
        self,
        requested: dict[str, int],
        already_held: dict[str, int] | None = None,
    ) -> None:
        """Raise InsufficientStock unless every request fits.

        *already_held* is what the sale being edited has reserved; it counts
        as available to that same sale.
        """
        already_held = already_held or {}
        for product_id in sorted(requested):
            product = self._load(product_id)
            available = product.quantity + already_held.get(product_id, 0)
            if requested[product_id] > available:
                raise InsufficientStock(
                    f"Insufficient stock for {product.name} "
                    f"(need {requested[product_id]}, have {available} available)"
                )

    # --- Manual movements -----------------------------------------------------

    def adjust(
        self,
        product_id: str,
        movement_type: MovementType,
        amount: int,
        *,
        actor: str | None = None,
        note: str | None = None,
    ) -> Product:
        """Manual entrada / saida.  A saida may not dig into reserved goods."""
        product = self._load(product_id)
        if movement_type is MovementType.ENTRADA:
            product.receive(amount)
            delta = amount
        else:
            product.withdraw(amount)
            delta = -amount
        return self._record(
            product, movement_type, MovementReason.MANUAL_ADJUSTMENT, amount,
            quantity_delta=delta, reserved_delta=0,
            actor=actor, note=note,
        )

    def register(self, product: Product, *, actor: str | None = None) -> Product:
        """Add a new product; any starting quantity becomes an entrada."""
        if product.reserved != 0:
            raise InvariantViolation("A new product cannot start with reservations")
        if product.quantity < 0:
            raise InvalidQuantity("Initial quantity cannot be negative")
        self._product_repo.save(product)
        if product.quantity > 0:
            self._movement_repo.append(
                StockMovement(
                    product_id=product.id,
                    type=MovementType.ENTRADA,
                    reason=MovementReason.INITIAL_STOCK,
                    amount=product.quantity,
                    quantity_delta=product.quantity,
                    reserved_delta=0,
                    actor=actor,
                )
            )
        logger.info("Registered product %s (%s) with %d on hand", product.id, product.sku, product.quantity)
        return product

    def delete_product(self, product_id: str) -> None:
        """Remove a product; only allowed once both counters are zero."""
        product = self._load(product_id)
        if not product.is_empty:
            raise InvalidState(
                f"Only products with zero stock can be removed "
                f"({product.name}: quantity={product.quantity}, reserved={product.reserved})"
            )
        self._product_repo.delete(product_id)
        logger.info("Deleted product %s (%s)", product.id, product.sku)

    # --- Internal helpers -----------------------------------------------------

    def _load(self, product_id: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id}' not found")
        return product

    def _record(
        self,
        product: Product,
        movement_type: MovementType,
        reason: MovementReason,
        amount: int,
        *,
        quantity_delta: int,
        reserved_delta: int,
        actor: str | None = None,
        note: str | None = None,
        sale_id: str | None = None,
    ) -> Product:
        self._product_repo.save(product)
        self._movement_repo.append(
            StockMovement(
                product_id=product.id,
                type=movement_type,
                reason=reason,
                amount=amount,
                quantity_delta=quantity_delta,
                reserved_delta=reserved_delta,
                actor=actor,
                note=note,
                sale_id=sale_id,
            )
        )
        logger.info(
            "Ledger %s %s: quantity %+d, reserved %+d -> (%d, %d)",
            reason.value, product.id, quantity_delta, reserved_delta,
            product.quantity, product.reserved,
        )
        return product
