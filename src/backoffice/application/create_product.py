"""Application service: Create Product use case (admin only)."""

from __future__ import annotations

import random
import uuid
from collections.abc import Callable
from decimal import Decimal, InvalidOperation

from backoffice.application.access import Actor, Role, require_role
from backoffice.domain.exceptions import InvalidQuantity, ValidationError
from backoffice.domain.model.draft import Amount
from backoffice.domain.model.product import Product
from backoffice.domain.model.value_objects import Money
from backoffice.domain.repository.product_repository import ProductRepository
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.catalog_ledger import CatalogLedger

MAX_SKU_ATTEMPTS = 20


def generate_sku() -> str:
    return f"SKU-{random.randint(10000, 99999)}"


class CreateProductHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        currency: str = "BRL",
    ) -> None:
        self._uow_factory = uow_factory
        self._currency = currency

    def handle(
        self,
        actor: Actor,
        name: str,
        price: Amount,
        factory_cost: Amount = "0",
        initial_quantity: int = 0,
        sku: str | None = None,
        image_ref: str | None = None,
    ) -> Product:
        """Add a product to the catalog; any initial quantity is an entrada."""
        require_role(actor, Role.ADMIN)

        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationError("Product name must have at least 2 characters")
        if not isinstance(initial_quantity, int) or isinstance(initial_quantity, bool) \
                or initial_quantity < 0:
            raise InvalidQuantity("Initial quantity must be a non-negative integer")
        sku = (sku or "").strip() or None
        if sku is not None and len(sku) < 2:
            raise ValidationError("SKU must have at least 2 characters")

        with self._uow_factory() as uow:
            if sku is None:
                sku = self._unused_sku(uow.products)
            uow.lock_sku(sku)
            if uow.products.get_by_sku(sku) is not None:
                raise ValidationError(f"SKU '{sku}' is already in use")

            product = Product(
                id=uuid.uuid4().hex,
                name=name,
                sku=sku,
                price=self._money(price, "price"),
                factory_cost=self._money(factory_cost, "factory cost"),
                quantity=initial_quantity,
                image_ref=image_ref,
            )
            uow.lock_products([product.id])
            CatalogLedger(uow.products, uow.movements).register(product, actor=actor.id)
            uow.commit()
        return product

    # --- Internal helpers -----------------------------------------------------

    def _money(self, value: Amount, what: str) -> Money:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid {what}: {value!r}") from None
        if not amount.is_finite() or amount < 0:
            raise ValidationError(f"The {what} must be zero or more")
        return Money(amount, self._currency)

    @staticmethod
    def _unused_sku(products: ProductRepository) -> str:
        for _ in range(MAX_SKU_ATTEMPTS):
            candidate = generate_sku()
            if products.get_by_sku(candidate) is None:
                return candidate
        raise ValidationError("Could not generate a free SKU; please provide one")
