"""Document-backed implementation of ProductRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from backoffice.domain.model.product import Product
from backoffice.domain.model.value_objects import Money
from backoffice.domain.repository.product_repository import ProductRepository
from backoffice.infrastructure.persistence.row_source import RowSource


class DocumentProductRepository(ProductRepository):

    def __init__(self, source: RowSource) -> None:
        self._source = source

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        raw = self._source.get_row("products", product_id)
        return self._to_domain(raw) if raw is not None else None

    def get_by_sku(self, sku: str) -> Product | None:
        wanted = sku.strip().lower()
        for raw in self._source.all_rows("products").values():
            if raw["sku"].lower() == wanted:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._source.all_rows("products").values()]

    def save(self, product: Product) -> None:
        self._source.stage_row("products", product.id, self._to_raw(product))

    def delete(self, product_id: str) -> None:
        self._source.stage_row("products", product_id, None)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "price": str(product.price.amount),
            "factory_cost": str(product.factory_cost.amount),
            "currency": product.price.currency,
            "quantity": product.quantity,
            "reserved": product.reserved,
            "image_ref": product.image_ref,
            "created_at": product.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        currency = raw.get("currency", "BRL")
        return Product(
            id=raw["id"],
            name=raw["name"],
            sku=raw["sku"],
            price=Money(Decimal(raw["price"]), currency),
            factory_cost=Money(Decimal(raw.get("factory_cost", "0")), currency),
            quantity=raw.get("quantity", 0),
            reserved=raw.get("reserved", 0),
            image_ref=raw.get("image_ref"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
