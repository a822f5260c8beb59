"""Application service: stock queries (catalog listing and stock levels)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from backoffice.domain.model.product import Product
from backoffice.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class StockLineDTO:
    product_id: str
    product_name: str
    sku: str
    quantity: int
    reserved: int


class ShowStockHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[StockLineDTO]:
        with self._uow_factory() as uow:
            products = uow.products.list_all()
        return [
            StockLineDTO(
                product_id=p.id,
                product_name=p.name,
                sku=p.sku,
                quantity=p.quantity,
                reserved=p.reserved,
            )
            for p in sorted(products, key=lambda p: p.name.lower())
        ]


class ListProductsHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, search: str | None = None) -> list[Product]:
        """Products whose name or SKU contains *search*, newest first."""
        with self._uow_factory() as uow:
            products = uow.products.list_all()
        needle = (search or "").strip().lower()
        if needle:
            products = [
                p for p in products
                if needle in p.name.lower() or needle in p.sku.lower()
            ]
        return sorted(products, key=lambda p: p.created_at, reverse=True)
