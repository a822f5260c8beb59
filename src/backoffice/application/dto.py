"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from backoffice.domain.model.movement import StockMovement
from backoffice.domain.model.product import Product
from backoffice.domain.model.sale import CatalogItem, Sale


@dataclass(frozen=True)
class SaleItemDTO:
    """Output: a single line item as displayed to the user."""

    name: str
    sku: str
    quantity: int
    unit_price: str  # formatted, e.g. "R$ 15.00"
    discount: str
    line_total: str
    is_custom: bool
    awaiting_approval: bool


@dataclass(frozen=True)
class PaymentDTO:
    method: str
    amount: str
    installments: int


@dataclass(frozen=True)
class SaleDTO:
    """Output: a complete sale as displayed to the user."""

    id: str
    public_id: str
    client_id: str
    client_name: str | None
    status: str
    requires_approval: bool
    items: list[SaleItemDTO]
    payments: list[PaymentDTO]
    subtotal: str
    discount: str
    total: str
    note: str | None
    delivery_date: str | None
    created_at: str


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    sku: str
    price: str
    factory_cost: str | None  # admins only
    quantity: int
    reserved: int


@dataclass(frozen=True)
class MovementDTO:
    product_id: str
    type: str
    reason: str
    amount: int
    actor: str | None
    note: str | None
    sale_id: str | None
    created_at: str


def to_sale_dto(sale: Sale, client_name: str | None = None) -> SaleDTO:
    totals = sale.totals
    return SaleDTO(
        id=sale.id,
        public_id=sale.public_id,
        client_id=sale.client_id,
        client_name=client_name,
        status=sale.status.value,
        requires_approval=sale.requires_approval,
        items=[
            SaleItemDTO(
                name=item.display_name,
                sku=(item.sku or "-"),
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                discount=str(item.discount),
                line_total=str(item.line_total),
                is_custom=not isinstance(item, CatalogItem),
                awaiting_approval=item.requires_approval,
            )
            for item in sale.items
        ],
        payments=[
            PaymentDTO(method=p.method.label, amount=str(p.amount), installments=p.installments)
            for p in sale.payments
        ],
        subtotal=str(totals.subtotal),
        discount=str(totals.discount),
        total=str(totals.total),
        note=sale.note,
        delivery_date=sale.delivery_date.isoformat() if sale.delivery_date else None,
        created_at=sale.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def to_product_dto(product: Product, include_cost: bool = False) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        sku=product.sku,
        price=str(product.price),
        factory_cost=str(product.factory_cost) if include_cost else None,
        quantity=product.quantity,
        reserved=product.reserved,
    )


def to_movement_dto(movement: StockMovement) -> MovementDTO:
    return MovementDTO(
        product_id=movement.product_id,
        type=movement.type.value,
        reason=movement.reason.value,
        amount=movement.amount,
        actor=movement.actor,
        note=movement.note,
        sale_id=movement.sale_id,
        created_at=movement.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
