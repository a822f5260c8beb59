"""Document-backed implementation of SaleRepository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from backoffice.domain.model.sale import (
    CatalogItem,
    CustomItem,
    LineItem,
    Payment,
    PaymentMethod,
    Sale,
    SaleStatus,
)
from backoffice.domain.model.value_objects import Money, Quantity
from backoffice.domain.repository.sale_repository import SaleRepository
from backoffice.infrastructure.persistence.row_source import RowSource


class DocumentSaleRepository(SaleRepository):

    def __init__(self, source: RowSource) -> None:
        self._source = source

    # --- SaleRepository interface ---------------------------------------------

    def get_by_id(self, sale_id: str) -> Sale | None:
        raw = self._source.get_row("sales", sale_id)
        if raw is None:
            wanted = sale_id.strip().upper()
            raw = next(
                (r for r in self._source.all_rows("sales").values()
                 if r["public_id"].upper() == wanted),
                None,
            )
        return self._to_domain(raw) if raw is not None else None

    def get_by_draft_id(self, draft_id: str) -> Sale | None:
        for raw in self._source.all_rows("sales").values():
            if raw.get("draft_id") == draft_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Sale]:
        return [self._to_domain(raw) for raw in self._source.all_rows("sales").values()]

    def save(self, sale: Sale) -> None:
        self._source.stage_row("sales", sale.id, self._to_raw(sale))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(sale: Sale) -> dict:
        totals = sale.totals
        return {
            "id": sale.id,
            "public_id": sale.public_id,
            "client_id": sale.client_id,
            "status": sale.status.value,
            "requires_approval": sale.requires_approval,
            "currency": sale.discount.currency,
            "discount": str(sale.discount.amount),
            "value": str(totals.total.amount),
            "note": sale.note,
            "delivery_date": sale.delivery_date.isoformat() if sale.delivery_date else None,
            "created_by": sale.created_by,
            "draft_id": sale.draft_id,
            "created_at": sale.created_at.isoformat(),
            "updated_at": sale.updated_at.isoformat() if sale.updated_at else None,
            "items": [_item_to_raw(item) for item in sale.items],
            "payments": [
                {
                    "id": p.id,
                    "method": p.method.value,
                    "amount": str(p.amount.amount),
                    "installments": p.installments,
                }
                for p in sale.payments
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Sale:
        currency = raw.get("currency", "BRL")
        return Sale(
            id=raw["id"],
            public_id=raw["public_id"],
            client_id=raw["client_id"],
            items=[_item_to_domain(i, currency) for i in raw["items"]],
            payments=[
                Payment(
                    id=p["id"],
                    method=PaymentMethod(p["method"]),
                    amount=Money(Decimal(p["amount"]), currency),
                    installments=p.get("installments", 1),
                )
                for p in raw["payments"]
            ],
            discount=Money(Decimal(raw["discount"]), currency),
            note=raw.get("note"),
            delivery_date=date.fromisoformat(raw["delivery_date"]) if raw.get("delivery_date") else None,
            status=SaleStatus(raw["status"]),
            created_by=raw.get("created_by"),
            draft_id=raw.get("draft_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]) if raw.get("updated_at") else None,
        )


def _item_to_raw(item: LineItem) -> dict:
    common = {
        "quantity": item.quantity.value,
        "unit_price": str(item.unit_price.amount),
        "discount": str(item.discount.amount),
    }
    if isinstance(item, CustomItem):
        return {
            "kind": "custom",
            "custom_name": item.name,
            "custom_sku": item.sku,
            "requires_approval": item.requires_approval,
            **common,
        }
    return {
        "kind": "catalog",
        "product_id": item.product_id,
        "product_name": item.product_name,
        "sku": item.sku,
        **common,
    }


def _item_to_domain(raw: dict, currency: str) -> LineItem:
    quantity = Quantity(raw["quantity"])
    unit_price = Money(Decimal(raw["unit_price"]), currency)
    discount = Money(Decimal(raw.get("discount", "0")), currency)
    if raw["kind"] == "custom":
        return CustomItem(
            name=raw["custom_name"],
            sku=raw.get("custom_sku"),
            quantity=quantity,
            unit_price=unit_price,
            discount=discount,
            requires_approval=raw.get("requires_approval", True),
        )
    return CatalogItem(
        product_id=raw["product_id"],
        product_name=raw["product_name"],
        sku=raw["sku"],
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
    )
