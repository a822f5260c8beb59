"""Sale drafts — unvalidated input for creating or editing a sale.

Amounts are kept as the caller sent them (str, int, float or Decimal);
``validate_draft`` turns them into Money and rejects bad values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

Amount = str | int | float | Decimal


@dataclass(frozen=True)
class ItemSpec:
    """One requested line.

    With ``product_id`` it is a catalog item and ``unit_price`` defaults to
    the product's current price.  Without it, it is a custom item described
    by ``custom_name`` / ``custom_sku``.
    """

    quantity: int
    product_id: str | None = None
    custom_name: str | None = None
    custom_sku: str | None = None
    unit_price: Amount | None = None
    discount: Amount = "0"

    @property
    def is_custom(self) -> bool:
        return not self.product_id

    @staticmethod
    def catalog(product_id: str, quantity: int, unit_price: Amount | None = None,
                discount: Amount = "0") -> ItemSpec:
        return ItemSpec(quantity=quantity, product_id=product_id,
                        unit_price=unit_price, discount=discount)

    @staticmethod
    def custom(name: str, quantity: int, unit_price: Amount, discount: Amount = "0",
               sku: str | None = None) -> ItemSpec:
        return ItemSpec(quantity=quantity, custom_name=name, custom_sku=sku,
                        unit_price=unit_price, discount=discount)


@dataclass(frozen=True)
class PaymentSpec:
    method: str
    amount: Amount
    installments: int = 1


@dataclass(frozen=True)
class SaleDraft:
    items: list[ItemSpec]
    payments: list[PaymentSpec] = field(default_factory=list)
    discount: Amount = "0"
    note: str | None = None
    delivery_date: date | None = None
