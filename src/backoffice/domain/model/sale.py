"""Sale aggregate — one customer order.

The Sale owns its line items and payments.  A line item is either a
``CatalogItem`` (linked to a Product, consumes stock) or a ``CustomItem``
(free-text, no stock linkage, needs administrator approval).

Lifecycle::

    pendente --deliver--> entregue
    pendente --cancel---> cancelada

Both targets are terminal.  ``requires_approval`` is orthogonal to the
status and blocks delivery until every custom item has been approved.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Union

from backoffice.domain.exceptions import ApprovalRequired, InvalidPayment, InvalidState
from backoffice.domain.model.value_objects import Money, Quantity


class SaleStatus(Enum):
    PENDENTE = "pendente"
    ENTREGUE = "entregue"
    CANCELADA = "cancelada"

    @property
    def is_terminal(self) -> bool:
        return self is not SaleStatus.PENDENTE


class PaymentMethod(Enum):
    PIX = "PIX"
    CARTAO_CREDITO = "CARTAO_CREDITO"
    CARTAO_DEBITO = "CARTAO_DEBITO"
    DINHEIRO = "DINHEIRO"

    @property
    def label(self) -> str:
        return _METHOD_LABELS[self]

    @staticmethod
    def parse(raw: str) -> PaymentMethod:
        """Accept either the code (``CARTAO_CREDITO``) or the display label."""
        value = (raw or "").strip()
        for method in PaymentMethod:
            if value.upper() == method.value or value.lower() == method.label.lower():
                return method
        raise InvalidPayment(f"Unknown payment method: {raw!r}")


_METHOD_LABELS = {
    PaymentMethod.PIX: "PIX",
    PaymentMethod.CARTAO_CREDITO: "Cartão de crédito",
    PaymentMethod.CARTAO_DEBITO: "Cartão de débito",
    PaymentMethod.DINHEIRO: "Dinheiro",
}


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


@dataclass
class CatalogItem:
    """A line linked to a catalog Product.

    Name and SKU are snapshotted so the sale still reads correctly after
    the product is renamed or deleted.
    """

    product_id: str
    product_name: str
    sku: str
    quantity: Quantity
    unit_price: Money
    discount: Money  # per unit

    is_custom = False
    requires_approval = False

    @property
    def net_unit_price(self) -> Money:
        return self.unit_price.saturating_sub(self.discount)

    @property
    def line_total(self) -> Money:
        return self.net_unit_price * self.quantity.value

    @property
    def display_name(self) -> str:
        return self.product_name


@dataclass
class CustomItem:
    """An off-catalog line described by free text."""

    name: str
    sku: str | None
    quantity: Quantity
    unit_price: Money
    discount: Money  # per unit
    requires_approval: bool = True

    is_custom = True

    @property
    def net_unit_price(self) -> Money:
        return self.unit_price.saturating_sub(self.discount)

    @property
    def line_total(self) -> Money:
        return self.net_unit_price * self.quantity.value

    @property
    def display_name(self) -> str:
        return self.name

    def approve(self) -> None:
        self.requires_approval = False

    def same_terms(self, other: CustomItem) -> bool:
        """True when *other* describes the same goods at the same price."""
        return (
            self.name == other.name
            and self.sku == other.sku
            and self.quantity == other.quantity
            and self.unit_price == other.unit_price
            and self.discount == other.discount
        )


LineItem = Union[CatalogItem, CustomItem]


@dataclass
class Payment:
    method: PaymentMethod
    amount: Money
    installments: int = 1
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Money
    discount: Money
    total: Money


def compute_totals(items: list[LineItem], discount: Money) -> SaleTotals:
    """Subtotal of net lines, sale discount clamped to [0, subtotal], total."""
    subtotal = Money.zero(discount.currency)
    for item in items:
        subtotal = subtotal + item.line_total
    applied = discount.clamp(subtotal)
    return SaleTotals(subtotal=subtotal, discount=applied, total=subtotal - applied)


def reserved_quantities(items: list[LineItem]) -> dict[str, int]:
    """Quantity per catalog product, summed across lines."""
    result: dict[str, int] = {}
    for item in items:
        if isinstance(item, CatalogItem):
            result[item.product_id] = result.get(item.product_id, 0) + item.quantity.value
    return result


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------


def format_public_id(sequence: int) -> str:
    return f"VEN-{sequence:04d}"


@dataclass
class Sale:
    """Aggregate root for a customer order.

    The constructor does not validate; the Reservation Coordinator only
    builds a Sale from a draft that already passed ``validate_draft``,
    and repositories reconstitute persisted sales as they are.
    """

    id: str
    public_id: str
    client_id: str
    items: list[LineItem]
    payments: list[Payment]
    discount: Money
    note: str | None = None
    delivery_date: date | None = None
    status: SaleStatus = SaleStatus.PENDENTE
    created_by: str | None = None
    draft_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    # --- Computed properties --------------------------------------------------

    @property
    def totals(self) -> SaleTotals:
        return compute_totals(self.items, self.discount)

    @property
    def subtotal(self) -> Money:
        return self.totals.subtotal

    @property
    def total(self) -> Money:
        return self.totals.total

    @property
    def requires_approval(self) -> bool:
        return any(item.is_custom and item.requires_approval for item in self.items)

    def reserved_quantities(self) -> dict[str, int]:
        return reserved_quantities(self.items)

    # --- State transitions ----------------------------------------------------

    def replace_contents(
        self,
        items: list[LineItem],
        payments: list[Payment],
        discount: Money,
        note: str | None,
        delivery_date: date | None,
    ) -> None:
        """Swap in an edited composition.

        Custom items identical to one this sale already had approved keep
        their approval; anything new or changed needs approval again.
        Ledger deltas must be applied by the caller.
        """
        self._require_pending("edit")
        approved = [
            item for item in self.items
            if isinstance(item, CustomItem) and not item.requires_approval
        ]
        for item in items:
            if not isinstance(item, CustomItem):
                continue
            match = next((old for old in approved if old.same_terms(item)), None)
            if match is not None:
                item.approve()
                approved.remove(match)
        self.items = list(items)
        self.payments = list(payments)
        self.discount = discount
        self.note = note
        self.delivery_date = delivery_date
        self._touch()

    def deliver(self) -> None:
        """Transition pendente -> entregue.

        Releasing the reservation must happen in the same transaction.
        """
        self._require_pending("confirm delivery of")
        if self.requires_approval:
            raise ApprovalRequired(
                f"Sale {self.public_id} has items awaiting administrator approval"
            )
        self.status = SaleStatus.ENTREGUE
        self._touch()

    def cancel(self) -> None:
        """Transition pendente -> cancelada.

        Restoring the reservation must happen in the same transaction.
        """
        self._require_pending("cancel")
        self.status = SaleStatus.CANCELADA
        self._touch()

    def approve(self) -> bool:
        """Clear the approval gate.  Returns False when there was nothing to do."""
        if not self.requires_approval:
            return False
        self._require_pending("approve")
        for item in self.items:
            if isinstance(item, CustomItem):
                item.approve()
        self._touch()
        return True

    # --- Internal helpers -----------------------------------------------------

    def _require_pending(self, action: str) -> None:
        if self.status is not SaleStatus.PENDENTE:
            raise InvalidState(
                f"Cannot {action} sale {self.public_id} - "
                f"current status is {self.status.value}, expected pendente"
            )

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
