"""Domain service: sale draft validation and totals.

Pure and side-effect free: given a draft and a way to look products up,
either return the validated composition of a sale or raise the specific
ValidationError subclass that explains what is wrong.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from backoffice.domain.exceptions import (
    InvalidCustomItem,
    InvalidItem,
    InvalidPayment,
    PaymentMismatch,
)
from backoffice.domain.model.draft import Amount, ItemSpec, PaymentSpec, SaleDraft
from backoffice.domain.model.product import Product
from backoffice.domain.model.sale import (
    CatalogItem,
    CustomItem,
    LineItem,
    Payment,
    PaymentMethod,
    SaleTotals,
    compute_totals,
    reserved_quantities,
)
from backoffice.domain.model.value_objects import Money, Quantity

DEFAULT_PAYMENT_TOLERANCE = Decimal("0.05")


@dataclass(frozen=True)
class ValidatedSale:
    items: list[LineItem]
    payments: list[Payment]
    discount: Money
    totals: SaleTotals

    @property
    def quantities(self) -> dict[str, int]:
        return reserved_quantities(self.items)


def validate_draft(
    draft: SaleDraft,
    lookup_product: Callable[[str], Product | None],
    *,
    tolerance: Decimal = DEFAULT_PAYMENT_TOLERANCE,
    currency: str = "BRL",
) -> ValidatedSale:
    if not draft.items:
        raise InvalidItem("A sale must contain at least one item")

    items = [_build_item(spec, lookup_product, currency) for spec in draft.items]

    # A negative sale discount counts as none; one above the subtotal is capped.
    raw_discount = _to_decimal(draft.discount, InvalidItem, "sale discount")
    discount = Money(max(Decimal("0"), raw_discount), currency)
    totals = compute_totals(items, discount)

    payments = [_build_payment(spec, currency) for spec in draft.payments]
    paid = sum((p.amount.amount for p in payments), Decimal("0"))
    if abs(paid - totals.total.amount) > tolerance:
        raise PaymentMismatch(
            f"Payments ({Money(paid, currency)}) do not match the sale total "
            f"({totals.total})"
        )

    return ValidatedSale(
        items=items,
        payments=payments,
        discount=totals.discount,
        totals=totals,
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _build_item(
    spec: ItemSpec,
    lookup_product: Callable[[str], Product | None],
    currency: str,
) -> LineItem:
    quantity = Quantity(spec.quantity)
    discount = _non_negative(spec.discount, InvalidItem, "item discount", currency)

    if spec.is_custom:
        name = (spec.custom_name or "").strip()
        if not name:
            raise InvalidCustomItem("Custom item needs a description")
        if spec.unit_price is None:
            raise InvalidCustomItem(f"Custom item '{name}' needs a price")
        price = _to_decimal(spec.unit_price, InvalidCustomItem, f"price of '{name}'")
        if price <= 0:
            raise InvalidCustomItem(f"Custom item '{name}' must have a positive price")
        sku = (spec.custom_sku or "").strip() or None
        return CustomItem(
            name=name,
            sku=sku,
            quantity=quantity,
            unit_price=Money(price, currency),
            discount=discount,
        )

    product = lookup_product(spec.product_id)
    if product is None:
        raise InvalidItem(f"Unknown product '{spec.product_id}'")
    if spec.unit_price is None:
        unit_price = product.price  # price snapshot
    else:
        unit_price = _non_negative(
            spec.unit_price, InvalidItem, f"price of {product.name}", currency
        )
    return CatalogItem(
        product_id=product.id,
        product_name=product.name,
        sku=product.sku,
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
    )


def _build_payment(spec: PaymentSpec, currency: str) -> Payment:
    method = PaymentMethod.parse(spec.method)
    amount = _to_decimal(spec.amount, InvalidPayment, "payment amount")
    if amount <= 0:
        raise InvalidPayment(f"{method.label} payment must have a positive amount")

    installments = 1
    if method is PaymentMethod.CARTAO_CREDITO:
        installments = spec.installments
        if not isinstance(installments, int) or isinstance(installments, bool) or installments < 1:
            raise InvalidPayment("Credit card installments must be at least 1")
    return Payment(method=method, amount=Money(amount, currency), installments=installments)


def _to_decimal(value: Amount, error: type[Exception], what: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise error(f"Invalid {what}: {value!r}") from exc
    if not result.is_finite():
        raise error(f"Invalid {what}: {value!r}")
    return result


def _non_negative(value: Amount, error: type[Exception], what: str, currency: str) -> Money:
    result = _to_decimal(value, error, what)
    if result < 0:
        raise error(f"The {what} cannot be negative")
    return Money(result, currency)
