"""Reservation Coordinator — the engine's single entry point for writes.

Wraps the per-use-case handlers with the policies every caller needs:

- a ``Contention`` (row lock timeout) is retried a bounded number of times
  with linear backoff; each attempt runs in a fresh unit of work, so a
  failed attempt leaves nothing behind;
- an ``InvariantViolation`` is logged as critical before it is returned to
  the caller as a normal error;
- every other domain error is logged once at warning level.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import TypeVar

from backoffice.application.access import Actor
from backoffice.application.adjust_stock import AdjustStockHandler
from backoffice.application.approve_sale import ApproveSaleHandler
from backoffice.application.cancel_sale import CancelSaleHandler
from backoffice.application.confirm_delivery import ConfirmDeliveryHandler
from backoffice.application.create_product import CreateProductHandler
from backoffice.application.create_sale import CreateSaleHandler
from backoffice.application.delete_product import DeleteProductHandler
from backoffice.application.edit_sale import EditSaleHandler
from backoffice.domain.exceptions import Contention, DomainException, InvariantViolation
from backoffice.domain.model.draft import Amount, ItemSpec, PaymentSpec, SaleDraft
from backoffice.domain.model.movement import MovementType
from backoffice.domain.model.product import Product
from backoffice.domain.model.sale import Sale
from backoffice.domain.repository.client_directory import ClientDirectory
from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.domain.service.sale_validation import DEFAULT_PAYMENT_TOLERANCE

logger = logging.getLogger(__name__)

T = TypeVar("T")

BUSY_MESSAGE = "The system is busy, please try again."


class ReservationCoordinator:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clients: ClientDirectory,
        *,
        tolerance: Decimal = DEFAULT_PAYMENT_TOLERANCE,
        currency: str = "BRL",
        contention_retries: int = 3,
        retry_backoff: float = 0.05,
    ) -> None:
        self._retries = contention_retries
        self._backoff = retry_backoff

        self._create = CreateSaleHandler(uow_factory, clients, tolerance, currency)
        self._edit = EditSaleHandler(uow_factory, tolerance, currency)
        self._deliver = ConfirmDeliveryHandler(uow_factory)
        self._cancel = CancelSaleHandler(uow_factory)
        self._approve = ApproveSaleHandler(uow_factory)
        self._adjust = AdjustStockHandler(uow_factory)
        self._create_product = CreateProductHandler(uow_factory, currency)
        self._delete_product = DeleteProductHandler(uow_factory)

    # --- Sale lifecycle -------------------------------------------------------

    def create_sale(
        self,
        actor: Actor,
        client_id: str,
        items: list[ItemSpec],
        payments: list[PaymentSpec],
        discount: Amount = "0",
        note: str | None = None,
        delivery_date: date | None = None,
        draft_id: str | None = None,
    ) -> Sale:
        draft = SaleDraft(items, payments, discount, note, delivery_date)
        return self._run("create sale", lambda: self._create.handle(actor, client_id, draft, draft_id))

    def edit_sale(
        self,
        actor: Actor,
        sale_id: str,
        items: list[ItemSpec],
        payments: list[PaymentSpec],
        discount: Amount = "0",
        note: str | None = None,
        delivery_date: date | None = None,
    ) -> Sale:
        draft = SaleDraft(items, payments, discount, note, delivery_date)
        return self._run("edit sale", lambda: self._edit.handle(actor, sale_id, draft))

    def confirm_delivery(self, actor: Actor, sale_id: str) -> Sale:
        return self._run("confirm delivery", lambda: self._deliver.handle(actor, sale_id))

    def cancel_sale(self, actor: Actor, sale_id: str) -> Sale:
        return self._run("cancel sale", lambda: self._cancel.handle(actor, sale_id))

    def approve_sale(self, actor: Actor, sale_id: str) -> Sale:
        return self._run("approve sale", lambda: self._approve.handle(actor, sale_id))

    # --- Catalog ledger -------------------------------------------------------

    def adjust_stock(
        self,
        actor: Actor,
        product_id: str,
        movement_type: str | MovementType,
        amount: int,
        note: str | None = None,
    ) -> Product:
        return self._run(
            "adjust stock",
            lambda: self._adjust.handle(actor, product_id, movement_type, amount, note),
        )

    def create_product(
        self,
        actor: Actor,
        name: str,
        price: Amount,
        factory_cost: Amount = "0",
        initial_quantity: int = 0,
        sku: str | None = None,
        image_ref: str | None = None,
    ) -> Product:
        return self._run(
            "create product",
            lambda: self._create_product.handle(
                actor, name, price, factory_cost, initial_quantity, sku, image_ref
            ),
        )

    def delete_product(self, actor: Actor, product_id: str) -> None:
        self._run("delete product", lambda: self._delete_product.handle(actor, product_id))

    # --- Policies -------------------------------------------------------------

    def _run(self, action: str, operation: Callable[[], T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except Contention as exc:
                if attempt > self._retries:
                    logger.warning("Giving up on %s after %d attempts: %s", action, attempt, exc)
                    raise Contention(BUSY_MESSAGE) from exc
                logger.warning("Contention on %s (attempt %d), retrying", action, attempt)
                time.sleep(self._backoff * attempt)
            except InvariantViolation:
                logger.critical("Invariant violation during %s", action, exc_info=True)
                raise
            except DomainException as exc:
                logger.warning("Rejected %s: %s", action, exc)
                raise
