"""Application service: Audit Ledger use case (query).

Checks, for every product, that both counters are non-negative and that
``reserved`` equals what the pending sales referencing it still hold.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from backoffice.domain.model.sale import SaleStatus
from backoffice.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerDiscrepancy:
    product_id: str
    product_name: str
    quantity: int
    reserved: int
    expected_reserved: int


class AuditLedgerHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[LedgerDiscrepancy]:
        with self._uow_factory() as uow:
            products = uow.products.list_all()
            sales = uow.sales.list_all()

        expected: dict[str, int] = {}
        for sale in sales:
            if sale.status is not SaleStatus.PENDENTE:
                continue
            for product_id, qty in sale.reserved_quantities().items():
                expected[product_id] = expected.get(product_id, 0) + qty

        problems = [
            LedgerDiscrepancy(
                product_id=p.id,
                product_name=p.name,
                quantity=p.quantity,
                reserved=p.reserved,
                expected_reserved=expected.get(p.id, 0),
            )
            for p in products
            if p.quantity < 0 or p.reserved < 0 or p.reserved != expected.get(p.id, 0)
        ]
        for problem in problems:
            logger.error(
                "Ledger mismatch for %s: quantity=%d reserved=%d expected_reserved=%d",
                problem.product_id, problem.quantity, problem.reserved,
                problem.expected_reserved,
            )
        return problems
