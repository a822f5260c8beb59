"""Application service: Show Sale use case (query)."""

from __future__ import annotations

from collections.abc import Callable

from backoffice.domain.exceptions import EntityNotFoundError
from backoffice.domain.model.sale import Sale
from backoffice.domain.repository.unit_of_work import UnitOfWork


class ShowSaleHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, sale_id: str) -> Sale:
        with self._uow_factory() as uow:
            sale = uow.sales.get_by_id(sale_id)
        if sale is None:
            raise EntityNotFoundError(f"Sale '{sale_id}' not found")
        return sale
