"""Application service: List Sales use case (query).

Read-only view used by reporting: filter by status, client, creation
window, and a free-text search over public code and client name.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from backoffice.domain.model.sale import Sale, SaleStatus
from backoffice.domain.repository.client_directory import ClientDirectory
from backoffice.domain.repository.unit_of_work import UnitOfWork


class ListSalesHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clients: ClientDirectory,
    ) -> None:
        self._uow_factory = uow_factory
        self._clients = clients

    def handle(
        self,
        status: SaleStatus | None = None,
        client_id: str | None = None,
        search: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Sale]:
        """Return matching sales, newest first."""
        with self._uow_factory() as uow:
            sales = uow.sales.list_all()

        needle = (search or "").strip().lower()
        result: list[Sale] = []
        for sale in sales:
            if status is not None and sale.status is not status:
                continue
            if client_id is not None and sale.client_id != client_id:
                continue
            if start is not None and sale.created_at < start:
                continue
            if end is not None and sale.created_at > end:
                continue
            if needle and not self._matches(sale, needle):
                continue
            result.append(sale)

        result.sort(key=lambda s: (s.created_at, s.public_id), reverse=True)
        return result

    def _matches(self, sale: Sale, needle: str) -> bool:
        client_name = self._clients.get_name(sale.client_id) or ""
        return needle in sale.public_id.lower() or needle in client_name.lower()
