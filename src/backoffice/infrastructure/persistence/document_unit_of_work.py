"""UnitOfWork over a DocumentStore with row locks.

Changes are staged in private dicts and only reach the store on
``commit()``, which merges them into the *current* document.  Because
every row that is written was locked before it was read, merging cannot
lose another transaction's update.  With ``FileRowLockManager`` and
``JsonFileDocumentStore`` this also holds between processes.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable

from backoffice.domain.repository.unit_of_work import UnitOfWork
from backoffice.infrastructure.locking import RowLockManager
from backoffice.infrastructure.persistence.document_movement_repository import (
    DocumentMovementRepository,
)
from backoffice.infrastructure.persistence.document_product_repository import (
    DocumentProductRepository,
)
from backoffice.infrastructure.persistence.document_sale_repository import (
    DocumentSaleRepository,
)
from backoffice.infrastructure.persistence.document_store import DocumentStore
from backoffice.infrastructure.persistence.row_source import RowSource

logger = logging.getLogger(__name__)


class DocumentUnitOfWork(UnitOfWork, RowSource):

    def __init__(
        self,
        store: DocumentStore,
        locks: RowLockManager,
        lock_timeout: float = 5.0,
    ) -> None:
        self._store = store
        self._locks = locks
        self._lock_timeout = lock_timeout
        self._held: list[str] = []
        self._staged: dict[str, dict[str, dict | None]] = {}
        self._staged_movements: list[dict] = []

        self.products = DocumentProductRepository(self)
        self.sales = DocumentSaleRepository(self)
        self.movements = DocumentMovementRepository(self)

    # --- Locking --------------------------------------------------------------

    def lock_products(self, product_ids: Iterable[str]) -> None:
        self._lock(f"product:{pid}" for pid in product_ids)

    def lock_sale(self, sale_id: str) -> None:
        self._lock([f"sale:{sale_id}"])

    def lock_draft(self, draft_id: str) -> None:
        self._lock([f"draft:{draft_id}"])

    def lock_sku(self, sku: str) -> None:
        self._lock([f"sku:{sku.lower()}"])

    def release_locks(self) -> None:
        self._locks.release(self._held)
        self._held = []

    def _lock(self, keys: Iterable[str]) -> None:
        wanted = [key for key in keys if key not in self._held]
        if wanted:
            self._held.extend(self._locks.acquire(wanted, self._lock_timeout))

    # --- Transaction ----------------------------------------------------------

    def next_sale_sequence(self) -> int:
        return self._store.next_sequence("sale")

    def commit(self) -> None:
        if not self._staged and not self._staged_movements:
            return
        self._store.apply(rows=self._staged, movements=self._staged_movements)
        logger.debug(
            "Committed %d row change(s) and %d movement(s)",
            sum(len(rows) for rows in self._staged.values()),
            len(self._staged_movements),
        )
        self._clear()

    def rollback(self) -> None:
        if self._staged or self._staged_movements:
            logger.debug("Rolling back uncommitted changes")
        self._clear()

    def _clear(self) -> None:
        self._staged = {}
        self._staged_movements = []

    # --- RowSource ------------------------------------------------------------

    def get_row(self, table: str, row_id: str) -> dict | None:
        staged = self._staged.get(table, {})
        if row_id in staged:
            return copy.deepcopy(staged[row_id])
        return self._store.read_row(table, row_id)

    def all_rows(self, table: str) -> dict[str, dict]:
        rows = self._store.read_table(table)
        for row_id, raw in self._staged.get(table, {}).items():
            if raw is None:
                rows.pop(row_id, None)
            else:
                rows[row_id] = copy.deepcopy(raw)
        return rows

    def stage_row(self, table: str, row_id: str, raw: dict | None) -> None:
        self._staged.setdefault(table, {})[row_id] = copy.deepcopy(raw)

    def all_movements(self) -> list[dict]:
        return self._store.read_movements() + copy.deepcopy(self._staged_movements)

    def stage_movement(self, raw: dict) -> None:
        self._staged_movements.append(copy.deepcopy(raw))
