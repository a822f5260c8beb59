"""Abstract unit of work: one storage transaction.

Usage::

    with uow_factory() as uow:
        uow.lock_products(["p1", "p2"])
        product = uow.products.get_by_id("p1")   # fresh, locked row
        ...
        uow.commit()

Leaving the block without ``commit()`` (or through an exception) discards
every staged change.  Locks are held until the block exits and are always
taken in ascending key order, so two transactions touching overlapping
products cannot deadlock.  A lock that cannot be acquired within the
configured timeout raises ``Contention``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from backoffice.domain.repository.movement_repository import MovementRepository
from backoffice.domain.repository.product_repository import ProductRepository
from backoffice.domain.repository.sale_repository import SaleRepository


class UnitOfWork(ABC):

    products: ProductRepository
    sales: SaleRepository
    movements: MovementRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self.release_locks()

    @abstractmethod
    def lock_products(self, product_ids: Iterable[str]) -> None:
        """Lock product rows (sorted) before reading them for update."""

    @abstractmethod
    def lock_sale(self, sale_id: str) -> None:
        """Lock a sale row before reading it for update."""

    @abstractmethod
    def lock_draft(self, draft_id: str) -> None:
        """Serialize creates that share a client-supplied draft ID."""

    @abstractmethod
    def lock_sku(self, sku: str) -> None:
        """Serialize product creation that claims the same SKU."""

    @abstractmethod
    def next_sale_sequence(self) -> int:
        """Allocate the next sale number; not rolled back on failure."""

    @abstractmethod
    def commit(self) -> None:
        """Atomically apply every staged change."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard staged changes that were not committed."""

    @abstractmethod
    def release_locks(self) -> None:
        """Release every row lock held by this unit of work."""
