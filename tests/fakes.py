"""In-memory fakes and builders for testing.

The fake repositories implement the same abstract interfaces as the
document repositories but keep everything in a dict.  Application tests
run the real unit of work over a MemoryDocumentStore: no file I/O, no
side effects, but real row locks.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from backoffice.application.access import Actor, Role
from backoffice.application.reservation_coordinator import ReservationCoordinator
from backoffice.domain.model.movement import StockMovement
from backoffice.domain.model.product import Product
from backoffice.domain.model.value_objects import Money
from backoffice.domain.repository.client_directory import ClientDirectory
from backoffice.domain.repository.movement_repository import MovementRepository
from backoffice.domain.repository.product_repository import ProductRepository
from backoffice.infrastructure.locking import RowLockManager
from backoffice.infrastructure.persistence.document_client_directory import (
    DocumentClientDirectory,
)
from backoffice.infrastructure.persistence.document_product_repository import (
    DocumentProductRepository,
)
from backoffice.infrastructure.persistence.document_store import MemoryDocumentStore
from backoffice.infrastructure.persistence.document_unit_of_work import DocumentUnitOfWork

ADMIN = Actor(id="ana", role=Role.ADMIN)
SELLER = Actor(id="sergio", role=Role.SELLER)


def make_product(
    product_id: str,
    name: str | None = None,
    price: str = "10.00",
    quantity: int = 0,
    reserved: int = 0,
    sku: str | None = None,
) -> Product:
    return Product(
        id=product_id,
        name=name or product_id.capitalize(),
        sku=sku or f"SKU-{product_id.upper()}",
        price=Money.of(price),
        factory_cost=Money.of("1.00"),
        quantity=quantity,
        reserved=reserved,
    )


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        for p in products or []:
            self._store[p.id] = p

    def get_by_id(self, product_id: str) -> Product | None:
        return self._store.get(product_id)

    def get_by_sku(self, sku: str) -> Product | None:
        for p in self._store.values():
            if p.sku.lower() == sku.lower():
                return p
        return None

    def list_all(self) -> list[Product]:
        return list(self._store.values())

    def save(self, product: Product) -> None:
        self._store[product.id] = product

    def delete(self, product_id: str) -> None:
        self._store.pop(product_id, None)


class FakeMovementRepository(MovementRepository):

    def __init__(self) -> None:
        self._log: list[StockMovement] = []

    def append(self, movement: StockMovement) -> None:
        self._log.append(movement)

    def list_all(self) -> list[StockMovement]:
        return list(self._log)


class FakeClientDirectory(ClientDirectory):

    def __init__(self, clients: dict[str, str] | None = None) -> None:
        self._clients = dict(clients or {})

    def exists(self, client_id: str) -> bool:
        return client_id in self._clients

    def get_name(self, client_id: str) -> str | None:
        return self._clients.get(client_id)

    def register(self, client_id: str, name: str) -> None:
        self._clients[client_id] = name


# ---------------------------------------------------------------------------
# Engine builder
# ---------------------------------------------------------------------------


@dataclass
class Engine:
    """A coordinator wired to an in-memory store, plus handles for asserting."""

    store: MemoryDocumentStore
    locks: RowLockManager
    clients: DocumentClientDirectory
    coordinator: ReservationCoordinator

    def uow_factory(self):
        return lambda: DocumentUnitOfWork(self.store, self.locks, 0.5)

    def product(self, product_id: str) -> Product:
        with self.uow_factory()() as uow:
            product = uow.products.get_by_id(product_id)
        assert product is not None, f"product {product_id} missing"
        return product

    def movements(self) -> list[StockMovement]:
        with self.uow_factory()() as uow:
            return uow.movements.list_all()


def build_engine(
    products: list[Product] | None = None,
    clients: dict[str, str] | None = None,
    *,
    lock_timeout: float = 0.5,
    contention_retries: int = 3,
    tolerance: Decimal = Decimal("0.05"),
) -> Engine:
    """Seed an in-memory store and return an Engine around it."""
    store = MemoryDocumentStore()
    locks = RowLockManager()
    directory = DocumentClientDirectory(store)
    for client_id, name in (clients if clients is not None else {"c1": "Maria Souza"}).items():
        directory.register(client_id, name)

    if products:
        rows = {p.id: DocumentProductRepository._to_raw(p) for p in products}
        store.apply(rows={"products": rows})

    coordinator = ReservationCoordinator(
        lambda: DocumentUnitOfWork(store, locks, lock_timeout),
        directory,
        tolerance=tolerance,
        contention_retries=contention_retries,
        retry_backoff=0.0,
    )
    return Engine(store=store, locks=locks, clients=directory, coordinator=coordinator)
