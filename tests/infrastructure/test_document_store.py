"""Tests for the document stores and the document unit of work."""

import json
import threading
from datetime import date
from decimal import Decimal

import pytest

from backoffice.domain.exceptions import Contention, InsufficientStock
from backoffice.domain.model.movement import MovementReason, MovementType, StockMovement
from backoffice.domain.model.sale import (
    CatalogItem,
    CustomItem,
    Payment,
    PaymentMethod,
    Sale,
)
from backoffice.domain.model.value_objects import Money, Quantity
from backoffice.domain.service.catalog_ledger import CatalogLedger
from backoffice.infrastructure.locking import FileRowLockManager, RowLockManager
from backoffice.infrastructure.persistence.document_store import (
    JsonFileDocumentStore,
    MemoryDocumentStore,
)
from backoffice.infrastructure.persistence.document_unit_of_work import DocumentUnitOfWork
from tests.fakes import make_product


def _uow(store, locks=None):
    return DocumentUnitOfWork(store, locks or RowLockManager(), lock_timeout=0.1)


def _sale() -> Sale:
    return Sale(
        id="s1",
        public_id="VEN-0007",
        client_id="c1",
        items=[
            CatalogItem(
                product_id="p1", product_name="Vaso", sku="SKU-P1",
                quantity=Quantity(2), unit_price=Money.of("10.00"), discount=Money.of("1.00"),
            ),
            CustomItem(
                name="Pillow X", sku=None, quantity=Quantity(1),
                unit_price=Money.of("40.00"), discount=Money.zero(),
            ),
        ],
        payments=[Payment(PaymentMethod.CARTAO_CREDITO, Money.of("58.00"), installments=2)],
        discount=Money.zero(),
        note="fragile",
        delivery_date=date(2026, 12, 1),
        draft_id="d-1",
    )


class TestMemoryDocumentStore:

    def test_reads_are_copies(self):
        store = MemoryDocumentStore()
        store.apply(rows={"clients": {"c1": {"id": "c1", "name": "Maria"}}})
        row = store.read_row("clients", "c1")
        row["name"] = "changed"
        assert store.read_row("clients", "c1")["name"] == "Maria"

    def test_apply_deletes_with_none(self):
        store = MemoryDocumentStore()
        store.apply(rows={"clients": {"c1": {"id": "c1", "name": "Maria"}}})
        store.apply(rows={"clients": {"c1": None}})
        assert store.read_row("clients", "c1") is None

    def test_unknown_table_changes_nothing(self):
        store = MemoryDocumentStore()
        with pytest.raises(KeyError):
            store.apply(rows={"clients": {"c1": {"id": "c1"}}, "bogus": {}})
        assert store.read_table("clients") == {}

    def test_sequences_are_monotonic(self):
        store = MemoryDocumentStore()
        assert [store.next_sequence("sale") for _ in range(3)] == [1, 2, 3]
        assert store.next_sequence("other") == 1


class TestJsonFileDocumentStore:

    def test_creates_file_and_persists_across_instances(self, tmp_path):
        path = tmp_path / "data" / "backoffice.json"
        store = JsonFileDocumentStore(path)
        assert path.exists()

        store.apply(rows={"clients": {"c1": {"id": "c1", "name": "Maria"}}})
        store.next_sequence("sale")

        reopened = JsonFileDocumentStore(path)
        assert reopened.read_row("clients", "c1") == {"id": "c1", "name": "Maria"}
        assert reopened.next_sequence("sale") == 2

    def test_file_is_plain_json(self, tmp_path):
        path = tmp_path / "backoffice.json"
        JsonFileDocumentStore(path).apply(movements=[{"id": "m1"}])
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["movements"] == [{"id": "m1"}]
        assert not list(tmp_path.glob("*.tmp"))

    def test_two_stores_on_one_file_keep_both_writes(self, tmp_path):
        path = tmp_path / "backoffice.json"
        first, second = JsonFileDocumentStore(path), JsonFileDocumentStore(path)

        first.apply(rows={"clients": {"c1": {"id": "c1", "name": "Maria"}}})
        second.apply(rows={"clients": {"c2": {"id": "c2", "name": "Joana"}}})
        assert [first.next_sequence("sale"), second.next_sequence("sale")] == [1, 2]

        assert set(JsonFileDocumentStore(path).read_table("clients")) == {"c1", "c2"}
        assert (tmp_path / "backoffice.json.lock").exists()


class TestDocumentUnitOfWork:

    def test_uncommitted_changes_are_discarded(self):
        store = MemoryDocumentStore()
        with _uow(store) as uow:
            uow.products.save(make_product("p1", quantity=3))
            assert uow.products.get_by_id("p1") is not None
        with _uow(store) as uow:
            assert uow.products.get_by_id("p1") is None

    def test_exception_rolls_back(self):
        store = MemoryDocumentStore()
        with pytest.raises(RuntimeError):
            with _uow(store) as uow:
                uow.products.save(make_product("p1"))
                raise RuntimeError("boom")
        assert store.read_table("products") == {}

    def test_commit_is_all_or_nothing_visible(self):
        store = MemoryDocumentStore()
        with _uow(store) as uow:
            uow.products.save(make_product("p1", quantity=3))
            uow.movements.append(StockMovement(
                product_id="p1", type=MovementType.ENTRADA, reason=MovementReason.INITIAL_STOCK,
                amount=3, quantity_delta=3, reserved_delta=0,
            ))
            assert store.read_table("products") == {}
            uow.commit()
        assert store.read_row("products", "p1")["quantity"] == 3
        assert len(store.read_movements()) == 1

    def test_locks_are_released_on_exit(self):
        store, locks = MemoryDocumentStore(), RowLockManager()
        with _uow(store, locks) as uow:
            uow.lock_products(["p1", "p2"])
            uow.lock_products(["p1"])  # already held: no self-deadlock
        with _uow(store, locks) as uow:
            uow.lock_products(["p2", "p1"])

    def test_product_round_trip(self):
        store = MemoryDocumentStore()
        original = make_product("p1", price="12.50", quantity=4, reserved=1)
        with _uow(store) as uow:
            uow.products.save(original)
            uow.commit()
        with _uow(store) as uow:
            loaded = uow.products.get_by_id("p1")
            assert uow.products.get_by_sku("sku-p1").id == "p1"
        assert loaded == original

    def test_sale_round_trip_keeps_item_kinds(self):
        store = MemoryDocumentStore()
        sale = _sale()
        with _uow(store) as uow:
            uow.sales.save(sale)
            uow.commit()

        raw = store.read_row("sales", "s1")
        assert [i["kind"] for i in raw["items"]] == ["catalog", "custom"]
        assert raw["value"] == str(sale.total.amount)
        assert raw["requires_approval"] is True

        with _uow(store) as uow:
            loaded = uow.sales.get_by_id("VEN-0007")
            assert uow.sales.get_by_draft_id("d-1").id == "s1"
        assert loaded == sale
        assert loaded.total.amount == Decimal("58.00")
        assert loaded.requires_approval


class TestSharedJsonFile:
    """Each store/lock-manager pair plays a separate process on one data dir."""

    @staticmethod
    def _process_uow(tmp_path, lock_timeout=2.0):
        store = JsonFileDocumentStore(tmp_path / "backoffice.json")
        locks = FileRowLockManager(tmp_path / "locks")
        return DocumentUnitOfWork(store, locks, lock_timeout=lock_timeout)

    def _seed(self, tmp_path, quantity):
        with self._process_uow(tmp_path) as uow:
            uow.products.save(make_product("p1", quantity=quantity))
            uow.commit()

    def test_row_lock_is_visible_to_the_other_process(self, tmp_path):
        self._seed(tmp_path, quantity=5)
        with self._process_uow(tmp_path) as holder:
            holder.lock_products(["p1"])
            with pytest.raises(Contention):
                with self._process_uow(tmp_path, lock_timeout=0.05) as other:
                    other.lock_products(["p1"])

    def test_racing_reservations_never_oversell(self, tmp_path):
        self._seed(tmp_path, quantity=5)
        barrier = threading.Barrier(2)
        outcomes = []

        def reserve_everything():
            with self._process_uow(tmp_path) as uow:
                barrier.wait()
                uow.lock_products(["p1"])
                try:
                    CatalogLedger(uow.products, uow.movements).reserve("p1", 5, sale_id="s")
                except InsufficientStock:
                    outcomes.append("rejected")
                    return
                uow.commit()
                outcomes.append("reserved")

        threads = [threading.Thread(target=reserve_everything) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert sorted(outcomes) == ["rejected", "reserved"]
        final = JsonFileDocumentStore(tmp_path / "backoffice.json")
        row = final.read_row("products", "p1")
        assert (row["quantity"], row["reserved"]) == (0, 5)
        assert len(final.read_movements()) == 1
