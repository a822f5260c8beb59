"""Integration tests for the CreateSale use case.

Uses the in-memory document store: real unit of work and row locks,
no file I/O.
"""

from datetime import date

import pytest

from backoffice.application.create_sale import CreateSaleHandler
from backoffice.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    InvalidItem,
    PaymentMismatch,
)
from backoffice.domain.model.draft import ItemSpec, PaymentSpec, SaleDraft
from backoffice.domain.model.movement import MovementReason
from backoffice.domain.model.sale import SaleStatus
from backoffice.domain.model.value_objects import Money
from tests.fakes import ADMIN, SELLER, FakeClientDirectory, build_engine, make_product


def _engine():
    return build_engine([
        make_product("p1", name="Vaso", price="10.00", quantity=5),
        make_product("p2", name="Prato", price="25.00", quantity=3),
    ])


class TestCreateSaleHappyPath:

    def test_reserves_stock_and_starts_pending(self):
        engine = _engine()

        sale = engine.coordinator.create_sale(
            SELLER, "c1", [ItemSpec.catalog("p1", 3)], [PaymentSpec("PIX", "30.00")],
        )

        assert sale.status is SaleStatus.PENDENTE
        assert sale.total == Money.of("30.00")
        assert not sale.requires_approval
        p1 = engine.product("p1")
        assert (p1.quantity, p1.reserved) == (2, 3)

    def test_persists_sale_with_public_code(self):
        engine = _engine()
        first = engine.coordinator.create_sale(
            ADMIN, "c1", [ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "10.00")],
        )
        second = engine.coordinator.create_sale(
            ADMIN, "c1", [ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "10.00")],
        )

        assert (first.public_id, second.public_id) == ("VEN-0001", "VEN-0002")
        with engine.uow_factory()() as uow:
            saved = uow.sales.get_by_id("ven-0002")
        assert saved is not None
        assert saved.id == second.id
        assert saved.created_by == "ana"

    def test_appends_one_reservation_movement_per_product(self):
        engine = _engine()
        sale = engine.coordinator.create_sale(
            ADMIN, "c1",
            [ItemSpec.catalog("p2", 1), ItemSpec.catalog("p1", 2), ItemSpec.catalog("p1", 1)],
            [PaymentSpec("DINHEIRO", "55.00")],
        )

        movements = engine.movements()
        assert [(m.product_id, m.amount) for m in movements] == [("p1", 3), ("p2", 1)]
        assert all(m.reason is MovementReason.SALE_RESERVATION for m in movements)
        assert all(m.sale_id == sale.id for m in movements)

    def test_keeps_note_and_delivery_date(self):
        engine = _engine()
        sale = engine.coordinator.create_sale(
            ADMIN, "c1", [ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "10.00")],
            note="Deliver after 6pm", delivery_date=date(2026, 11, 3),
        )
        with engine.uow_factory()() as uow:
            saved = uow.sales.get_by_id(sale.id)
        assert saved.note == "Deliver after 6pm"
        assert saved.delivery_date == date(2026, 11, 3)

    def test_custom_item_flags_approval_without_touching_stock(self):
        engine = _engine()
        sale = engine.coordinator.create_sale(
            SELLER, "c1",
            [ItemSpec.catalog("p1", 2), ItemSpec.custom("Pillow X", 1, "40.00")],
            [PaymentSpec("PIX", "60.00")],
        )

        assert sale.requires_approval
        assert engine.product("p1").reserved == 2
        assert len(engine.movements()) == 1


class TestCreateSaleFailures:

    def test_unknown_client(self):
        engine = _engine()
        with pytest.raises(EntityNotFoundError, match="Client 'ghost' not found"):
            engine.coordinator.create_sale(
                ADMIN, "ghost", [ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "10.00")],
            )

    def test_unknown_product(self):
        engine = _engine()
        with pytest.raises(InvalidItem, match="Unknown product"):
            engine.coordinator.create_sale(
                ADMIN, "c1", [ItemSpec.catalog("nope", 1)], [PaymentSpec("PIX", "10.00")],
            )

    def test_insufficient_stock_leaves_nothing_behind(self):
        engine = _engine()
        with pytest.raises(InsufficientStock, match="Prato"):
            engine.coordinator.create_sale(
                ADMIN, "c1",
                [ItemSpec.catalog("p1", 2), ItemSpec.catalog("p2", 4)],
                [PaymentSpec("PIX", "120.00")],
            )

        assert engine.product("p1").quantity == 5
        assert engine.product("p2").quantity == 3
        assert engine.movements() == []
        with engine.uow_factory()() as uow:
            assert uow.sales.list_all() == []

    def test_payment_mismatch_reserves_nothing(self):
        engine = _engine()
        with pytest.raises(PaymentMismatch):
            engine.coordinator.create_sale(
                ADMIN, "c1", [ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "1.00")],
            )
        assert engine.product("p1").reserved == 0


class TestCreateSaleScenario:

    def test_second_sale_sees_reduced_quantity_and_cancel_restores(self):
        engine = build_engine([make_product("p", quantity=5)])

        first = engine.coordinator.create_sale(
            ADMIN, "c1", [ItemSpec.catalog("p", 3)], [PaymentSpec("PIX", "30.00")],
        )
        p = engine.product("p")
        assert (p.quantity, p.reserved) == (2, 3)
        assert first.status is SaleStatus.PENDENTE

        with pytest.raises(InsufficientStock, match="have 2 available"):
            engine.coordinator.create_sale(
                ADMIN, "c1", [ItemSpec.catalog("p", 3)], [PaymentSpec("PIX", "30.00")],
            )

        engine.coordinator.cancel_sale(ADMIN, first.id)
        p = engine.product("p")
        assert (p.quantity, p.reserved) == (5, 0)


class TestCreateSaleIdempotency:

    def test_same_draft_id_returns_first_sale(self):
        engine = _engine()
        args = (ADMIN, "c1", [ItemSpec.catalog("p1", 2)], [PaymentSpec("PIX", "20.00")])

        first = engine.coordinator.create_sale(*args, draft_id="draft-42")
        again = engine.coordinator.create_sale(*args, draft_id="draft-42")

        assert again.id == first.id
        assert again.public_id == first.public_id
        assert engine.product("p1").reserved == 2
        assert len(engine.movements()) == 1

    def test_different_draft_ids_create_two_sales(self):
        engine = _engine()
        args = (ADMIN, "c1", [ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "10.00")])

        a = engine.coordinator.create_sale(*args, draft_id="a")
        b = engine.coordinator.create_sale(*args, draft_id="b")

        assert a.id != b.id
        assert engine.product("p1").reserved == 2


class TestCreateSaleHandler:

    def test_client_directory_is_consulted(self):
        engine = _engine()
        handler = CreateSaleHandler(engine.uow_factory(), FakeClientDirectory({"x9": "Loja X"}))

        sale = handler.handle(
            SELLER, "x9",
            SaleDraft([ItemSpec.catalog("p1", 1)], [PaymentSpec("PIX", "10.00")]),
        )

        assert sale.client_id == "x9"
        assert sale.created_by == "sergio"
