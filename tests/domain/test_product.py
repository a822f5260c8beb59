"""Unit tests for the Product counters (ledger primitives)."""

import pytest

from backoffice.domain.exceptions import InsufficientStock, InvalidQuantity, InvariantViolation
from tests.fakes import make_product


class TestReserve:

    def test_moves_quantity_to_reserved(self):
        p = make_product("p1", quantity=10)
        p.reserve(3)
        assert (p.quantity, p.reserved) == (7, 3)

    def test_can_reserve_everything(self):
        p = make_product("p1", quantity=4)
        p.reserve(4)
        assert (p.quantity, p.reserved) == (0, 4)

    def test_over_reservation_rejected(self):
        p = make_product("p1", name="Vaso", quantity=2)
        with pytest.raises(InsufficientStock, match="need 3, have 2 available"):
            p.reserve(3)
        assert (p.quantity, p.reserved) == (2, 0)

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True])
    def test_non_positive_amount_rejected(self, bad):
        p = make_product("p1", quantity=10)
        with pytest.raises(InvalidQuantity):
            p.reserve(bad)


class TestReleaseAndRestore:

    def test_release_only_drops_reserved(self):
        p = make_product("p1", quantity=7, reserved=3)
        p.release(3)
        assert (p.quantity, p.reserved) == (7, 0)

    def test_restore_returns_to_on_hand(self):
        p = make_product("p1", quantity=7, reserved=3)
        p.restore(2)
        assert (p.quantity, p.reserved) == (9, 1)

    def test_release_more_than_reserved_is_invariant_violation(self):
        p = make_product("p1", quantity=7, reserved=1)
        with pytest.raises(InvariantViolation, match="Cannot release"):
            p.release(2)
        assert p.reserved == 1

    def test_restore_more_than_reserved_is_invariant_violation(self):
        p = make_product("p1", quantity=7, reserved=1)
        with pytest.raises(InvariantViolation, match="Cannot restore"):
            p.restore(2)
        assert (p.quantity, p.reserved) == (7, 1)


class TestManualMovements:

    def test_receive(self):
        p = make_product("p1", quantity=1)
        p.receive(5)
        assert p.quantity == 6

    def test_withdraw(self):
        p = make_product("p1", quantity=5, reserved=2)
        p.withdraw(5)
        assert (p.quantity, p.reserved) == (0, 2)

    def test_withdraw_cannot_touch_reserved(self):
        p = make_product("p1", quantity=1, reserved=5)
        with pytest.raises(InsufficientStock, match="to withdraw 2"):
            p.withdraw(2)

    def test_is_empty(self):
        assert make_product("p1").is_empty
        assert not make_product("p1", reserved=1).is_empty
        assert not make_product("p1", quantity=1).is_empty
