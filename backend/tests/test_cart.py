from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from medistock.core.exceptions import InsufficientStockError
from medistock.services.cart import (
    CartLine,
    InvalidCartLine,
    SaleCart,
    available_for_batch,
    compute_totals,
    fefo_batches,
    reserved_in_cart,
)


def _batch(id, quantity, expiry, medicine_id=1):
    return SimpleNamespace(id=id, medicine_id=medicine_id, quantity=quantity, expiry_date=expiry)


def _line(batch_id, quantity, price="100", medicine_id=1):
    return CartLine(medicine_id=medicine_id, batch_id=batch_id, quantity=quantity, unit_price=Decimal(price))


def test_fefo_orders_by_expiry_and_skips_empty_batches():
    batches = [
        _batch(1, 10, date(2026, 6, 30)),
        _batch(2, 5, date(2026, 3, 31)),
        _batch(3, 0, date(2026, 1, 31)),
        _batch(4, 8, date(2025, 12, 31), medicine_id=2),
    ]

    result = fefo_batches(batches, medicine_id=1)

    assert [b.id for b in result] == [2, 1]


def test_fefo_keeps_input_order_for_equal_expiry():
    same_day = date(2026, 5, 1)
    batches = [_batch(7, 1, same_day), _batch(3, 1, same_day), _batch(5, 1, date(2026, 4, 1))]

    assert [b.id for b in fefo_batches(batches, 1)] == [5, 7, 3]


def test_reserved_excludes_line_being_edited():
    lines = [_line(1, 4), _line(2, 9), _line(1, 3)]

    assert reserved_in_cart(lines, 1) == 7
    assert reserved_in_cart(lines, 1, editing_index=0) == 3
    assert available_for_batch(_batch(1, 5, date(2026, 1, 1)), lines) == 0


def test_new_line_accepts_exactly_remaining_quantity():
    batch = _batch(1, 10, date(2026, 1, 1))
    cart = SaleCart([_line(1, 4)])

    with pytest.raises(InsufficientStockError, match="Only 6 units available in selected batch") as exc:
        cart.add_line(_line(1, 7), batch)
    assert exc.value.available == 6
    assert len(cart) == 1

    cart.add_line(_line(1, 6), batch)
    assert cart.available(batch) == 0


def test_editing_line_restores_its_own_quantity():
    batch = _batch(1, 10, date(2026, 1, 1))
    cart = SaleCart([_line(1, 8)])

    cart.set_quantity(0, 10, batch)
    assert cart.lines[0].quantity == 10

    with pytest.raises(InsufficientStockError, match="Only 10 units"):
        cart.set_quantity(0, 11, batch)
    assert cart.lines[0].quantity == 10


@pytest.mark.parametrize("quantity,price", [(0, "10"), (-1, "10"), (2, "0")])
def test_rejects_non_positive_quantity_or_price(quantity, price):
    cart = SaleCart()
    with pytest.raises(InvalidCartLine, match="greater than 0"):
        cart.add_line(_line(1, quantity, price), _batch(1, 50, date(2026, 1, 1)))


def test_rejects_batch_of_other_medicine():
    with pytest.raises(InvalidCartLine, match="does not belong"):
        SaleCart().add_line(_line(1, 1, medicine_id=2), _batch(1, 5, date(2026, 1, 1)))


def test_remove_line_frees_reservation():
    batch = _batch(1, 10, date(2026, 1, 1))
    cart = SaleCart([_line(1, 10)])

    removed = cart.remove_line(0)

    assert removed.quantity == 10
    assert cart.available(batch) == 10
    with pytest.raises(InvalidCartLine):
        cart.remove_line(0)


def test_totals_example():
    lines = [_line(1, 10, "100"), _line(2, 5, "50")]

    totals = compute_totals(lines, Decimal("0.17"), Decimal("0.05"))

    assert totals.subtotal == Decimal("1250.00")
    assert totals.tax == Decimal("212.50")
    assert totals.discount == Decimal("62.50")
    assert totals.total == Decimal("1400.00")


def test_totals_round_half_up_and_clamp_at_zero():
    totals = compute_totals([_line(1, 1, "0.05")], Decimal("0.5"), Decimal("0"))
    assert totals.tax == Decimal("0.03")

    clamped = compute_totals([_line(1, 2, "10")], 0, 2)
    assert clamped.total == Decimal("0.00")


def test_empty_cart_totals_are_zero():
    totals = SaleCart().totals(0.17, 0.05)
    assert totals.total == Decimal("0.00")
