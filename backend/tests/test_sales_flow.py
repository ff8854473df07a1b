from decimal import Decimal

import pytest

from medistock.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from medistock.models.batch import Batch
from medistock.models.customer import Customer
from medistock.models.invoice import Invoice
from medistock.models.stock_transaction import StockTransaction
from medistock.services import sale_service
from medistock.services.sale_service import to_cart_lines


def _lines(*rows):
    return to_cart_lines([
        {"medicine_id": m, "batch_id": b, "quantity": q, "unit_price": p} for m, b, q, p in rows
    ])


@pytest.fixture
def shelf(stock):
    panadol, (p1, p2) = stock("Panadol", [("PN-1", 200, 20, 60, 100), ("PN-2", 30, 8, 60, 100)])
    brufen, (b1,) = stock("Brufen", [("BR-1", 100, 10, 30, 50)], strength="400mg")
    return panadol, p1, p2, brufen, b1


def test_sale_writes_invoice_items_ledger_and_stock(db, shelf, customer, users):
    panadol, p1, _, brufen, b1 = shelf

    invoice = sale_service.record_sale(
        db, customer.id, _lines((panadol.id, p1.id, 10, "100"), (brufen.id, b1.id, 5, "50")),
        tax_rate=Decimal("0.17"), discount_rate=Decimal("0.05"), user=users["Pharmacist"],
    )

    assert invoice.invoice_no == "INV-00001"
    assert (invoice.subtotal, invoice.tax, invoice.discount, invoice.total) == (
        Decimal("1250.00"), Decimal("212.50"), Decimal("62.50"), Decimal("1400.00"),
    )
    assert invoice.status == "Paid"
    assert invoice.created_by == users["Pharmacist"].id
    assert len(invoice.items) == 2
    assert db.get(Batch, p1.id).quantity == 10
    assert db.get(Batch, b1.id).quantity == 5
    assert panadol.current_stock == 18
    assert db.query(StockTransaction).filter(StockTransaction.type == "sale").count() == 2
    assert db.get(Customer, customer.id).outstanding_dues == Decimal("0.00")


def test_unpaid_sale_adds_total_to_dues(db, shelf, customer):
    panadol, p1, *_ = shelf

    invoice = sale_service.record_sale(
        db, customer.id, _lines((panadol.id, p1.id, 2, "100")),
        status="Unpaid", tax_rate=0, discount_rate=0,
    )

    assert invoice.total == Decimal("200.00")
    assert db.get(Customer, customer.id).outstanding_dues == Decimal("200.00")


def test_invoice_numbers_increase(db, shelf, customer):
    panadol, p1, *_ = shelf
    first = sale_service.record_sale(db, customer.id, _lines((panadol.id, p1.id, 1, "100")))
    second = sale_service.record_sale(db, customer.id, _lines((panadol.id, p1.id, 1, "100")))

    assert (first.invoice_no, second.invoice_no) == ("INV-00001", "INV-00002")


def test_commit_sums_lines_on_same_batch(db, shelf, customer):
    panadol, _, p2, *_ = shelf

    with pytest.raises(InsufficientStockError, match="Only 8 units available in batch PN-2"):
        sale_service.record_sale(
            db, customer.id, _lines((panadol.id, p2.id, 5, "100"), (panadol.id, p2.id, 4, "100")),
        )

    assert db.query(Invoice).count() == 0
    assert db.get(Batch, p2.id).quantity == 8
    assert db.query(StockTransaction).filter(StockTransaction.type == "sale").count() == 0


def test_commit_rejects_batch_of_other_medicine(db, shelf, customer):
    panadol, _, _, _, b1 = shelf

    with pytest.raises(ValidationError, match="does not belong"):
        sale_service.record_sale(db, customer.id, _lines((panadol.id, b1.id, 1, "100")))
    assert db.query(Invoice).count() == 0


def test_commit_requires_customer_and_items(db, shelf, customer):
    panadol, p1, *_ = shelf

    with pytest.raises(ValidationError, match="select a customer"):
        sale_service.record_sale(db, None, _lines((panadol.id, p1.id, 1, "100")))
    with pytest.raises(ValidationError, match="at least one item"):
        sale_service.record_sale(db, customer.id, [])
    with pytest.raises(NotFoundError):
        sale_service.record_sale(db, 404, _lines((panadol.id, p1.id, 1, "100")))
    with pytest.raises(ValidationError, match="Status"):
        sale_service.record_sale(db, customer.id, _lines((panadol.id, p1.id, 1, "100")), status="Partial")


def test_check_line_against_cart(db, shelf):
    panadol, _, p2, *_ = shelf
    cart = _lines((panadol.id, p2.id, 5, "100"))

    with pytest.raises(InsufficientStockError, match="Only 3 units available in selected batch"):
        sale_service.check_line(db, cart, _lines((panadol.id, p2.id, 4, "100"))[0])

    result = sale_service.check_line(db, cart, _lines((panadol.id, p2.id, 8, "100"))[0], editing_index=0)
    assert result["available"] == 0
    assert [line.quantity for line in result["lines"]] == [8]


def test_batch_availability(db, shelf):
    panadol, _, p2, *_ = shelf
    cart = _lines((panadol.id, p2.id, 5, "100"), (panadol.id, p2.id, 1, "100"))

    info = sale_service.batch_availability(db, p2.id, cart)
    assert (info["reserved"], info["available"]) == (6, 2)

    editing = sale_service.batch_availability(db, p2.id, cart, editing_index=0)
    assert editing["available"] == 7


def test_quote_uses_configured_defaults(shelf, monkeypatch):
    from medistock.core.config import settings

    monkeypatch.setattr(settings, "DEFAULT_TAX_RATE", 0.1)
    monkeypatch.setattr(settings, "DEFAULT_DISCOUNT_RATE", 0.0)
    panadol, p1, *_ = shelf

    totals = sale_service.quote(_lines((panadol.id, p1.id, 3, "100")))

    assert totals.total == Decimal("330.00")
    with pytest.raises(ValidationError, match="cannot exceed"):
        sale_service.quote(_lines((panadol.id, p1.id, 3, "100")), discount_rate=Decimal("1.5"))


def test_cart_prices_are_kept_to_cents(db, shelf, customer):
    panadol, p1, _, _, _ = shelf
    lines = _lines((panadol.id, p1.id, 3, "10.005"))
    assert lines[0].unit_price == Decimal("10.01")

    invoice = sale_service.record_sale(db, customer.id, lines, tax_rate=0, discount_rate=0)

    assert invoice.subtotal == sum(item.unit_price * item.quantity for item in invoice.items)
