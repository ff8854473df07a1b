from decimal import Decimal

import pytest

from medistock.core.exceptions import NotFoundError, ValidationError
from medistock.models.invoice import Invoice, InvoiceItem
from medistock.services import customer_service, sale_service
from medistock.services.sale_service import to_cart_lines


def test_name_is_sanitized():
    assert customer_service.sanitize_customer_name("  <b>Ali</b>   Raza!! ") == "Ali Raza"
    assert customer_service.sanitize_customer_name("O'Brien & Sons") == "O'Brien & Sons"
    with pytest.raises(ValidationError):
        customer_service.sanitize_customer_name("<>")
    with pytest.raises(ValidationError):
        customer_service.sanitize_customer_name("")


def test_create_defaults_and_rejects_negative_dues(db):
    customer = customer_service.create_customer(db, "Sana Malik", city=" Karachi ", phone="")

    assert customer.outstanding_dues == Decimal("0.00")
    assert customer.city == "Karachi"
    assert customer.phone is None
    with pytest.raises(ValidationError, match="cannot be negative"):
        customer_service.create_customer(db, "Bad Debt", outstanding_dues=-5)


def test_search_by_name_city_or_phone(db):
    customer_service.create_customer(db, "Ali Raza", city="Lahore", phone="0300-1112233")
    customer_service.create_customer(db, "Sana Malik", city="Karachi", phone="0321-9998877")

    assert [c.name for c in customer_service.list_customers(db, "lahore")] == ["Ali Raza"]
    assert [c.name for c in customer_service.list_customers(db, "0321")] == ["Sana Malik"]
    assert len(customer_service.list_customers(db)) == 2


def test_delete_removes_customer_invoices(db, stock, customer):
    medicine, (batch,) = stock("Panadol", [("PN-1", 200, 10, 18, 25)])
    sale_service.record_sale(
        db, customer.id,
        to_cart_lines([{"medicine_id": medicine.id, "batch_id": batch.id, "quantity": 2, "unit_price": "25"}]),
    )

    customer_service.delete_customer(db, customer.id)

    assert db.query(Invoice).count() == 0
    assert db.query(InvoiceItem).count() == 0
    with pytest.raises(NotFoundError):
        customer_service.get_customer(db, customer.id)
