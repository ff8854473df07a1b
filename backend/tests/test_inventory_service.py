from datetime import date, timedelta
from decimal import Decimal

import pytest

from medistock.core.exceptions import ConflictError, NotFoundError, ValidationError
from medistock.models.medicine import Medicine
from medistock.models.stock_transaction import StockTransaction, TransactionType
from medistock.services import inventory_service, sale_service
from medistock.services.sale_service import to_cart_lines


def test_create_medicine_rejects_duplicate_name_and_strength(db):
    inventory_service.create_medicine(db, auto_commit=True, name="Panadol", strength="500mg", price=25)

    with pytest.raises(ConflictError, match="already exists"):
        inventory_service.create_medicine(db, name="  panadol ", strength="500MG")

    other = inventory_service.create_medicine(db, auto_commit=True, name="Panadol", strength="1g")
    assert other.current_stock == 0


def test_create_medicine_validates_values(db):
    with pytest.raises(ValidationError, match="name cannot be empty"):
        inventory_service.create_medicine(db, name="   ")
    with pytest.raises(ValidationError, match="Price cannot be negative"):
        inventory_service.create_medicine(db, name="Brufen", price=-1)


def test_update_medicine_is_partial(db):
    med = inventory_service.create_medicine(db, auto_commit=True, name="Risek", strength="20mg", unit="Box")

    updated = inventory_service.update_medicine(db, med.id, {"min_stock_level": 12, "unit": None})

    assert updated.min_stock_level == 12
    assert updated.unit == "Box"


def test_add_batch_recomputes_current_stock(db):
    med = inventory_service.create_medicine(db, auto_commit=True, name="Zyrtec", strength="10mg")

    inventory_service.add_batch(db, med.id, "ZY-1", date(2027, 1, 1), 30, 40, 55, auto_commit=True)
    inventory_service.add_batch(db, med.id, "ZY-2", date(2027, 6, 1), 20, 41, 55, auto_commit=True)

    assert inventory_service.get_medicine_stock(db, med.id) == 50
    assert db.get(Medicine, med.id).current_stock == 50


def test_record_transaction_applies_by_type(db, stock):
    med, (batch,) = stock("Flagyl", [("FG-1", 200, 20, 28, 38)])

    inventory_service.record_transaction(
        db, med.id, batch.id, TransactionType.SALE, 5, 38, auto_commit=True
    )
    assert batch.quantity == 15
    assert med.current_stock == 15

    txn = inventory_service.record_transaction(
        db, med.id, batch.id, TransactionType.RETURN, 2, 38, auto_commit=True
    )
    assert batch.quantity == 17
    assert txn.total_amount == Decimal("76.00")

    inventory_service.record_transaction(
        db, med.id, batch.id, TransactionType.PURCHASE, 100, 28, auto_commit=True
    )
    assert batch.quantity == 17
    assert med.current_stock == 17


def test_sale_transaction_cannot_exceed_batch(db, stock):
    med, (batch,) = stock("Ventolin", [("VT-1", 200, 3, 380, 470)])

    with pytest.raises(ValidationError, match="Only 3 units"):
        inventory_service.record_transaction(db, med.id, batch.id, TransactionType.SALE, 4, 470)


def test_low_stock_uses_min_level(db, stock):
    stock("Norvasc", [("NV-1", 300, 5, 330, 420)], strength="5mg", min_stock_level=8)
    stock("Lipitor", [("LP-1", 300, 25, 560, 690)], strength="10mg", min_stock_level=8)

    names = [m.name for m in inventory_service.get_low_stock_medicines(db)]

    assert names == ["Norvasc"]


def test_expiring_batches_within_window(db, stock):
    med, batches = stock("Augmentin", [
        ("AG-OLD", -5, 4, 410, 520),
        ("AG-SOON", 10, 12, 410, 520),
        ("AG-LATER", 90, 40, 415, 520),
    ], strength="625mg")
    sold_out, _ = stock("Amoxil", [("AX-1", 3, 1, 160, 210)])
    inventory_service.record_transaction(
        db, sold_out.id, sold_out.batches[0].id, TransactionType.SALE, 1, 210, auto_commit=True
    )

    rows = inventory_service.get_expiring_batches(db, days=30, today=date.today())

    assert [r["batch_number"] for r in rows] == ["AG-OLD", "AG-SOON"]
    assert rows[0]["medicine_name"] == "Augmentin"
    assert rows[0]["days_until_expiry"] == -5


def test_delete_medicine_removes_batches_and_history(db, stock):
    med, _ = stock("ORS Sachet", [("OR-1", 100, 50, 12, 18)], strength=None)

    inventory_service.delete_medicine(db, med.id)

    assert db.query(StockTransaction).count() == 0
    with pytest.raises(NotFoundError):
        inventory_service.get_medicine(db, med.id)


def test_delete_invoiced_medicine_is_refused(db, stock, customer):
    med, (batch,) = stock("Brufen", [("BR-1", 100, 10, 32, 45)], strength="400mg")
    sale_service.record_sale(
        db, customer.id,
        to_cart_lines([{"medicine_id": med.id, "batch_id": batch.id, "quantity": 1, "unit_price": "45"}]),
    )

    with pytest.raises(ConflictError, match="invoice line"):
        inventory_service.delete_medicine(db, med.id)


def test_list_transactions_filters_by_type(db, stock):
    med, (batch,) = stock("Glucophage", [("GL-1", 100, 50, 115, 150)])
    inventory_service.record_transaction(db, med.id, batch.id, TransactionType.SALE, 2, 150, auto_commit=True)

    purchases = inventory_service.list_transactions(db, type=TransactionType.PURCHASE)
    assert [t.type for t in purchases] == ["purchase"]
    assert len(inventory_service.list_transactions(db, medicine_id=med.id)) == 2
    with pytest.raises(ValidationError):
        inventory_service.list_transactions(db, type="adjustment")


def test_search_matches_category_and_manufacturer(db):
    inventory_service.create_medicine(db, auto_commit=True, name="Risek", category="Antacid", manufacturer="Getz")
    inventory_service.create_medicine(db, auto_commit=True, name="Lipitor", category="Statin", manufacturer="Pfizer")

    assert [m.name for m in inventory_service.list_medicines(db, "getz")] == ["Risek"]
    assert [m.name for m in inventory_service.list_medicines(db, "stat")] == ["Lipitor"]
    assert len(inventory_service.list_medicines(db)) == 2


def test_sellable_batches_in_fefo_order(db, stock):
    med, batches = stock("Panadol", [
        ("PN-LATE", 300, 10, 18, 25),
        ("PN-EARLY", 30, 10, 18, 25),
    ])
    inventory_service.add_batch(db, med.id, "PN-EMPTY", date.today() + timedelta(days=5), 0, 18, 25, auto_commit=True)

    assert [b.batch_number for b in sale_service.sellable_batches(db, med.id)] == ["PN-EARLY", "PN-LATE"]
