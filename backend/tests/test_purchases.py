from datetime import date
from decimal import Decimal

import pytest

from medistock.core.exceptions import ConflictError, NotFoundError, ValidationError
from medistock.models.batch import Batch
from medistock.models.medicine import Medicine
from medistock.models.stock_transaction import StockTransaction
from medistock.services import purchase_service


def _new(db, name="Panadol", **overrides):
    params = dict(
        medicine_data={"name": name, "strength": "500mg", "unit": "Strip"},
        batch_number="PN-2401",
        expiry_date=date(2027, 3, 31),
        quantity=120,
        cost_price=Decimal("18.00"),
        selling_price=Decimal("25.00"),
    )
    params.update(overrides)
    return purchase_service.purchase_new_medicine(db, **params)


def test_new_medicine_purchase_writes_medicine_batch_and_ledger(db, users):
    medicine, batch, txn = _new(db, user_id=users["Pharmacist"].id)

    assert medicine.current_stock == 120
    assert medicine.price == Decimal("25.00")
    assert batch.quantity == 120
    assert txn.type == "purchase"
    assert txn.total_amount == Decimal("2160.00")
    assert txn.created_by == users["Pharmacist"].id


def test_purchase_is_all_or_nothing(db):
    with pytest.raises(ValidationError, match="Batch number is required"):
        _new(db, batch_number="  ")

    assert db.query(Medicine).count() == 0
    assert db.query(Batch).count() == 0
    assert db.query(StockTransaction).count() == 0


def test_purchase_rejects_bad_intake(db):
    with pytest.raises(ValidationError, match="quantity must be greater than 0"):
        _new(db, quantity=0)
    with pytest.raises(ValidationError, match="Purchase price"):
        _new(db, cost_price=0)


def test_duplicate_new_medicine_is_refused(db):
    _new(db)
    with pytest.raises(ConflictError):
        _new(db, batch_number="PN-2402")
    assert db.query(Batch).count() == 1


def test_restock_adds_batch_to_existing_medicine(db):
    medicine, _, _ = _new(db)

    medicine, batch, txn = purchase_service.restock(
        db,
        medicine_id=medicine.id,
        batch_number="PN-2407",
        expiry_date=date(2027, 9, 30),
        quantity=200,
        cost_price=Decimal("18.50"),
        selling_price=Decimal("25.00"),
    )

    assert medicine.current_stock == 320
    assert txn.total_amount == Decimal("3700.00")
    assert purchase_service.latest_batch(db, medicine.id).id == batch.id


def test_restock_unknown_medicine(db):
    with pytest.raises(NotFoundError):
        purchase_service.restock(db, 999, "X-1", date(2027, 1, 1), 5, 1, 2)


def test_purchase_history_search(db):
    _new(db)
    _new(db, medicine_data={"name": "Brufen", "strength": "400mg"}, batch_number="BR-1102")

    rows = purchase_service.purchase_history(db, search="BR-")

    assert [r["medicine"] for r in rows] == ["Brufen 400mg"]
    assert rows[0]["total_amount"] == Decimal("2160.00")
    assert len(purchase_service.purchase_history(db)) == 2
