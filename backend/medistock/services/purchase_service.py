"""Stock intake: new medicine or restock of an existing one.

A purchase is medicine (new only) + batch + purchase ledger row, written in
one database transaction - either all of it lands or none of it.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from medistock.core.exceptions import ValidationError
from medistock.models.batch import Batch
from medistock.models.medicine import Medicine
from medistock.models.stock_transaction import StockTransaction, TransactionType
from medistock.services import inventory_service

logger = logging.getLogger(__name__)


def _check_intake(quantity: int, cost_price, selling_price, expiry_date: date) -> None:
    if quantity <= 0:
        raise ValidationError("Purchased quantity must be greater than 0")
    if cost_price is None or float(cost_price) <= 0:
        raise ValidationError("Purchase price must be greater than 0")
    if selling_price is None or float(selling_price) <= 0:
        raise ValidationError("Selling price must be greater than 0")
    if expiry_date is None:
        raise ValidationError("Expiry date is required")


def _receive(
    db: Session,
    medicine: Medicine,
    batch_number: str,
    expiry_date: date,
    quantity: int,
    cost_price,
    selling_price,
    notes: Optional[str],
    user_id: Optional[int],
):
    batch = inventory_service.add_batch(
        db,
        medicine_id=medicine.id,
        batch_number=batch_number,
        expiry_date=expiry_date,
        quantity=quantity,
        cost_price=cost_price,
        selling_price=selling_price,
    )
    db.flush()
    txn = inventory_service.record_transaction(
        db,
        medicine_id=medicine.id,
        batch_id=batch.id,
        type=TransactionType.PURCHASE,
        quantity=quantity,
        unit_price=cost_price,
        notes=notes,
        created_by=user_id,
    )
    return batch, txn


def purchase_new_medicine(
    db: Session,
    medicine_data: dict,
    batch_number: str,
    expiry_date: date,
    quantity: int,
    cost_price,
    selling_price,
    notes: Optional[str] = None,
    user_id: Optional[int] = None,
):
    """Create a medicine together with its first batch. Returns (medicine, batch, transaction)."""
    _check_intake(quantity, cost_price, selling_price, expiry_date)
    try:
        data = dict(medicine_data)
        if not data.get("price"):
            data["price"] = selling_price
        medicine = inventory_service.create_medicine(db, **data)
        batch, txn = _receive(
            db, medicine, batch_number, expiry_date, quantity,
            cost_price, selling_price, notes, user_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(medicine)
    logger.info(
        f"[PURCHASE] New medicine {medicine.id} '{medicine.name}' batch {batch.batch_number} "
        f"qty={quantity} cost={cost_price}"
    )
    return medicine, batch, txn


def restock(
    db: Session,
    medicine_id: int,
    batch_number: str,
    expiry_date: date,
    quantity: int,
    cost_price,
    selling_price,
    notes: Optional[str] = None,
    user_id: Optional[int] = None,
):
    """Receive a new batch of an existing medicine. Returns (medicine, batch, transaction)."""
    _check_intake(quantity, cost_price, selling_price, expiry_date)
    medicine = inventory_service.get_medicine(db, medicine_id)
    try:
        batch, txn = _receive(
            db, medicine, batch_number, expiry_date, quantity,
            cost_price, selling_price, notes, user_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(medicine)
    logger.info(
        f"[PURCHASE] Restocked medicine {medicine.id} '{medicine.name}' batch {batch.batch_number} "
        f"qty={quantity} -> stock {medicine.current_stock}"
    )
    return medicine, batch, txn


def latest_batch(db: Session, medicine_id: int) -> Optional[Batch]:
    """Most recently received batch - used to prefill restock prices."""
    inventory_service.get_medicine(db, medicine_id)
    return (
        db.query(Batch)
        .filter(Batch.medicine_id == medicine_id)
        .order_by(Batch.created_at.desc(), Batch.id.desc())
        .first()
    )


def purchase_history(db: Session, search: Optional[str] = None, limit: int = 200) -> List[dict]:
    q = (
        db.query(StockTransaction, Medicine, Batch)
        .join(Medicine, StockTransaction.medicine_id == Medicine.id)
        .join(Batch, StockTransaction.batch_id == Batch.id)
        .filter(StockTransaction.type == TransactionType.PURCHASE)
    )
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(Medicine.name.ilike(pattern) | Batch.batch_number.ilike(pattern))
    rows = q.order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc()).limit(limit).all()
    return [
        {
            "id": txn.id,
            "created_at": txn.created_at,
            "medicine_id": med.id,
            "medicine": f"{med.name} {med.strength or ''}".strip(),
            "batch_number": batch.batch_number,
            "expiry_date": batch.expiry_date,
            "quantity": txn.quantity,
            "unit_price": txn.unit_price,
            "total_amount": txn.total_amount,
            "notes": txn.notes,
        }
        for txn, med, batch in rows
    ]
