"""Medicine catalog, batches and the stock ledger.

Every write that changes a batch quantity ends with sync_current_stock() so
Medicine.current_stock always equals the sum of its batch quantities.
Functions flush but do not commit unless auto_commit is set; callers that
chain several writes commit once at the end.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from medistock.core.exceptions import ConflictError, NotFoundError, ValidationError
from medistock.models.batch import Batch
from medistock.models.invoice import InvoiceItem
from medistock.models.medicine import Medicine
from medistock.models.stock_transaction import StockTransaction, TransactionType

logger = logging.getLogger(__name__)

_MEDICINE_FIELDS = (
    "name", "category", "manufacturer", "strength", "unit",
    "description", "min_stock_level", "price",
)


def _validate_medicine_values(values: dict) -> None:
    if "name" in values and (values["name"] is None or not values["name"].strip()):
        raise ValidationError("Medicine name cannot be empty")
    if values.get("price") is not None and Decimal(str(values["price"])) < 0:
        raise ValidationError("Price cannot be negative")
    if values.get("min_stock_level") is not None and values["min_stock_level"] < 0:
        raise ValidationError("Minimum stock level cannot be negative")


def _find_duplicate(db: Session, name: str, strength: Optional[str], exclude_id: Optional[int] = None):
    q = db.query(Medicine).filter(func.lower(Medicine.name) == name.strip().lower())
    if strength:
        q = q.filter(func.lower(Medicine.strength) == strength.strip().lower())
    else:
        q = q.filter(or_(Medicine.strength.is_(None), Medicine.strength == ""))
    if exclude_id is not None:
        q = q.filter(Medicine.id != exclude_id)
    return q.first()


def get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = db.get(Medicine, medicine_id)
    if not medicine:
        raise NotFoundError("Medicine", medicine_id)
    return medicine


def get_batch(db: Session, batch_id: int) -> Batch:
    batch = db.get(Batch, batch_id)
    if not batch:
        raise NotFoundError("Batch", batch_id)
    return batch


def list_medicines(db: Session, search: Optional[str] = None) -> List[Medicine]:
    q = db.query(Medicine)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            Medicine.name.ilike(pattern),
            Medicine.category.ilike(pattern),
            Medicine.manufacturer.ilike(pattern),
        ))
    return q.order_by(Medicine.name).all()


def create_medicine(db: Session, auto_commit: bool = False, **values) -> Medicine:
    _validate_medicine_values(values)
    if _find_duplicate(db, values["name"], values.get("strength")):
        raise ConflictError(f"Medicine '{values['name'].strip()}' already exists")

    medicine = Medicine(**{k: v for k, v in values.items() if k in _MEDICINE_FIELDS and v is not None})
    medicine.name = medicine.name.strip()
    medicine.current_stock = 0
    db.add(medicine)
    db.flush()
    if auto_commit:
        db.commit()
        db.refresh(medicine)
    logger.info(f"[INVENTORY] Created medicine {medicine.id} '{medicine.name}'")
    return medicine


def update_medicine(db: Session, medicine_id: int, updates: dict) -> Medicine:
    medicine = get_medicine(db, medicine_id)
    updates = {k: v for k, v in updates.items() if k in _MEDICINE_FIELDS and v is not None}
    _validate_medicine_values(updates)

    name = updates.get("name", medicine.name)
    strength = updates.get("strength", medicine.strength)
    if _find_duplicate(db, name, strength, exclude_id=medicine.id):
        raise ConflictError(f"Medicine '{name.strip()}' already exists")

    for field, value in updates.items():
        setattr(medicine, field, value.strip() if field == "name" else value)
    db.commit()
    db.refresh(medicine)
    return medicine


def delete_medicine(db: Session, medicine_id: int) -> str:
    """Delete a medicine with its batches and ledger rows. Refused once it has been invoiced."""
    medicine = get_medicine(db, medicine_id)
    invoiced = db.query(func.count(InvoiceItem.id)).filter(InvoiceItem.medicine_id == medicine_id).scalar()
    if invoiced:
        raise ConflictError(f"'{medicine.name}' appears on {invoiced} invoice line(s) and cannot be deleted")
    name = medicine.name
    db.delete(medicine)
    db.commit()
    logger.info(f"[INVENTORY] Deleted medicine {medicine_id} '{name}'")
    return name


def get_medicine_stock(db: Session, medicine_id: int) -> int:
    total = db.query(func.coalesce(func.sum(Batch.quantity), 0)).filter(Batch.medicine_id == medicine_id).scalar()
    return int(total or 0)


def sync_current_stock(db: Session, medicine_id: int) -> Medicine:
    db.flush()
    medicine = get_medicine(db, medicine_id)
    medicine.current_stock = get_medicine_stock(db, medicine_id)
    return medicine


def list_batches(db: Session, medicine_id: int, sellable_only: bool = False) -> List[Batch]:
    get_medicine(db, medicine_id)
    q = db.query(Batch).filter(Batch.medicine_id == medicine_id)
    if sellable_only:
        q = q.filter(Batch.quantity > 0)
    return q.order_by(Batch.expiry_date, Batch.id).all()


def add_batch(
    db: Session,
    medicine_id: int,
    batch_number: str,
    expiry_date: date,
    quantity: int,
    cost_price,
    selling_price,
    auto_commit: bool = False,
) -> Batch:
    get_medicine(db, medicine_id)
    if not batch_number or not batch_number.strip():
        raise ValidationError("Batch number is required")
    if quantity < 0:
        raise ValidationError("Quantity cannot be negative")
    if Decimal(str(cost_price)) < 0 or Decimal(str(selling_price)) < 0:
        raise ValidationError("Prices cannot be negative")

    batch = Batch(
        medicine_id=medicine_id,
        batch_number=batch_number.strip(),
        expiry_date=expiry_date,
        quantity=quantity,
        cost_price=Decimal(str(cost_price)),
        selling_price=Decimal(str(selling_price)),
    )
    db.add(batch)
    sync_current_stock(db, medicine_id)
    if auto_commit:
        db.commit()
        db.refresh(batch)
    return batch


def record_transaction(
    db: Session,
    medicine_id: int,
    batch_id: int,
    type: str,
    quantity: int,
    unit_price,
    notes: Optional[str] = None,
    created_by: Optional[int] = None,
    auto_commit: bool = False,
) -> StockTransaction:
    """Append a ledger row and apply it to the batch.

    sale subtracts from the batch, return adds back, purchase leaves the
    batch alone because the batch was created with its received quantity.
    """
    if type not in TransactionType.ALL:
        raise ValidationError(f"Unknown transaction type '{type}'")
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")

    batch = get_batch(db, batch_id)
    if batch.medicine_id != medicine_id:
        raise ValidationError("Batch does not belong to this medicine")

    if type == TransactionType.SALE:
        if quantity > batch.quantity:
            raise ValidationError(f"Only {batch.quantity} units available in batch {batch.batch_number}")
        batch.quantity -= quantity
    elif type == TransactionType.RETURN:
        batch.quantity += quantity

    price = Decimal(str(unit_price))
    txn = StockTransaction(
        medicine_id=medicine_id,
        batch_id=batch_id,
        type=type,
        quantity=quantity,
        unit_price=price,
        total_amount=Decimal(quantity) * price,
        notes=notes,
        created_by=created_by,
    )
    db.add(txn)
    sync_current_stock(db, medicine_id)
    if auto_commit:
        db.commit()
        db.refresh(txn)
    return txn


def get_low_stock_medicines(db: Session) -> List[Medicine]:
    return (
        db.query(Medicine)
        .filter(Medicine.current_stock <= Medicine.min_stock_level)
        .order_by(Medicine.current_stock.asc(), Medicine.name)
        .all()
    )


def get_expiring_batches(db: Session, days: int = 30, today: Optional[date] = None) -> List[dict]:
    """Batches with stock left that expire within `days` (already expired included), soonest first."""
    today = today or date.today()
    cutoff = today + timedelta(days=days)
    rows = (
        db.query(Batch, Medicine.name)
        .join(Medicine, Batch.medicine_id == Medicine.id)
        .filter(Batch.expiry_date <= cutoff, Batch.quantity > 0)
        .order_by(Batch.expiry_date.asc(), Batch.id)
        .all()
    )
    return [
        {
            "id": b.id,
            "medicine_id": b.medicine_id,
            "medicine_name": name,
            "batch_number": b.batch_number,
            "expiry_date": b.expiry_date,
            "quantity": b.quantity,
            "days_until_expiry": (b.expiry_date - today).days,
        }
        for b, name in rows
    ]


def list_transactions(
    db: Session,
    type: Optional[str] = None,
    medicine_id: Optional[int] = None,
    limit: int = 200,
) -> List[StockTransaction]:
    q = db.query(StockTransaction)
    if type:
        if type not in TransactionType.ALL:
            raise ValidationError(f"Unknown transaction type '{type}'")
        q = q.filter(StockTransaction.type == type)
    if medicine_id is not None:
        q = q.filter(StockTransaction.medicine_id == medicine_id)
    return q.order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc()).limit(limit).all()
