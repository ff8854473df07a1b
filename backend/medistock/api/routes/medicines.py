"""Inventory: medicines, their batches, stock alerts and CSV export."""
import csv
import io
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from medistock.api.deps import admin_only, can_operate, can_view, get_db
from medistock.core.audit import AuditLog
from medistock.core.config import settings
from medistock.models.user import User
from medistock.schemas.medicine import (
    BatchCreate,
    BatchResponse,
    ExpiringBatch,
    MedicineCreate,
    MedicineResponse,
    MedicineUpdate,
)
from medistock.services import inventory_service, sale_service

router = APIRouter()


@router.get("", response_model=List[MedicineResponse])
def list_medicines(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    """Inventory list; search matches name, category and manufacturer."""
    return inventory_service.list_medicines(db, search)


# ==============================================================================
# ALERTS
# ==============================================================================

@router.get("/low-stock", response_model=List[MedicineResponse])
def low_stock(db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return inventory_service.get_low_stock_medicines(db)


@router.get("/expiring", response_model=List[ExpiringBatch])
def expiring_batches(
    days: Optional[int] = Query(None, ge=0, description="Alert for batches expiring within N days"),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return inventory_service.get_expiring_batches(db, days if days is not None else settings.EXPIRY_ALERT_DAYS)


# ==============================================================================
# EXPORT (CSV Download)
# ==============================================================================

@router.get("/export")
def export_inventory_csv(db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    medicines = inventory_service.list_medicines(db)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "Name", "Strength", "Category", "Manufacturer", "Unit",
        f"Price ({settings.CURRENCY})", "Current Stock", "Min Stock Level",
    ])
    for m in medicines:
        writer.writerow([
            m.name,
            m.strength or "",
            m.category or "",
            m.manufacturer or "",
            m.unit or "",
            f"{float(m.price or 0):.2f}",
            m.current_stock,
            m.min_stock_level,
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=inventory_{date.today()}.csv"},
    )


# ==============================================================================
# MEDICINE CRUD
# ==============================================================================

@router.post("", response_model=MedicineResponse, status_code=201)
def create_medicine(
    data: MedicineCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    medicine = inventory_service.create_medicine(db, auto_commit=True, **data.model_dump())
    AuditLog.log_action("create", "medicine", medicine.id, current_user, changes={"name": medicine.name})
    return medicine


@router.get("/{medicine_id}", response_model=MedicineResponse)
def get_medicine(medicine_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return inventory_service.get_medicine(db, medicine_id)


@router.patch("/{medicine_id}", response_model=MedicineResponse)
def update_medicine(
    medicine_id: int,
    updates: MedicineUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    changes = updates.model_dump(exclude_unset=True)
    medicine = inventory_service.update_medicine(db, medicine_id, changes)
    AuditLog.log_action("update", "medicine", medicine.id, current_user, changes=changes)
    return medicine


@router.delete("/{medicine_id}")
def delete_medicine(medicine_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    """Delete a medicine along with its batches and stock history."""
    name = inventory_service.delete_medicine(db, medicine_id)
    AuditLog.log_action("delete", "medicine", medicine_id, current_user, changes={"name": name})
    return {"message": f"Deleted {name}", "id": medicine_id}


# ==============================================================================
# BATCHES
# ==============================================================================

@router.get("/{medicine_id}/batches", response_model=List[BatchResponse])
def list_batches(
    medicine_id: int,
    in_stock: bool = Query(False, description="Only batches with quantity left"),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return inventory_service.list_batches(db, medicine_id, sellable_only=in_stock)


@router.get("/{medicine_id}/batches/fefo", response_model=List[BatchResponse])
def fefo_batches(medicine_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    """Sellable batches in dispensing order, earliest expiry first."""
    return sale_service.sellable_batches(db, medicine_id)


@router.post("/{medicine_id}/batches", response_model=BatchResponse, status_code=201)
def add_batch(
    medicine_id: int,
    data: BatchCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    """Add a batch without a purchase record (opening stock, corrections)."""
    batch = inventory_service.add_batch(db, medicine_id=medicine_id, auto_commit=True, **data.model_dump())
    AuditLog.log_action(
        "create", "batch", batch.id, current_user,
        changes={"medicine_id": medicine_id, "batch_number": batch.batch_number, "quantity": batch.quantity},
    )
    return batch
