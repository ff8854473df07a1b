"""Purchases: stock intake for new and existing medicines."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medistock.api.deps import can_operate, can_view, get_db
from medistock.core.audit import AuditLog
from medistock.models.user import User
from medistock.schemas.medicine import BatchResponse, MedicineResponse, TransactionResponse
from medistock.schemas.purchase import (
    NewMedicinePurchase,
    PurchaseHistoryRow,
    PurchaseResponse,
    RestockPurchase,
)
from medistock.services import purchase_service

router = APIRouter()


def _audit(action: str, current_user: User, medicine, batch, txn) -> None:
    AuditLog.log_action(
        action, "batch", batch.id, current_user,
        changes={
            "medicine_id": medicine.id,
            "batch_number": batch.batch_number,
            "quantity": txn.quantity,
            "total_amount": str(txn.total_amount),
        },
    )


@router.post("/new", response_model=PurchaseResponse, status_code=201)
def purchase_new_medicine(
    data: NewMedicinePurchase,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    medicine, batch, txn = purchase_service.purchase_new_medicine(
        db,
        medicine_data=data.medicine.model_dump(),
        batch_number=data.batch_number,
        expiry_date=data.expiry_date,
        quantity=data.quantity,
        cost_price=data.cost_price,
        selling_price=data.selling_price,
        notes=data.notes,
        user_id=current_user.id,
    )
    _audit("purchase", current_user, medicine, batch, txn)
    return PurchaseResponse(
        medicine=MedicineResponse.model_validate(medicine),
        batch=BatchResponse.model_validate(batch),
        transaction=TransactionResponse.model_validate(txn),
        message=f"Added {medicine.name} with {txn.quantity} units",
    )


@router.post("/restock", response_model=PurchaseResponse, status_code=201)
def restock(
    data: RestockPurchase,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    medicine, batch, txn = purchase_service.restock(
        db,
        medicine_id=data.medicine_id,
        batch_number=data.batch_number,
        expiry_date=data.expiry_date,
        quantity=data.quantity,
        cost_price=data.cost_price,
        selling_price=data.selling_price,
        notes=data.notes,
        user_id=current_user.id,
    )
    _audit("restock", current_user, medicine, batch, txn)
    return PurchaseResponse(
        medicine=MedicineResponse.model_validate(medicine),
        batch=BatchResponse.model_validate(batch),
        transaction=TransactionResponse.model_validate(txn),
        message=f"Restocked {medicine.name}: {txn.quantity} units, stock now {medicine.current_stock}",
    )


@router.get("/history", response_model=List[PurchaseHistoryRow])
def purchase_history(
    search: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return purchase_service.purchase_history(db, search, limit)


@router.get("/latest-batch/{medicine_id}", response_model=Optional[BatchResponse])
def latest_batch(medicine_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    """Last received batch of a medicine, used to prefill the restock form."""
    return purchase_service.latest_batch(db, medicine_id)
