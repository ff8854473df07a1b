"""Returns against sold invoice lines."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medistock.api.deps import can_operate, can_view, get_db
from medistock.models.user import User
from medistock.schemas.medicine import TransactionResponse
from medistock.schemas.sale import ReturnCreate
from medistock.services import invoice_service, return_service

router = APIRouter()


@router.get("/reasons")
def list_reasons(current_user: User = Depends(can_view)):
    return list(return_service.RETURN_REASONS)


@router.get("/items/{invoice_item_id}")
def returnable(invoice_item_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    """How many units of an invoice line can still be returned."""
    item = invoice_service.get_invoice_item(db, invoice_item_id)
    return {
        "invoice_item_id": item.id,
        "invoice_no": item.invoice.invoice_no,
        "quantity": item.quantity,
        "returned_quantity": item.returned_quantity or 0,
        "returnable": return_service.returnable_quantity(item),
    }


@router.post("", response_model=TransactionResponse, status_code=201)
def record_return(data: ReturnCreate, db: Session = Depends(get_db), current_user: User = Depends(can_operate)):
    return return_service.record_return(
        db,
        invoice_item_id=data.invoice_item_id,
        quantity=data.quantity,
        reason=data.reason,
        notes=data.notes,
        user=current_user,
    )
