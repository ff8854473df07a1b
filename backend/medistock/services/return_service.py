"""Customer returns against a sold invoice line."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from medistock.core.audit import AuditLog
from medistock.core.exceptions import ValidationError
from medistock.models.stock_transaction import StockTransaction, TransactionType
from medistock.models.user import User
from medistock.services import inventory_service, invoice_service

logger = logging.getLogger(__name__)

RETURN_REASONS = (
    "Near Expiry",
    "Expired",
    "Damaged",
    "Quality Issue",
    "Wrong Medicine",
    "Other",
)


def returnable_quantity(item) -> int:
    return item.quantity - (item.returned_quantity or 0)


def record_return(
    db: Session,
    invoice_item_id: int,
    quantity: int,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    user: Optional[User] = None,
) -> StockTransaction:
    """Put returned units back on their original batch at the price they were sold for."""
    item = invoice_service.get_invoice_item(db, invoice_item_id)
    max_returnable = returnable_quantity(item)
    if quantity <= 0 or quantity > max_returnable:
        raise ValidationError(f"Max returnable is {max_returnable}")
    if reason is not None and reason not in RETURN_REASONS:
        raise ValidationError(f"Reason must be one of: {', '.join(RETURN_REASONS)}")

    try:
        txn = inventory_service.record_transaction(
            db,
            medicine_id=item.medicine_id,
            batch_id=item.batch_id,
            type=TransactionType.RETURN,
            quantity=quantity,
            unit_price=item.unit_price,
            notes=notes or reason,
            created_by=user.id if user else None,
        )
        item.returned_quantity = (item.returned_quantity or 0) + quantity
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(txn)
    logger.info(
        f"[RETURN] invoice item {item.id} ({item.invoice.invoice_no}) qty={quantity} "
        f"batch={item.batch_id} reason={reason or '-'}"
    )
    AuditLog.log_action(
        "return", "invoice_item", item.id, user,
        changes={"quantity": quantity, "reason": reason},
    )
    return txn
