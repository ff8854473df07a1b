"""
Sale workflow: FEFO batch suggestions, cart checks and the sale commit.

The cart check the client runs while composing a sale is advisory - it only
knows the batch quantities it last fetched. record_sale() therefore repeats
the check against stored quantities, summing lines that share a batch, and
writes invoice, items, sale ledger rows and dues in one database
transaction. Resubmitting the same cart records a second sale.
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from medistock.core.audit import AuditLog
from medistock.core.config import settings
from medistock.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from medistock.models.batch import Batch
from medistock.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from medistock.models.stock_transaction import TransactionType
from medistock.models.user import User
from medistock.services import customer_service, inventory_service, invoice_service
from medistock.services.cart import (
    CartLine,
    CartTotals,
    SaleCart,
    compute_totals,
    fefo_batches,
    reserved_in_cart,
    round_money,
)

logger = logging.getLogger(__name__)


def to_cart_lines(lines: Iterable) -> List[CartLine]:
    """Build CartLines from request models or dicts."""
    result = []
    for line in lines:
        data = line if isinstance(line, dict) else line.model_dump()
        result.append(CartLine(
            medicine_id=data["medicine_id"],
            batch_id=data["batch_id"],
            quantity=data["quantity"],
            unit_price=round_money(data["unit_price"]),
        ))
    return result


def resolve_rates(tax_rate=None, discount_rate=None):
    tax = settings.DEFAULT_TAX_RATE if tax_rate is None else tax_rate
    discount = settings.DEFAULT_DISCOUNT_RATE if discount_rate is None else discount_rate
    if tax < 0 or discount < 0:
        raise ValidationError("Tax and discount rates cannot be negative")
    if discount > 1:
        raise ValidationError("Discount rate cannot exceed 100%")
    return tax, discount


def sellable_batches(db: Session, medicine_id: int) -> List[Batch]:
    return fefo_batches(inventory_service.list_batches(db, medicine_id), medicine_id)


def check_line(
    db: Session,
    cart_lines: List[CartLine],
    line: CartLine,
    editing_index: Optional[int] = None,
) -> Dict:
    """Validate one line against the cart as the add/update button would.

    Returns the resulting cart lines and the batch availability left after
    the line is applied.
    """
    batch = inventory_service.get_batch(db, line.batch_id)
    cart = SaleCart(cart_lines)
    if editing_index is None:
        cart.add_line(line, batch)
    else:
        cart.update_line(editing_index, line, batch)
    return {
        "lines": cart.lines,
        "available": cart.available(batch),
    }


def batch_availability(
    db: Session,
    batch_id: int,
    cart_lines: List[CartLine],
    editing_index: Optional[int] = None,
) -> Dict:
    batch = inventory_service.get_batch(db, batch_id)
    cart = SaleCart(cart_lines)
    return {
        "batch_id": batch.id,
        "batch_quantity": batch.quantity,
        "reserved": reserved_in_cart(cart.lines, batch.id, editing_index),
        "available": cart.available(batch, editing_index),
    }


def quote(cart_lines: List[CartLine], tax_rate=None, discount_rate=None) -> CartTotals:
    tax, discount = resolve_rates(tax_rate, discount_rate)
    return compute_totals(cart_lines, tax, discount)


def _lock_batches(db: Session, batch_ids) -> Dict[int, Batch]:
    rows = (
        db.query(Batch)
        .filter(Batch.id.in_(list(batch_ids)))
        .with_for_update()
        .all()
    )
    return {b.id: b for b in rows}


def _verify_stock(db: Session, cart_lines: List[CartLine]) -> None:
    requested: Dict[int, int] = defaultdict(int)
    for line in cart_lines:
        if line.quantity <= 0 or line.unit_price <= 0:
            raise ValidationError("Quantity and price must be greater than 0")
        requested[line.batch_id] += line.quantity

    batches = _lock_batches(db, requested.keys())
    for line in cart_lines:
        batch = batches.get(line.batch_id)
        if batch is None:
            raise NotFoundError("Batch", line.batch_id)
        if batch.medicine_id != line.medicine_id:
            raise ValidationError(f"Batch {batch.batch_number} does not belong to medicine {line.medicine_id}")

    for batch_id, qty in requested.items():
        batch = batches[batch_id]
        if qty > batch.quantity:
            raise InsufficientStockError(
                batch.quantity,
                f"Only {batch.quantity} units available in batch {batch.batch_number}",
            )


def record_sale(
    db: Session,
    customer_id: Optional[int],
    cart_lines: List[CartLine],
    status: str = InvoiceStatus.PAID,
    tax_rate=None,
    discount_rate=None,
    notes: Optional[str] = None,
    user: Optional[User] = None,
    sale_date: Optional[date] = None,
) -> Invoice:
    if not customer_id:
        raise ValidationError("Please select a customer")
    if not cart_lines:
        raise ValidationError("Please add at least one item")
    if status not in InvoiceStatus.ALL:
        raise ValidationError(f"Status must be one of: {', '.join(InvoiceStatus.ALL)}")

    customer = customer_service.get_customer(db, customer_id)
    totals = quote(cart_lines, tax_rate, discount_rate)

    try:
        _verify_stock(db, cart_lines)

        invoice = Invoice(
            invoice_no=invoice_service.next_invoice_no(db),
            customer_id=customer.id,
            date=sale_date or date.today(),
            subtotal=totals.subtotal,
            tax=totals.tax,
            discount=totals.discount,
            total=totals.total,
            status=status,
            created_by=user.id if user else None,
        )
        db.add(invoice)
        db.flush()

        for line in cart_lines:
            db.add(InvoiceItem(
                invoice_id=invoice.id,
                medicine_id=line.medicine_id,
                batch_id=line.batch_id,
                quantity=line.quantity,
                returned_quantity=0,
                unit_price=line.unit_price,
            ))
            inventory_service.record_transaction(
                db,
                medicine_id=line.medicine_id,
                batch_id=line.batch_id,
                type=TransactionType.SALE,
                quantity=line.quantity,
                unit_price=line.unit_price,
                notes=notes or f"Invoice {invoice.invoice_no}",
                created_by=user.id if user else None,
            )

        if status == InvoiceStatus.UNPAID:
            customer_service.adjust_dues(db, customer, totals.total)

        db.commit()
    except Exception:
        db.rollback()
        raise

    invoice = invoice_service.get_invoice(db, invoice.id)
    logger.info(
        f"[SALE] {invoice.invoice_no} customer={customer.id} lines={len(cart_lines)} "
        f"total={invoice.total} status={status}"
    )
    AuditLog.log_action(
        "sale", "invoice", invoice.id, user,
        changes={"invoice_no": invoice.invoice_no, "total": str(invoice.total), "status": status},
    )
    return invoice
