"""Invoice numbering, listing, status changes and the printable view."""
import logging
import re
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from medistock.core.config import settings
from medistock.core.exceptions import NotFoundError, ValidationError
from medistock.models.customer import Customer
from medistock.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from medistock.services.customer_service import adjust_dues

logger = logging.getLogger(__name__)

PERIODS = ("all", "today", "week", "month", "year")


def next_invoice_no(db: Session, prefix: Optional[str] = None) -> str:
    """<PREFIX>-<seq:05d>, seq continuing from the highest number issued under the prefix."""
    prefix = (prefix or settings.INVOICE_PREFIX).strip() or "INV"
    pattern = re.compile(rf"{re.escape(prefix)}-(\d+)")
    issued = db.query(Invoice.invoice_no).filter(
        Invoice.invoice_no.startswith(f"{prefix}-", autoescape=True)
    )
    last_seq = 0
    for (invoice_no,) in issued:
        # Longer prefixes such as INV-OLD- share the LIKE match
        match = pattern.fullmatch(invoice_no or "")
        if match:
            last_seq = max(last_seq, int(match.group(1)))
    return f"{prefix}-{last_seq + 1:05d}"


def period_bounds(period: str, today: Optional[date] = None):
    """Inclusive (start, end) dates for a period name; (None, None) for "all"."""
    today = today or date.today()
    if period == "all":
        return None, None
    if period == "today":
        return today, today
    if period == "week":
        # Weeks run Sunday to Saturday
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if period == "month":
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)
    if period == "year":
        return today.replace(month=1, day=1), today.replace(month=12, day=31)
    raise ValidationError(f"Unknown period '{period}'. Use one of: {', '.join(PERIODS)}")


def get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(joinedload(Invoice.customer), joinedload(Invoice.items))
        .filter(Invoice.id == invoice_id)
        .first()
    )
    if not invoice:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def list_invoices(
    db: Session,
    search: Optional[str] = None,
    period: str = "all",
    customer: Optional[str] = None,
    status: Optional[str] = None,
    today: Optional[date] = None,
    limit: int = 200,
) -> List[Invoice]:
    q = db.query(Invoice).join(Customer, Invoice.customer_id == Customer.id).options(joinedload(Invoice.customer))

    start, end = period_bounds(period, today)
    if start is not None:
        q = q.filter(Invoice.date >= start, Invoice.date <= end)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Invoice.invoice_no.ilike(pattern), Customer.name.ilike(pattern)))
    if customer:
        q = q.filter(func.lower(Customer.name) == customer.strip().lower())
    if status:
        if status not in InvoiceStatus.ALL:
            raise ValidationError(f"Status must be one of: {', '.join(InvoiceStatus.ALL)}")
        q = q.filter(Invoice.status == status)
    return q.order_by(Invoice.id.desc()).limit(limit).all()


def change_invoice_status(db: Session, invoice_id: int, new_status: str) -> Invoice:
    """Flip Paid/Unpaid. Dues move by the invoice total only when the status really changes."""
    if new_status not in InvoiceStatus.ALL:
        raise ValidationError(f"Status must be one of: {', '.join(InvoiceStatus.ALL)}")

    invoice = get_invoice(db, invoice_id)
    previous = invoice.status
    if previous == new_status:
        return invoice

    invoice.status = new_status
    if invoice.customer is not None:
        total = Decimal(str(invoice.total))
        delta = total if new_status == InvoiceStatus.UNPAID else -total
        adjust_dues(db, invoice.customer, delta)
    db.commit()
    db.refresh(invoice)
    logger.info(f"[INVOICE] {invoice.invoice_no} status {previous} -> {new_status}")
    return invoice


def invoice_lines(invoice: Invoice) -> List[dict]:
    lines = []
    for item in invoice.items:
        med = item.medicine
        lines.append({
            "id": item.id,
            "medicine_id": item.medicine_id,
            "batch_id": item.batch_id,
            "batch_no": item.batch.batch_number if item.batch else "",
            "medicine": f"{med.name} {med.strength or ''}".strip() if med else "Unknown",
            "unit": (med.unit or "") if med else "",
            "quantity": item.quantity,
            "returned_quantity": item.returned_quantity or 0,
            "unit_price": Decimal(str(item.unit_price)),
            "amount": Decimal(item.quantity) * Decimal(str(item.unit_price)),
        })
    return lines


def invoice_document(invoice: Invoice) -> dict:
    """Everything the printable invoice needs, pharmacy profile included."""
    customer = invoice.customer
    return {
        "id": invoice.id,
        "company": {
            "name": settings.PHARMACY_NAME,
            "phone": settings.PHARMACY_PHONE,
            "address": settings.PHARMACY_ADDRESS,
        },
        "invoice_no": invoice.invoice_no,
        "date": invoice.date,
        "status": invoice.status,
        "customer": {
            "id": customer.id if customer else None,
            "name": customer.name if customer else "",
            "address": (customer.address or "") if customer else "",
            "city": (customer.city or "") if customer else "",
            "phone": (customer.phone or "") if customer else "",
        },
        "items": invoice_lines(invoice),
        "subtotal": Decimal(str(invoice.subtotal)),
        "tax": Decimal(str(invoice.tax)),
        "discount": Decimal(str(invoice.discount)),
        "total": Decimal(str(invoice.total)),
        "currency": settings.CURRENCY,
    }


def get_invoice_item(db: Session, item_id: int) -> InvoiceItem:
    item = db.get(InvoiceItem, item_id)
    if not item:
        raise NotFoundError("Invoice item", item_id)
    return item
