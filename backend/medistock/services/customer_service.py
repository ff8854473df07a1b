"""Customer records and their outstanding dues."""
import logging
import re
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from medistock.core.exceptions import NotFoundError, ValidationError
from medistock.models.customer import Customer

logger = logging.getLogger(__name__)

_MARKUP = re.compile(r"<[^>]*>")
_UNSAFE = re.compile(r"[^\w\s\-'.&/]", re.UNICODE)


def sanitize_customer_name(name: str) -> str:
    """Collapse whitespace, drop markup and odd symbols, cap at 100 characters."""
    if not name:
        raise ValidationError("Customer name cannot be empty")

    name = _MARKUP.sub("", name)
    name = _UNSAFE.sub("", name)
    name = " ".join(name.split())[:100].strip()

    if len(name) < 2:
        raise ValidationError("Customer name must be at least 2 characters")
    return name


def create_customer(
    db: Session,
    name: str,
    address: Optional[str] = None,
    city: Optional[str] = None,
    phone: Optional[str] = None,
    outstanding_dues=0,
) -> Customer:
    dues = Decimal(str(outstanding_dues or 0))
    if dues < 0:
        raise ValidationError("Outstanding dues cannot be negative")
    customer = Customer(
        name=sanitize_customer_name(name),
        address=(address or "").strip() or None,
        city=(city or "").strip() or None,
        phone=(phone or "").strip() or None,
        outstanding_dues=dues,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"[CUSTOMER] Created customer {customer.id} '{customer.name}'")
    return customer


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


def list_customers(db: Session, search: Optional[str] = None, limit: int = 200) -> List[Customer]:
    q = db.query(Customer)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            Customer.name.ilike(pattern),
            Customer.city.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    return q.order_by(Customer.created_at.desc(), Customer.id.desc()).limit(limit).all()


def delete_customer(db: Session, customer_id: int) -> str:
    """Delete a customer and every invoice issued to them. Stock ledger rows are kept."""
    customer = get_customer(db, customer_id)
    name = customer.name
    invoice_count = len(customer.invoices)
    db.delete(customer)
    db.commit()
    logger.info(f"[CUSTOMER] Deleted customer {customer_id} '{name}' with {invoice_count} invoice(s)")
    return name


def adjust_dues(db: Session, customer: Customer, delta: Decimal) -> Customer:
    customer.outstanding_dues = Decimal(str(customer.outstanding_dues or 0)) + delta
    return customer
