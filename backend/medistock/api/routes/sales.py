"""Sales: cart checks while composing a sale, totals preview and the sale commit.

The cart itself lives on the client. Every endpoint here receives the
current cart lines, so the reservation arithmetic is computed from what the
client holds plus stored batch quantities.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medistock.api.deps import can_operate, get_db
from medistock.models.user import User
from medistock.schemas.invoice import InvoiceDetail
from medistock.schemas.sale import (
    BatchAvailability,
    BatchAvailabilityRequest,
    CartLineCheck,
    CartLineCheckResponse,
    QuoteRequest,
    QuoteResponse,
    SaleCreate,
)
from medistock.services import invoice_service, sale_service

router = APIRouter()


@router.post("/availability", response_model=BatchAvailability)
def batch_availability(
    data: BatchAvailabilityRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    """Units of a batch still free for the line being added or edited."""
    return sale_service.batch_availability(
        db, data.batch_id, sale_service.to_cart_lines(data.lines), data.editing_index
    )


@router.post("/check-line", response_model=CartLineCheckResponse)
def check_line(
    data: CartLineCheck,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    """Validate adding (or replacing) one cart line. 400 with the available count when it does not fit."""
    result = sale_service.check_line(
        db,
        sale_service.to_cart_lines(data.lines),
        sale_service.to_cart_lines([data.line])[0],
        data.editing_index,
    )
    return CartLineCheckResponse(
        lines=[vars(line) for line in result["lines"]],
        available=result["available"],
    )


@router.post("/quote", response_model=QuoteResponse)
def quote(data: QuoteRequest, current_user: User = Depends(can_operate)):
    totals = sale_service.quote(sale_service.to_cart_lines(data.lines), data.tax_rate, data.discount_rate)
    return QuoteResponse(
        subtotal=totals.subtotal,
        tax=totals.tax,
        discount=totals.discount,
        total=totals.total,
    )


@router.post("", response_model=InvoiceDetail, status_code=201)
def record_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    """Commit the cart as an invoice. Stock is re-checked against stored batch quantities."""
    invoice = sale_service.record_sale(
        db,
        customer_id=data.customer_id,
        cart_lines=sale_service.to_cart_lines(data.lines),
        status=data.status,
        tax_rate=data.tax_rate,
        discount_rate=data.discount_rate,
        notes=data.notes,
        user=current_user,
    )
    return invoice_service.invoice_document(invoice)
