"""Invoices: listing with period filters, detail, status changes and PDF download."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from medistock.api.deps import can_operate, can_view, get_db
from medistock.core.audit import AuditLog
from medistock.models.invoice import Invoice
from medistock.models.user import User
from medistock.schemas.invoice import InvoiceDetail, InvoiceStatusUpdate, InvoiceSummary
from medistock.services import invoice_service, pdf_service

router = APIRouter()


def _summary(inv: Invoice) -> dict:
    return {
        "id": inv.id,
        "invoice_no": inv.invoice_no,
        "customer_id": inv.customer_id,
        "customer": inv.customer.name if inv.customer else "",
        "date": inv.date,
        "subtotal": inv.subtotal,
        "tax": inv.tax,
        "discount": inv.discount,
        "total": inv.total,
        "status": inv.status,
        "created_at": inv.created_at,
    }


@router.get("", response_model=List[InvoiceSummary])
def list_invoices(
    search: Optional[str] = Query(None, description="Invoice number or customer name"),
    period: str = Query("all", description="all | today | week | month | year"),
    customer: Optional[str] = Query(None, description="Exact customer name"),
    status: Optional[str] = Query(None, description="Paid | Unpaid"),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    rows = invoice_service.list_invoices(
        db, search=search, period=period, customer=customer, status=status, limit=limit
    )
    return [_summary(inv) for inv in rows]


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return invoice_service.invoice_document(invoice_service.get_invoice(db, invoice_id))


@router.patch("/{invoice_id}/status", response_model=InvoiceDetail)
def change_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_operate),
):
    """Mark an invoice Paid or Unpaid; the customer's dues follow."""
    invoice = invoice_service.change_invoice_status(db, invoice_id, data.status)
    AuditLog.log_action("status", "invoice", invoice.id, current_user, changes={"status": invoice.status})
    return invoice_service.invoice_document(invoice)


@router.get("/{invoice_id}/pdf")
def download_pdf(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    invoice = invoice_service.get_invoice(db, invoice_id)
    buffer = pdf_service.generate_invoice_pdf(db, invoice.id)
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={invoice.invoice_no}.pdf"},
    )
