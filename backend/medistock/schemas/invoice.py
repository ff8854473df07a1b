from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class InvoiceSummary(BaseModel):
    id: int
    invoice_no: str
    customer_id: int
    customer: str
    date: date
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    status: str
    created_at: Optional[datetime] = None


class InvoiceLine(BaseModel):
    id: int
    medicine_id: int
    batch_id: int
    batch_no: str
    medicine: str
    unit: str
    quantity: int
    returned_quantity: int
    unit_price: Decimal
    amount: Decimal


class CompanyProfile(BaseModel):
    name: str
    phone: str
    address: str


class InvoiceCustomer(BaseModel):
    id: Optional[int] = None
    name: str
    address: str
    city: str
    phone: str


class InvoiceDetail(BaseModel):
    id: int
    invoice_no: str
    date: date
    status: str
    company: CompanyProfile
    customer: InvoiceCustomer
    items: List[InvoiceLine]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    currency: str


class InvoiceStatusUpdate(BaseModel):
    status: str
