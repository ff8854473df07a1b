from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class CartLineIn(BaseModel):
    medicine_id: int
    batch_id: int
    quantity: int
    unit_price: Decimal = Field(..., decimal_places=2)


class CartLineCheck(BaseModel):
    """Add (editing_index omitted) or replace line `editing_index` of `lines` with `line`."""
    lines: List[CartLineIn] = []
    line: CartLineIn
    editing_index: Optional[int] = Field(None, ge=0)


class CartLineCheckResponse(BaseModel):
    lines: List[CartLineIn]
    available: int


class BatchAvailabilityRequest(BaseModel):
    batch_id: int
    lines: List[CartLineIn] = []
    editing_index: Optional[int] = Field(None, ge=0)


class BatchAvailability(BaseModel):
    batch_id: int
    batch_quantity: int
    reserved: int
    available: int


class QuoteRequest(BaseModel):
    lines: List[CartLineIn]
    tax_rate: Optional[Decimal] = Field(None, ge=0)
    discount_rate: Optional[Decimal] = Field(None, ge=0, le=1)


class QuoteResponse(BaseModel):
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


class SaleCreate(QuoteRequest):
    customer_id: Optional[int] = None
    status: str = "Paid"
    notes: Optional[str] = None


class ReturnCreate(BaseModel):
    invoice_item_id: int
    quantity: int
    reason: Optional[str] = None
    notes: Optional[str] = None
