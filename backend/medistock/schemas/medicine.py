from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class MedicineBase(BaseModel):
    name: str
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    strength: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    min_stock_level: int = Field(0, ge=0)
    price: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)


class MedicineCreate(MedicineBase):
    pass


class MedicineUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    strength: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    min_stock_level: Optional[int] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class MedicineResponse(MedicineBase):
    id: int
    current_stock: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BatchCreate(BaseModel):
    batch_number: str
    expiry_date: date
    quantity: int = Field(..., ge=0)
    cost_price: Decimal = Field(..., ge=0, decimal_places=2)
    selling_price: Decimal = Field(..., ge=0, decimal_places=2)


class BatchResponse(BaseModel):
    id: int
    medicine_id: int
    batch_number: str
    expiry_date: date
    quantity: int
    cost_price: Decimal
    selling_price: Decimal
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpiringBatch(BaseModel):
    id: int
    medicine_id: int
    medicine_name: str
    batch_number: str
    expiry_date: date
    quantity: int
    days_until_expiry: int


class TransactionResponse(BaseModel):
    id: int
    medicine_id: int
    batch_id: int
    type: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[int] = None

    class Config:
        from_attributes = True
