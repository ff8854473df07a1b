from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from medistock.schemas.medicine import BatchResponse, MedicineCreate, MedicineResponse, TransactionResponse


class StockIntake(BaseModel):
    batch_number: str
    expiry_date: date
    quantity: int = Field(..., gt=0)
    cost_price: Decimal = Field(..., gt=0, decimal_places=2)
    selling_price: Decimal = Field(..., gt=0, decimal_places=2)
    notes: Optional[str] = None


class NewMedicinePurchase(StockIntake):
    medicine: MedicineCreate


class RestockPurchase(StockIntake):
    medicine_id: int


class PurchaseResponse(BaseModel):
    medicine: MedicineResponse
    batch: BatchResponse
    transaction: TransactionResponse
    message: str


class PurchaseHistoryRow(BaseModel):
    id: int
    created_at: Optional[datetime] = None
    medicine_id: int
    medicine: str
    batch_number: str
    expiry_date: date
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
