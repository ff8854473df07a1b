from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CustomerCreate(BaseModel):
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    outstanding_dues: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)


class CustomerResponse(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    outstanding_dues: Decimal
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
