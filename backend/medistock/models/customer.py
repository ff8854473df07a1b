from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from medistock.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    address = Column(String(512), nullable=True)
    city = Column(String(128), nullable=True)
    phone = Column(String(64), nullable=True)
    outstanding_dues = Column(Numeric(12, 2), nullable=False, default=0)  # sum of unpaid invoice totals
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    invoices = relationship("Invoice", back_populates="customer", cascade="all, delete-orphan")
