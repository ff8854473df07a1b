"""
StockTransaction: append-only stock ledger.
No update or reversal type exists - a return is recorded as its own row.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from medistock.db.base import Base


class TransactionType:
    PURCHASE = "purchase"
    SALE = "sale"
    RETURN = "return"

    ALL = (PURCHASE, SALE, RETURN)


class StockTransaction(Base):
    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="CASCADE"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(16), nullable=False, index=True)  # purchase | sale | return
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    medicine = relationship("Medicine", back_populates="transactions")
    batch = relationship("Batch")
    user = relationship("User")
