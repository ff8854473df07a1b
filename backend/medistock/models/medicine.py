from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from medistock.db.base import Base


class Medicine(Base):
    """
    Catalog entry for one medicine (name + strength + unit).

    current_stock is a cached aggregate of the batch quantities. It is
    recomputed by the inventory service after every batch or transaction
    write and never edited directly.
    """
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(128), nullable=True)
    manufacturer = Column(String(255), nullable=True)
    strength = Column(String(64), nullable=True)  # e.g. 500mg
    unit = Column(String(64), nullable=True)  # Tablet, Syrup, Injection ...
    description = Column(Text, nullable=True)
    min_stock_level = Column(Integer, nullable=False, default=0)
    current_stock = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # default selling price per unit
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    batches = relationship(
        "Batch",
        back_populates="medicine",
        cascade="all, delete-orphan",
        order_by="Batch.expiry_date",
    )
    transactions = relationship(
        "StockTransaction",
        back_populates="medicine",
        cascade="all, delete-orphan",
    )
