from medistock.models.user import User, Role
from medistock.models.medicine import Medicine
from medistock.models.batch import Batch
from medistock.models.stock_transaction import StockTransaction, TransactionType
from medistock.models.customer import Customer
from medistock.models.invoice import Invoice, InvoiceItem, InvoiceStatus

__all__ = [
    "User", "Role", "Medicine", "Batch", "StockTransaction", "TransactionType",
    "Customer", "Invoice", "InvoiceItem", "InvoiceStatus",
]
