"""Customers and their dues."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medistock.api.deps import admin_only, can_operate, can_view, get_db
from medistock.core.audit import AuditLog
from medistock.models.user import User
from medistock.schemas.customer import CustomerCreate, CustomerResponse
from medistock.services import customer_service

router = APIRouter()


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return customer_service.list_customers(db, search)


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(data: CustomerCreate, db: Session = Depends(get_db), current_user: User = Depends(can_operate)):
    customer = customer_service.create_customer(db, **data.model_dump())
    AuditLog.log_action("create", "customer", customer.id, current_user, changes={"name": customer.name})
    return customer


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return customer_service.get_customer(db, customer_id)


@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    """Delete a customer together with their invoices."""
    name = customer_service.delete_customer(db, customer_id)
    AuditLog.log_action("delete", "customer", customer_id, current_user, changes={"name": name})
    return {"message": f"Deleted {name}", "id": customer_id}
