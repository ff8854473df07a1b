"""Reports: dashboard cards, revenue / profit and sales trends."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medistock.api.deps import can_view, get_db
from medistock.models.user import User
from medistock.schemas.medicine import TransactionResponse
from medistock.services import inventory_service, reporting_service

router = APIRouter()


@router.get("/summary")
def dashboard_summary(db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return reporting_service.dashboard_summary(db)


@router.get("/revenue-profit")
def revenue_profit(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    """Revenue, cost of goods sold and profit between two dates (inclusive); all time by default."""
    return reporting_service.revenue_profit(db, start, end)


@router.get("/monthly")
def monthly(db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return reporting_service.monthly_kpis(db)


@router.get("/yearly")
def yearly(db: Session = Depends(get_db), current_user: User = Depends(can_view)):
    return reporting_service.yearly_kpis(db)


@router.get("/daily-sales")
def daily_sales(
    days: int = Query(7, ge=1, le=90),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return reporting_service.daily_sales(db, days)


@router.get("/top-medicines")
def top_medicines(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return reporting_service.top_medicines(db, limit)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    type: Optional[str] = Query(None, description="purchase | sale | return"),
    medicine_id: Optional[int] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    """Stock ledger, newest first."""
    return inventory_service.list_transactions(db, type=type, medicine_id=medicine_id, limit=limit)
