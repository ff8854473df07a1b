"""
Reporting: dashboard cards, revenue / profit and sales trends.

Revenue and cost come from the stock ledger (line amounts before invoice
tax and discount). Returns are netted out of both: a returned unit gives
back its sale amount and its batch cost.
"""
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from medistock.core.config import settings
from medistock.models.batch import Batch
from medistock.models.customer import Customer
from medistock.models.invoice import Invoice
from medistock.models.medicine import Medicine
from medistock.models.stock_transaction import StockTransaction, TransactionType
from medistock.services.cart import round_money
from medistock.services.inventory_service import get_expiring_batches

ZERO = Decimal("0")


def _signed(column):
    """+column for sales, -column for returns, 0 for purchases."""
    return case(
        (StockTransaction.type == TransactionType.SALE, column),
        (StockTransaction.type == TransactionType.RETURN, -column),
        else_=0,
    )


def day_start_utc(day: date) -> datetime:
    """Local midnight of `day` as an aware UTC datetime, the zone `created_at` is stored in."""
    return datetime.combine(day, time.min).astimezone(timezone.utc)


def _in_range(q, start: Optional[date], end: Optional[date]):
    if start is not None:
        q = q.filter(StockTransaction.created_at >= day_start_utc(start))
    if end is not None:
        q = q.filter(StockTransaction.created_at < day_start_utc(end + timedelta(days=1)))
    return q


def _dec(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def revenue_profit(db: Session, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, Decimal]:
    revenue, cogs = _in_range(
        db.query(
            func.coalesce(func.sum(_signed(StockTransaction.total_amount)), 0),
            func.coalesce(func.sum(_signed(StockTransaction.quantity * Batch.cost_price)), 0),
        ).join(Batch, StockTransaction.batch_id == Batch.id),
        start, end,
    ).one()

    purchases = _in_range(
        db.query(func.coalesce(func.sum(StockTransaction.total_amount), 0))
        .filter(StockTransaction.type == TransactionType.PURCHASE),
        start, end,
    ).scalar()

    revenue = round_money(_dec(revenue))
    cogs = round_money(_dec(cogs))
    return {
        "revenue": revenue,
        "cost_of_goods_sold": cogs,
        "profit": revenue - cogs,
        "purchases": round_money(_dec(purchases)),
    }


def profit_margin(profit: Decimal, sold: Decimal) -> int:
    """Whole-number percentage, 0 when nothing was sold."""
    if sold <= 0:
        return 0
    return int((profit / sold * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def period_kpis(db: Session, start: date, end: date) -> Dict:
    figures = revenue_profit(db, start, end)
    return {
        "start": start,
        "end": end,
        "sold": figures["revenue"],
        "purchased": figures["purchases"],
        "profit": figures["profit"],
        "profit_margin": profit_margin(figures["profit"], figures["revenue"]),
    }


def monthly_kpis(db: Session, today: Optional[date] = None) -> Dict:
    today = today or date.today()
    start = today.replace(day=1)
    end = (start + timedelta(days=32)).replace(day=1) - timedelta(days=1)
    return period_kpis(db, start, end)


def yearly_kpis(db: Session, today: Optional[date] = None) -> Dict:
    today = today or date.today()
    return period_kpis(db, today.replace(month=1, day=1), today.replace(month=12, day=31))


def dashboard_summary(db: Session, today: Optional[date] = None) -> Dict:
    today = today or date.today()

    medicine_count, stock_units = db.query(
        func.count(Medicine.id), func.coalesce(func.sum(Medicine.current_stock), 0)
    ).one()
    low_stock_count = db.query(func.count(Medicine.id)).filter(
        Medicine.current_stock <= Medicine.min_stock_level
    ).scalar() or 0
    today_sales, today_invoices = db.query(
        func.coalesce(func.sum(Invoice.total), 0), func.count(Invoice.id)
    ).filter(Invoice.date == today).one()
    customer_count, unpaid_dues = db.query(
        func.count(Customer.id), func.coalesce(func.sum(Customer.outstanding_dues), 0)
    ).one()

    return {
        "total_medicines": medicine_count or 0,
        "total_stock_units": int(stock_units or 0),
        "low_stock_count": low_stock_count,
        "expiring_soon_count": len(get_expiring_batches(db, settings.EXPIRY_ALERT_DAYS, today=today)),
        "today_sales": round_money(_dec(today_sales)),
        "today_invoices": today_invoices or 0,
        "total_customers": customer_count or 0,
        "outstanding_dues": round_money(_dec(unpaid_dues)),
    }


def daily_sales(db: Session, days: int = 7, today: Optional[date] = None) -> List[Dict]:
    """Invoice totals per day for the last `days` days, zero-filled."""
    today = today or date.today()
    start = today - timedelta(days=days - 1)
    rows = (
        db.query(Invoice.date, func.sum(Invoice.total), func.count(Invoice.id))
        .filter(Invoice.date >= start, Invoice.date <= today)
        .group_by(Invoice.date)
        .all()
    )
    by_day = {d: (total, count) for d, total, count in rows}

    result = []
    for i in range(days):
        d = start + timedelta(days=i)
        total, count = by_day.get(d, (0, 0))
        result.append({
            "date": d,
            "day": d.strftime("%a"),
            "revenue": round_money(_dec(total)),
            "invoices": count,
        })
    return result


def top_medicines(db: Session, limit: int = 5) -> List[Dict]:
    """Best sellers by net units (sales minus returns)."""
    net_units = func.sum(_signed(StockTransaction.quantity))
    rows = (
        db.query(
            Medicine.id,
            Medicine.name,
            Medicine.strength,
            net_units.label("units"),
            func.sum(_signed(StockTransaction.total_amount)).label("revenue"),
        )
        .join(StockTransaction, StockTransaction.medicine_id == Medicine.id)
        .filter(StockTransaction.type.in_([TransactionType.SALE, TransactionType.RETURN]))
        .group_by(Medicine.id, Medicine.name, Medicine.strength)
        .having(net_units > 0)
        .order_by(net_units.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "medicine_id": r.id,
            "name": f"{r.name} {r.strength or ''}".strip(),
            "units_sold": int(r.units or 0),
            "revenue": round_money(_dec(r.revenue)),
        }
        for r in rows
    ]
