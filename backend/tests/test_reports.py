import os
import time
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from medistock.services import reporting_service, return_service, sale_service
from medistock.services.sale_service import to_cart_lines


@pytest.fixture
def trading(db, stock, customer):
    panadol, (p1,) = stock("Panadol", [("PN-1", 200, 20, 60, 100)])
    brufen, (b1,) = stock("Brufen", [("BR-1", 200, 10, 30, 50)], strength="400mg")
    invoice = sale_service.record_sale(
        db, customer.id,
        to_cart_lines([
            {"medicine_id": panadol.id, "batch_id": p1.id, "quantity": 10, "unit_price": "100"},
            {"medicine_id": brufen.id, "batch_id": b1.id, "quantity": 3, "unit_price": "50"},
        ]),
        status="Unpaid", tax_rate=0, discount_rate=0,
    )
    return_service.record_return(db, invoice.items[0].id, 2)
    return invoice


def test_revenue_and_profit_net_out_returns(db, trading):
    figures = reporting_service.revenue_profit(db)

    # sales 1000 + 150, return -200; cost 600 + 90, return -120
    assert figures["revenue"] == Decimal("950.00")
    assert figures["cost_of_goods_sold"] == Decimal("570.00")
    assert figures["profit"] == Decimal("380.00")
    assert figures["purchases"] == Decimal("1500.00")


def test_period_kpis_margin(db, trading):
    today = date.today()
    kpis = reporting_service.period_kpis(db, today - timedelta(days=1), today + timedelta(days=1))

    assert kpis["sold"] == Decimal("950.00")
    assert kpis["profit_margin"] == 40


def test_profit_margin_rounding():
    assert reporting_service.profit_margin(Decimal("1"), Decimal("3")) == 33
    assert reporting_service.profit_margin(Decimal("2"), Decimal("3")) == 67
    assert reporting_service.profit_margin(Decimal("5"), Decimal("0")) == 0


def test_dashboard_summary(db, trading):
    summary = reporting_service.dashboard_summary(db)

    assert summary["total_medicines"] == 2
    assert summary["total_stock_units"] == 19
    assert summary["today_sales"] == Decimal("1150.00")
    assert summary["today_invoices"] == 1
    assert summary["total_customers"] == 1
    assert summary["outstanding_dues"] == Decimal("1150.00")
    assert summary["expiring_soon_count"] == 0


def test_top_medicines_by_net_units(db, trading):
    rows = reporting_service.top_medicines(db)

    assert [(r["name"], r["units_sold"]) for r in rows] == [("Panadol 500mg", 8), ("Brufen 400mg", 3)]


def test_daily_sales_zero_filled(db, trading):
    rows = reporting_service.daily_sales(db, days=7)

    assert len(rows) == 7
    assert rows[-1]["date"] == date.today()
    assert rows[-1]["revenue"] == Decimal("1150.00")
    assert sum(r["invoices"] for r in rows[:-1]) == 0


@pytest.fixture
def far_east_clock():
    """Run under UTC+14 so the local day and the UTC day differ for most of the clock."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "Pacific/Kiritimati"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()


def test_day_start_is_local_midnight_in_utc(far_east_clock):
    start = reporting_service.day_start_utc(date(2026, 10, 20))

    assert start == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def test_today_window_counts_sales_outside_utc(db, stock, customer, far_east_clock):
    medicine, (batch,) = stock("Panadol", [("PN-1", 200, 10, 6, 10)])
    sale_service.record_sale(
        db, customer.id,
        to_cart_lines([{"medicine_id": medicine.id, "batch_id": batch.id, "quantity": 2, "unit_price": "10"}]),
        tax_rate=0, discount_rate=0,
    )
    today = date.today()

    assert reporting_service.revenue_profit(db, today, today)["revenue"] == Decimal("20.00")
    assert reporting_service.monthly_kpis(db)["sold"] == Decimal("20.00")
    assert reporting_service.dashboard_summary(db)["today_sales"] == Decimal("20.00")
