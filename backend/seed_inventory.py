"""Seed the pharmacy with a starter catalogue: medicines, batches and walk-in customer.

Every medicine is received through the purchase workflow so the stock
ledger matches the batches. Medicines that already exist are skipped.
"""
from datetime import date, timedelta

from medistock.core.exceptions import ConflictError
from medistock.db.init_db import init_db
from medistock.db.session import SessionLocal
from medistock.models.customer import Customer
from medistock.services import customer_service, purchase_service


def _expiry(months: int) -> date:
    return date.today() + timedelta(days=30 * months)


# (name, strength, category, manufacturer, unit, min level, [(batch, months to expiry, qty, cost, sell)])
MEDICINES = [
    ("Panadol", "500mg", "Analgesic", "GSK", "Strip", 20,
     [("PN-2401", 3, 120, 18.00, 25.00), ("PN-2407", 14, 200, 18.50, 25.00)]),
    ("Brufen", "400mg", "NSAID", "Abbott", "Strip", 15,
     [("BR-1102", 10, 90, 32.00, 45.00)]),
    ("Augmentin", "625mg", "Antibiotic", "GSK", "Box", 10,
     [("AG-5521", 1, 12, 410.00, 520.00), ("AG-5590", 18, 40, 415.00, 520.00)]),
    ("Amoxil", "500mg", "Antibiotic", "GSK", "Box", 10,
     [("AX-0931", 8, 35, 160.00, 210.00)]),
    ("Risek", "20mg", "Antacid", "Getz Pharma", "Box", 10,
     [("RS-7710", 12, 60, 240.00, 310.00)]),
    ("Glucophage", "500mg", "Antidiabetic", "Merck", "Box", 10,
     [("GL-3104", 20, 50, 115.00, 150.00)]),
    ("Norvasc", "5mg", "Antihypertensive", "Pfizer", "Box", 8,
     [("NV-2290", 16, 30, 330.00, 420.00)]),
    ("Lipitor", "10mg", "Statin", "Pfizer", "Box", 8,
     [("LP-8820", 24, 25, 560.00, 690.00)]),
    ("Zyrtec", "10mg", "Antihistamine", "UCB", "Strip", 20,
     [("ZY-1200", 2, 15, 40.00, 55.00), ("ZY-1260", 11, 100, 41.00, 55.00)]),
    ("Ventolin", "100mcg", "Bronchodilator", "GSK", "Inhaler", 5,
     [("VT-4431", 9, 18, 380.00, 470.00)]),
    ("Flagyl", "400mg", "Antibiotic", "Sanofi", "Strip", 15,
     [("FG-6612", 6, 8, 28.00, 38.00)]),
    ("ORS Sachet", None, "Rehydration", "Searle", "Sachet", 30,
     [("OR-0091", 15, 300, 12.00, 18.00)]),
]


def seed_inventory():
    init_db()
    db = SessionLocal()
    added = skipped = 0
    try:
        for name, strength, category, manufacturer, unit, min_level, batches in MEDICINES:
            first, *rest = batches
            batch_no, months, qty, cost, sell = first
            try:
                medicine, _, _ = purchase_service.purchase_new_medicine(
                    db,
                    medicine_data={
                        "name": name,
                        "strength": strength,
                        "category": category,
                        "manufacturer": manufacturer,
                        "unit": unit,
                        "min_stock_level": min_level,
                        "price": sell,
                    },
                    batch_number=batch_no,
                    expiry_date=_expiry(months),
                    quantity=qty,
                    cost_price=cost,
                    selling_price=sell,
                    notes="Opening stock",
                )
            except ConflictError:
                skipped += 1
                continue

            for batch_no, months, qty, cost, sell in rest:
                purchase_service.restock(
                    db,
                    medicine_id=medicine.id,
                    batch_number=batch_no,
                    expiry_date=_expiry(months),
                    quantity=qty,
                    cost_price=cost,
                    selling_price=sell,
                    notes="Opening stock",
                )
            added += 1
            print(f"  + {name} {strength or ''} ({len(batches)} batch(es), stock {medicine.current_stock})")

        if not db.query(Customer).filter(Customer.name == "Walk-in Customer").first():
            customer_service.create_customer(db, "Walk-in Customer", city="Karachi")
            print("  + Walk-in Customer")
    finally:
        db.close()

    print(f"\n[OK] Seeded {added} medicine(s), skipped {skipped} already present")


if __name__ == "__main__":
    seed_inventory()
