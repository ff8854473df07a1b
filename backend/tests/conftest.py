from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medistock.api.deps import get_db
from medistock.core.security import create_access_token
from medistock.db.base import Base
from medistock.db.session import enable_sqlite_foreign_keys
from medistock.main import app
from medistock.models.user import Role
from medistock.services import customer_service, purchase_service, user_service

PASSWORD = "Password123"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def users(db):
    return {
        role: user_service.create_user(db, f"{role.lower()}@pharmacy.com", PASSWORD, role, name=role)
        for role in Role.ALL
    }


@pytest.fixture
def headers(users):
    """Bearer headers keyed by role."""
    return {
        role: {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}
        for role, user in users.items()
    }


@pytest.fixture
def customer(db):
    return customer_service.create_customer(db, "Ali Raza", address="12 Mall Road", city="Lahore", phone="0300-1112233")


@pytest.fixture
def stock(db):
    """Receive a medicine with one or more batches: stock(name, [(batch_no, days_to_expiry, qty, cost, sell), ...])."""

    def _stock(name, batches, strength="500mg", min_stock_level=0):
        (batch_no, days, qty, cost, sell), *rest = batches
        medicine, batch, _ = purchase_service.purchase_new_medicine(
            db,
            medicine_data={"name": name, "strength": strength, "unit": "Strip", "min_stock_level": min_stock_level},
            batch_number=batch_no,
            expiry_date=date.today() + timedelta(days=days),
            quantity=qty,
            cost_price=cost,
            selling_price=sell,
        )
        received = [batch]
        for batch_no, days, qty, cost, sell in rest:
            _, batch, _ = purchase_service.restock(
                db,
                medicine_id=medicine.id,
                batch_number=batch_no,
                expiry_date=date.today() + timedelta(days=days),
                quantity=qty,
                cost_price=cost,
                selling_price=sell,
            )
            received.append(batch)
        return medicine, received

    return _stock
