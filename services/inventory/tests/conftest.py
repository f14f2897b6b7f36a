"""
Shared fixtures for the Inventory service tests.

The database is in-memory SQLite, recreated for every test. Operators of both
roles are seeded together with bearer headers for each.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from inventory_service import auth, models
from inventory_service.database import Base, SessionLocal, engine, get_db
from inventory_service.main import app


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username="manager", password="secret123", role="admin", is_active=1):
        user = models.InventoryUser(
            username=username,
            email=f"{username}@justoo.test",
            password=auth.get_password_hash(password),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def bearer(user):
    token = auth.create_access_token(data={"sub": str(user.id), "username": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(make_user):
    return bearer(make_user())


@pytest.fixture
def viewer_headers(make_user):
    return bearer(make_user(username="clerk", role="viewer"))


@pytest.fixture
def make_item(db):
    def _make(name="Item", price="10.00", quantity=20, min_stock_level=10, category="Groceries",
              is_active=1, unit="pieces", sku=None, description=None, created_at=None):
        item = models.Item(
            name=name,
            sku=sku,
            description=description,
            price=Decimal(str(price)),
            quantity=quantity,
            min_stock_level=min_stock_level,
            category=category,
            is_active=is_active,
            unit=unit,
            created_at=created_at or datetime.utcnow(),
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return _make
