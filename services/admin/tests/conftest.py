"""
Shared fixtures for the Admin service tests.

- in-memory SQLite database, schema recreated for every test
- TestClient with the database dependency overridden
- factories for items, order lines, orders, riders and admins
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from admin_service import auth, models
from admin_service.database import Base, SessionLocal, engine, get_db
from admin_service.main import app


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
def make_admin(db):
    def _make(username="admin", password="admin123", role="superadmin", is_active=1, email=None):
        admin = models.Admin(
            username=username,
            email=email or f"{username}@justoo.test",
            password=auth.get_password_hash(password),
            role=role,
            is_active=is_active,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin
    return _make


@pytest.fixture
def superadmin(make_admin):
    return make_admin()


@pytest.fixture
def auth_headers(superadmin):
    return {"Authorization": f"Bearer {auth.token_for_admin(superadmin)}"}


@pytest.fixture
def viewer_headers(make_admin):
    viewer = make_admin(username="viewer", role="viewer")
    return {"Authorization": f"Bearer {auth.token_for_admin(viewer)}"}


@pytest.fixture
def make_item(db):
    def _make(name="Item", price="10.00", quantity=20, min_stock_level=10, category="Groceries",
              is_active=1, unit="pieces", created_at=None, sku=None):
        item = models.Item(
            name=name,
            sku=sku,
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


@pytest.fixture
def make_order(db):
    def _make(total_amount="100.00", status="placed", customer_id=1, rider_id=None,
              created_at=None, delivered_at=None, item_count=1):
        order = models.Order(
            customer_id=customer_id,
            status=status,
            total_amount=Decimal(str(total_amount)),
            item_count=item_count,
            rider_id=rider_id,
            created_at=created_at or datetime.utcnow(),
            delivered_at=delivered_at,
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order
    return _make


@pytest.fixture
def make_order_line(db):
    def _make(item, quantity, unit_price=None, order_id=1):
        unit_price = Decimal(str(unit_price)) if unit_price is not None else item.price
        line = models.OrderItem(
            order_id=order_id,
            item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=unit_price * quantity,
            unit=item.unit,
        )
        db.add(line)
        db.commit()
        return line
    return _make


@pytest.fixture
def make_rider(db):
    def _make(name="Ravi Kumar", phone="9000000001", vehicle_number="KA01AB1234", email=None,
              is_active=1, status="active", last_login=None, created_at=None):
        rider = models.Rider(
            name=name,
            phone=phone,
            email=email,
            vehicle_type="bike",
            vehicle_number=vehicle_number,
            status=status,
            is_active=is_active,
            last_login=last_login,
            created_at=created_at or datetime.utcnow(),
        )
        db.add(rider)
        db.commit()
        db.refresh(rider)
        return rider
    return _make
