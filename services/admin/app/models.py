"""
SQLAlchemy ORM models for the Admin service.

Defines the admin-owned tables (admins, riders) and read-only mappings of the
tables owned by the inventory and order-placement systems (items, orders,
order_items, payments).
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Numeric, Text, Enum, UniqueConstraint
from .database import Base

UNITS = ("kg", "grams", "ml", "litre", "pieces", "dozen", "packet", "bottle", "can")
ORDER_STATUSES = ("placed", "confirmed", "preparing", "ready", "out_for_delivery", "delivered", "cancelled")
ADMIN_ROLES = ("superadmin", "viewer")
RIDER_STATUSES = ("active", "inactive", "busy", "suspended")
PAYMENT_METHODS = ("cash", "upi", "card", "wallet")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")


class Admin(Base):
    """
    Admin dashboard operator.

    Attributes:
        id (int): Primary key
        username (str): Unique login name
        email (str): Unique email address
        password (str): bcrypt hash
        role (str): superadmin or viewer
        is_active (int): 1 for active, 0 for inactive
        last_login (datetime): Last successful sign in
    """
    __tablename__ = "justoo_admins"
    __table_args__ = (
        UniqueConstraint("username", name="justoo_admins_username_unique"),
        UniqueConstraint("email", name="justoo_admins_email_unique"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(Enum(*ADMIN_ROLES, name="admin_role"), nullable=False, default="viewer")
    is_active = Column(Integer, nullable=False, default=1)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Rider(Base):
    """
    Delivery rider.

    Riders are never physically removed; removal flips is_active to 0.
    """
    __tablename__ = "justoo_riders"
    __table_args__ = (
        UniqueConstraint("phone", name="justoo_riders_phone_unique"),
        UniqueConstraint("vehicle_number", name="justoo_riders_vehicle_number_unique"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=False)
    password = Column(String(255), nullable=True)
    vehicle_type = Column(String(50), nullable=False)
    vehicle_number = Column(String(50), nullable=False)
    license_number = Column(String(100), nullable=True)
    status = Column(Enum(*RIDER_STATUSES, name="rider_status"), nullable=False, default="active")
    total_deliveries = Column(Integer, nullable=False, default=0)
    rating = Column(Integer, default=5)
    is_active = Column(Integer, nullable=False, default=1)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Item(Base):
    """
    Stocked product, owned by the inventory service.

    Attributes:
        price (Decimal): Unit price, fixed point
        quantity (int): Units on hand, never negative
        min_stock_level (int): Low-stock threshold
        is_active (int): 1 for active, 0 once soft deleted
    """
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=10)
    discount = Column(Numeric(5, 2), default=0)
    unit = Column(Enum(*UNITS, name="unit"), nullable=False)
    category = Column(String(100), nullable=True)
    is_active = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Order(Base):
    """Customer order, owned by the order-placement system."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, nullable=False)
    status = Column(Enum(*ORDER_STATUSES, name="order_status"), nullable=False, default="placed")
    total_amount = Column(Numeric(10, 2), nullable=False)
    item_count = Column(Integer, nullable=False)
    delivery_address = Column(Text, nullable=True)
    rider_id = Column(Integer, nullable=True, index=True)
    estimated_delivery_time = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class OrderItem(Base):
    """One line of an order; item_name and unit_price are snapshots taken at order time."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    unit = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Payment(Base):
    """Payment recorded against an order."""
    __tablename__ = "justoo_payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(Enum(*PAYMENT_METHODS, name="payment_method"), nullable=False)
    status = Column(Enum(*PAYMENT_STATUSES, name="payment_status"), nullable=False, default="pending")
    transaction_id = Column(String(255), nullable=True)
    gateway_response = Column(String(500), nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
