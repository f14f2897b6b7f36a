"""
SQLAlchemy ORM models for the Inventory service.

Defines the database schema for inventory-related tables.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Numeric, Text, Enum
from .database import Base

UNITS = ("kg", "grams", "ml", "litre", "pieces", "dozen", "packet", "bottle", "can")
USER_ROLES = ("admin", "viewer")


class InventoryUser(Base):
    """
    Inventory backend operator.
    
    Attributes:
        id (int): Primary key
        username (str): Unique login name
        email (str): Unique email address
        password (str): bcrypt hash
        role (str): admin (may write) or viewer (read only)
        is_active (int): 1 for active, 0 for inactive
        created_by (int): Admin-dashboard admin who created this account
    """
    __tablename__ = "inventory_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(Enum(*USER_ROLES, name="inventory_user_role"), nullable=False, default="viewer")
    is_active = Column(Integer, nullable=False, default=1)
    last_login = Column(DateTime, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class Item(Base):
    """
    Inventory item model representing a stocked product.
    
    Attributes:
        id (int): Primary key, auto-incremented item ID
        sku (str): Optional stock keeping unit
        price (Decimal): Unit price, always positive
        quantity (int): Units on hand, never negative
        min_stock_level (int): Low-stock threshold
        discount (Decimal): Percentage discount
        unit (str): Unit of measure
        is_active (int): 1 for active, 0 once soft deleted
        created_at (datetime): Timestamp when the item was created
    """
    __tablename__ = "items"
    
    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), nullable=True, index=True)
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
    updated_at = Column(DateTime, default=datetime.utcnow)
