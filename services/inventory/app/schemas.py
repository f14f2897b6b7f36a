"""
Pydantic schemas for request/response validation in the Inventory service.

These schemas define the structure of data for API requests and responses.
Fields are camelCase on the wire and snake_case in Python.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True


class Unit(str, Enum):
    """Units of measure an item can be sold in."""
    kg = "kg"
    grams = "grams"
    ml = "ml"
    litre = "litre"
    pieces = "pieces"
    dozen = "dozen"
    packet = "packet"
    bottle = "bottle"
    can = "can"


class ItemCreate(CamelModel):
    """Schema for creating a new item."""
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Price must be greater than 0")
    quantity: int = Field(default=0, ge=0, description="Quantity cannot be negative")
    unit: Unit
    sku: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    min_stock_level: int = Field(default=10, ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class ItemUpdate(CamelModel):
    """Schema for updating an existing item. All fields are optional."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    quantity: Optional[int] = Field(default=None, ge=0)
    unit: Optional[Unit] = None
    sku: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    discount: Optional[Decimal] = Field(default=None, ge=0, le=100)
    is_active: Optional[int] = Field(default=None, ge=0, le=1)

    @field_validator("name", "price", "quantity", "unit", "min_stock_level", "is_active")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class Item(CamelModel):
    """
    Schema for item responses, includes all database fields.
    
    Attributes:
        id (int): Item's unique identifier
        price (float): Unit price
        quantity (int): Units on hand
        is_active (int): 1 for active, 0 once soft deleted
        created_at (datetime): When the item was created
    """
    id: int
    sku: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: float
    quantity: int
    min_stock_level: int
    discount: Optional[float] = None
    unit: str
    category: Optional[str] = None
    is_active: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

