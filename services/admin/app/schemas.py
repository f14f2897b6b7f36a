"""
Pydantic schemas for request/response validation in the Admin service.

Field names are snake_case in Python and camelCase on the wire, matching the
dashboard frontend.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serializing to camelCase and accepting either spelling on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class ItemSortField(str, Enum):
    """Columns the item list can be ordered by."""
    id = "id"
    name = "name"
    price = "price"
    quantity = "quantity"
    min_stock_level = "minStockLevel"
    category = "category"
    created_at = "createdAt"
    updated_at = "updatedAt"


class RiderSortField(str, Enum):
    """Columns the rider list can be ordered by."""
    id = "id"
    name = "name"
    email = "email"
    phone = "phone"
    status = "status"
    total_deliveries = "totalDeliveries"
    rating = "rating"
    created_at = "createdAt"


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool


class Item(CamelModel):
    """
    Schema for item responses.

    Attributes:
        id (int): Item's unique identifier
        sku (str): Optional stock keeping unit
        price (float): Unit price
        quantity (int): Units on hand
        min_stock_level (int): Low-stock threshold
        is_active (int): 1 for active, 0 once soft deleted
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


class ItemPage(CamelModel):
    items: List[Item]
    pagination: Pagination


class LoginRequest(BaseModel):
    """Schema for admin sign in."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Admin(CamelModel):
    """Schema for admin responses; the password hash is never exposed."""
    id: int
    username: str
    email: str
    role: str
    is_active: int
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class RiderCreate(CamelModel):
    """Schema for registering a rider."""
    name: str = Field(..., min_length=3, max_length=100)
    phone: str = Field(..., min_length=7, max_length=20)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, description="Password must be at least 6 characters")
    vehicle_type: str = Field(..., min_length=1, max_length=50)
    vehicle_number: str = Field(..., min_length=1, max_length=50)
    license_number: Optional[str] = None


class RiderUpdate(CamelModel):
    """Schema for updating a rider. All fields are optional."""
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    phone: Optional[str] = Field(default=None, min_length=7, max_length=20)
    email: Optional[EmailStr] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None
    license_number: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern="^(active|inactive|busy|suspended)$")
    is_active: Optional[int] = Field(default=None, ge=0, le=1)

    @field_validator("name", "phone", "vehicle_type", "vehicle_number", "status", "is_active")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class RiderPasswordChange(CamelModel):
    new_password: str = Field(..., min_length=6, description="Password must be at least 6 characters")


class Rider(CamelModel):
    """Schema for rider responses; the password hash is never exposed."""
    id: int
    name: str
    email: Optional[str] = None
    phone: str
    vehicle_type: str
    vehicle_number: str
    license_number: Optional[str] = None
    status: str
    total_deliveries: int
    rating: Optional[int] = None
    is_active: int
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
