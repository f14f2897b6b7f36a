"""
CRUD (Create, Read, Update, Delete) operations for the Inventory service.

This module contains all database operations for inventory management.
Deleting an item only marks it inactive so that order history keeps its lines.
"""
import math
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import asc, func, or_
from sqlalchemy.orm import Session
from . import models, schemas


class DuplicateSkuError(Exception):
    """Raised when an item would reuse another item's SKU."""


def build_pagination(page: int, limit: int, total: int) -> schemas.Pagination:
    return schemas.Pagination(
        current_page=page,
        total_pages=math.ceil(total / limit) if limit else 0,
        total_items=total,
        has_next=page * limit < total,
        has_prev=page > 1,
    )


def get_item(db: Session, item_id: int) -> Optional[models.Item]:
    """
    Retrieve a single item by ID.
    
    Args:
        db: Database session
        item_id: ID of the item to retrieve
        
    Returns:
        Item object or None if not found
    """
    return db.query(models.Item).filter(models.Item.id == item_id).first()


def get_item_by_sku(db: Session, sku: str) -> Optional[models.Item]:
    return db.query(models.Item).filter(models.Item.sku == sku).first()


def get_items(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> Tuple[List[models.Item], schemas.Pagination]:
    """
    Retrieve a page of items, newest first.
    
    Args:
        db: Database session
        page: 1-based page number
        limit: Page size
        category: Exact category filter
        search: Case-insensitive substring of name or description
        
    Returns:
        Tuple of (items, pagination metadata)
    """
    query = db.query(models.Item).filter(models.Item.is_active == 1)
    if category:
        query = query.filter(models.Item.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(models.Item.name.ilike(pattern), models.Item.description.ilike(pattern)))

    total = query.count()
    items = (
        query.order_by(models.Item.created_at.desc(), models.Item.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, build_pagination(page, limit, total)


def _check_sku(db: Session, sku: Optional[str], item_id: Optional[int] = None) -> None:
    if not sku:
        return
    existing = get_item_by_sku(db, sku)
    if existing and existing.id != item_id:
        raise DuplicateSkuError(sku)


def create_item(db: Session, item: schemas.ItemCreate) -> models.Item:
    """
    Create a new item in the database.
    
    Raises:
        DuplicateSkuError: if another item already uses the SKU
    """
    _check_sku(db, item.sku)
    db_item = models.Item(**item.model_dump())
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


def update_item(db: Session, item_id: int, item: schemas.ItemUpdate) -> Optional[models.Item]:
    """
    Apply a partial update to an item.
    
    Args:
        db: Database session
        item_id: ID of the item to update
        item: Fields to change; unset fields are left alone
        
    Returns:
        Updated Item object or None if not found
        
    Raises:
        DuplicateSkuError: if the new SKU belongs to another item
    """
    db_item = get_item(db, item_id)
    if not db_item:
        return None

    update_data = item.model_dump(exclude_unset=True)
    if "sku" in update_data:
        _check_sku(db, update_data["sku"], item_id)
    for field, value in update_data.items():
        setattr(db_item, field, value)
    db_item.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(db_item)
    return db_item


def deactivate_item(db: Session, item_id: int) -> Optional[models.Item]:
    db_item = get_item(db, item_id)
    if not db_item:
        return None
    db_item.is_active = 0
    db_item.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_item)
    return db_item


def get_in_stock_items(db: Session) -> List[models.Item]:
    return (
        db.query(models.Item)
        .filter(models.Item.is_active == 1, models.Item.quantity > 0)
        .order_by(asc(models.Item.name), asc(models.Item.id))
        .all()
    )


def get_out_of_stock_items(db: Session) -> List[models.Item]:
    return (
        db.query(models.Item)
        .filter(models.Item.is_active == 1, models.Item.quantity == 0)
        .order_by(asc(models.Item.name), asc(models.Item.id))
        .all()
    )


def get_low_stock_items(db: Session) -> List[models.Item]:
    """Active items that are still in stock but at or below their minimum level, scarcest first."""
    return (
        db.query(models.Item)
        .filter(
            models.Item.is_active == 1,
            models.Item.quantity > 0,
            models.Item.quantity <= models.Item.min_stock_level,
        )
        .order_by(asc(models.Item.quantity), asc(models.Item.id))
        .all()
    )


def get_dashboard_stats(db: Session) -> dict:
    """
    Headline counts and stock value over active items.
    
    Returns:
        dict with totalItems, inStockItems, outOfStockItems, lowStockItems and
        totalInventoryValue (a string with two decimals)
    """
    active = db.query(models.Item).filter(models.Item.is_active == 1)
    total_items = active.count()
    in_stock = active.filter(models.Item.quantity > 0).count()
    out_of_stock = active.filter(models.Item.quantity == 0).count()
    low_stock = active.filter(
        models.Item.quantity > 0,
        models.Item.quantity <= models.Item.min_stock_level,
    ).count()
    value = active.with_entities(func.sum(models.Item.price * models.Item.quantity)).scalar() or 0

    return {
        "totalItems": total_items,
        "inStockItems": in_stock,
        "outOfStockItems": out_of_stock,
        "lowStockItems": low_stock,
        "totalInventoryValue": f"{float(value):.2f}",
    }
