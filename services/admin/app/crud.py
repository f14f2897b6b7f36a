"""
CRUD (Create, Read, Update, Delete) operations for the Admin service.

This module contains the item query composer (filtered, sorted, paginated
reads against ``items``), low-stock alerts and all rider management.
"""
import math
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import and_, or_, asc, desc
from sqlalchemy.orm import Session, Query
from . import models, schemas

logger = logging.getLogger(__name__)

ITEM_SORT_COLUMNS = {
    schemas.ItemSortField.id: models.Item.id,
    schemas.ItemSortField.name: models.Item.name,
    schemas.ItemSortField.price: models.Item.price,
    schemas.ItemSortField.quantity: models.Item.quantity,
    schemas.ItemSortField.min_stock_level: models.Item.min_stock_level,
    schemas.ItemSortField.category: models.Item.category,
    schemas.ItemSortField.created_at: models.Item.created_at,
    schemas.ItemSortField.updated_at: models.Item.updated_at,
}

RIDER_SORT_COLUMNS = {
    schemas.RiderSortField.id: models.Rider.id,
    schemas.RiderSortField.name: models.Rider.name,
    schemas.RiderSortField.email: models.Rider.email,
    schemas.RiderSortField.phone: models.Rider.phone,
    schemas.RiderSortField.status: models.Rider.status,
    schemas.RiderSortField.total_deliveries: models.Rider.total_deliveries,
    schemas.RiderSortField.rating: models.Rider.rating,
    schemas.RiderSortField.created_at: models.Rider.created_at,
}


def resolve_sort_field(sort_by: Optional[str], fields, default):
    """
    Map a loosely-typed ``sortBy`` value onto a sortable field.

    Unknown values fall back to ``default`` without raising; callers that
    expose this to clients should document the fallback.
    """
    if sort_by is None:
        return default
    try:
        return fields(sort_by)
    except ValueError:
        logger.debug(f"Unknown sort field '{sort_by}', falling back to '{default.value}'")
        return default


def resolve_sort_order(sort_order: Optional[str]) -> schemas.SortOrder:
    """Only an exact ``desc`` sorts descending; anything else sorts ascending."""
    if sort_order == schemas.SortOrder.desc.value:
        return schemas.SortOrder.desc
    return schemas.SortOrder.asc


def build_pagination(page: int, limit: int, total_items: int) -> schemas.Pagination:
    """
    Compute pagination metadata for a page of results.

    ``hasNext`` is true while rows remain past this page and ``hasPrev`` is
    true for every page after the first.
    """
    return schemas.Pagination(
        current_page=page,
        total_pages=math.ceil(total_items / limit) if limit else 0,
        total_items=total_items,
        has_next=page * limit < total_items,
        has_prev=page > 1,
    )


def paginate(query: Query, page: int, limit: int, sort_column, sort_order: schemas.SortOrder, tie_breaker) -> Tuple[list, schemas.Pagination]:
    """
    Apply ordering and offset/limit to a filtered query.

    The total is counted over the same filters before paging. Rows with equal
    sort keys are ordered by ``tie_breaker`` ascending so pages never overlap.

    Returns:
        Tuple of (rows on this page, pagination metadata)
    """
    total_items = query.order_by(None).count()
    direction = desc if sort_order == schemas.SortOrder.desc else asc
    rows = (
        query.order_by(direction(sort_column), asc(tie_breaker))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, build_pagination(page, limit, total_items)


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


def get_items(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
    is_active: Optional[int] = None,
    sort_by: Optional[str] = "name",
    sort_order: schemas.SortOrder = schemas.SortOrder.asc,
    search: Optional[str] = None,
) -> Tuple[List[models.Item], schemas.Pagination]:
    """
    Retrieve a page of items with filtering, sorting and pagination.
    
    Args:
        db: Database session
        page: 1-based page number
        limit: Page size
        category: Exact category match
        is_active: 1 or 0 to filter on the active flag
        sort_by: Column name; unknown names sort by name
        sort_order: asc or desc
        search: Case-insensitive substring of the item name
        
    Returns:
        Tuple of (items on this page, pagination metadata)
    """
    conditions = []
    if category:
        conditions.append(models.Item.category == category)
    if is_active is not None:
        conditions.append(models.Item.is_active == is_active)
    if search:
        conditions.append(models.Item.name.ilike(f"%{search}%"))

    query = db.query(models.Item)
    if conditions:
        query = query.filter(and_(*conditions))

    field = resolve_sort_field(sort_by, schemas.ItemSortField, schemas.ItemSortField.name)
    return paginate(query, page, limit, ITEM_SORT_COLUMNS[field], sort_order, models.Item.id)


def get_low_stock_items(db: Session) -> List[models.Item]:
    """
    Active items at or below their minimum stock level, most urgent first.

    Ordering is by deficit (quantity - minStockLevel) ascending, then id.
    """
    return (
        db.query(models.Item)
        .filter(
            models.Item.quantity <= models.Item.min_stock_level,
            models.Item.is_active == 1,
        )
        .order_by(asc(models.Item.quantity - models.Item.min_stock_level), asc(models.Item.id))
        .all()
    )


def get_rider(db: Session, rider_id: int) -> Optional[models.Rider]:
    """
    Retrieve a single rider by ID.
    
    Args:
        db: Database session
        rider_id: ID of the rider to retrieve
        
    Returns:
        Rider object or None if not found
    """
    return db.query(models.Rider).filter(models.Rider.id == rider_id).first()


def get_riders(
    db: Session,
    page: int = 1,
    limit: int = 10,
    is_active: Optional[int] = None,
    status: Optional[str] = None,
    sort_by: Optional[str] = "name",
    sort_order: schemas.SortOrder = schemas.SortOrder.asc,
    search: Optional[str] = None,
) -> Tuple[List[models.Rider], schemas.Pagination]:
    """Retrieve a page of riders; ``search`` matches name, email or phone."""
    query = db.query(models.Rider)
    if is_active is not None:
        query = query.filter(models.Rider.is_active == is_active)
    if status:
        query = query.filter(models.Rider.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            models.Rider.name.ilike(pattern),
            models.Rider.email.ilike(pattern),
            models.Rider.phone.ilike(pattern),
        ))

    field = resolve_sort_field(sort_by, schemas.RiderSortField, schemas.RiderSortField.name)
    return paginate(query, page, limit, RIDER_SORT_COLUMNS[field], sort_order, models.Rider.id)


def find_rider_conflict(
    db: Session,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    vehicle_number: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> Optional[str]:
    """
    Look for another rider already holding one of the unique fields.

    Returns:
        Name of the clashing field ("Phone", "Email" or "Vehicle number"), or None
    """
    checks = [
        ("Phone", models.Rider.phone, phone),
        ("Email", models.Rider.email, email),
        ("Vehicle number", models.Rider.vehicle_number, vehicle_number),
    ]
    for label, column, value in checks:
        if not value:
            continue
        query = db.query(models.Rider.id).filter(column == value)
        if exclude_id is not None:
            query = query.filter(models.Rider.id != exclude_id)
        if query.first() is not None:
            return label
    return None


def create_rider(db: Session, rider: schemas.RiderCreate, password_hash: Optional[str] = None) -> models.Rider:
    """
    Create a new rider in the database.
    
    Args:
        db: Database session
        rider: Rider data to create
        password_hash: Already-hashed password, if one was supplied
        
    Returns:
        Created Rider object
    """
    db_rider = models.Rider(
        name=rider.name,
        email=rider.email,
        phone=rider.phone,
        password=password_hash,
        vehicle_type=rider.vehicle_type,
        vehicle_number=rider.vehicle_number,
        license_number=rider.license_number,
        status="active",
        is_active=1,
    )
    db.add(db_rider)
    db.commit()
    db.refresh(db_rider)
    return db_rider


def update_rider(db: Session, rider_id: int, rider: schemas.RiderUpdate) -> Optional[models.Rider]:
    """
    Update an existing rider.
    
    Args:
        db: Database session
        rider_id: ID of the rider to update
        rider: Updated rider data (only provided fields will be updated)
        
    Returns:
        Updated Rider object or None if not found
    """
    db_rider = get_rider(db, rider_id)
    if db_rider is None:
        return None
    
    update_data = rider.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_rider, key, value)
    db_rider.updated_at = datetime.utcnow()
    
    db.commit()
    db.refresh(db_rider)
    return db_rider


def deactivate_rider(db: Session, rider_id: int) -> Optional[models.Rider]:
    """
    Soft delete a rider by clearing the active flag.

    Returns:
        The deactivated Rider, or None if not found
    """
    db_rider = get_rider(db, rider_id)
    if db_rider is None:
        return None

    db_rider.is_active = 0
    db_rider.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_rider)
    return db_rider


def set_rider_password(db: Session, rider_id: int, password_hash: str) -> bool:
    """Store a new password hash; False if the rider does not exist."""
    db_rider = get_rider(db, rider_id)
    if db_rider is None:
        return False

    db_rider.password = password_hash
    db_rider.updated_at = datetime.utcnow()
    db.commit()
    return True
