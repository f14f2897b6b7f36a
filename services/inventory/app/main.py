"""
    Inventory Service API

    This module implements the FastAPI backend used by inventory operators to
    maintain the item catalogue that the admin dashboard and storefront read.

    The service exposes:
    - Item CRUD (writes are admin only; deletes are soft)
    - Stock views: in stock, out of stock, low stock
    - Dashboard stats and the list of units of measure
    - Operator sign in
    - Health endpoint for monitoring and orchestration

    Every response uses the envelope ``{"success", "message", "data"}``.
"""
import logging
from datetime import datetime
from typing import Optional
from fastapi import FastAPI, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from . import auth, crud, models, schemas
from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, LOG_LEVEL
from .database import engine, get_db
from .responses import success_response, register_exception_handlers

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="inventory-service")
register_exception_handlers(app)


def item_payload(item: models.Item) -> dict:
    return schemas.Item.model_validate(item).model_dump(by_alias=True)


def items_payload(items) -> list:
    return [item_payload(item) for item in items]


@app.get("/healthz", response_model=dict)
def health():
    """
    Health check endpoint for the inventory service.

    Returns:
        dict: {"status": "healthy"} when the service is operational.
    """
    return {"status": "healthy"}


@app.post("/auth/login")
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    """
    Sign an inventory operator in and return a bearer token.

    Raises:
        HTTPException: 401 if the credentials are invalid, 403 if the account is inactive
    """
    user = auth.authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    user.last_login = datetime.utcnow()
    db.commit()
    token = auth.create_access_token(data={"sub": str(user.id), "username": user.username, "role": user.role})
    logger.info(f"Inventory user {user.username} signed in")
    return success_response("Login successful", {
        "accessToken": token,
        "tokenType": "bearer",
        "user": {"id": user.id, "username": user.username, "email": user.email, "role": user.role},
    })


@app.get("/units")
def list_units():
    """Units of measure accepted for items. Public."""
    return success_response("Units retrieved successfully", [unit.value for unit in schemas.Unit])


@app.get("/items")
def list_items(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: models.InventoryUser = Depends(auth.get_current_user)
):
    """
    List active items with pagination, newest first.

    Args:
        page: 1-based page number
        limit: Page size
        category: Exact category filter
        search: Case-insensitive match on name or description
    """
    items, pagination = crud.get_items(db, page=page, limit=limit, category=category, search=search)
    return success_response("Items retrieved successfully", {"items": items_payload(items), "pagination": pagination.model_dump(by_alias=True)})


@app.get("/items/{item_id}")
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: models.InventoryUser = Depends(auth.get_current_user)
):
    """
    Get a single item by ID.

    Raises:
        HTTPException: 404 if item not found
    """
    db_item = crud.get_item(db, item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return success_response("Item retrieved successfully", item_payload(db_item))


@app.post("/items", status_code=status.HTTP_201_CREATED)
def create_item(
    item: schemas.ItemCreate,
    db: Session = Depends(get_db),
    current_user: models.InventoryUser = Depends(auth.require_admin)
):
    """
    Create a new item (admin only).

    Raises:
        HTTPException: 409 if the SKU already exists
    """
    try:
        db_item = crud.create_item(db, item)
    except crud.DuplicateSkuError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item with this SKU already exists")
    logger.info(f"Item {db_item.id} created by {current_user.username}")
    return success_response("Item created successfully", item_payload(db_item), status.HTTP_201_CREATED)


@app.put("/items/{item_id}")
def update_item(
    item_id: int,
    item: schemas.ItemUpdate,
    db: Session = Depends(get_db),
    current_user: models.InventoryUser = Depends(auth.require_admin)
):
    """
    Update an existing item (admin only).

    Raises:
        HTTPException: 404 if item not found, 409 if the new SKU is taken
    """
    try:
        db_item = crud.update_item(db, item_id, item)
    except crud.DuplicateSkuError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Item with this SKU already exists")
    if db_item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return success_response("Item updated successfully", item_payload(db_item))


@app.delete("/items/{item_id}")
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: models.InventoryUser = Depends(auth.require_admin)
):
    """
    Soft delete an item by marking it inactive (admin only).

    Raises:
        HTTPException: 404 if item not found
    """
    db_item = crud.deactivate_item(db, item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    logger.info(f"Item {item_id} deactivated by {current_user.username}")
    return success_response("Item deleted successfully")


@app.get("/stock/in-stock")
def in_stock_items(db: Session = Depends(get_db), current_user: models.InventoryUser = Depends(auth.get_current_user)):
    return success_response("In-stock items retrieved successfully", items_payload(crud.get_in_stock_items(db)))


@app.get("/stock/out-of-stock")
def out_of_stock_items(db: Session = Depends(get_db), current_user: models.InventoryUser = Depends(auth.get_current_user)):
    return success_response("Out-of-stock items retrieved successfully", items_payload(crud.get_out_of_stock_items(db)))


@app.get("/stock/low-stock")
def low_stock_items(db: Session = Depends(get_db), current_user: models.InventoryUser = Depends(auth.get_current_user)):
    return success_response("Low-stock items retrieved successfully", items_payload(crud.get_low_stock_items(db)))


@app.get("/dashboard/stats")
def dashboard_stats(db: Session = Depends(get_db), current_user: models.InventoryUser = Depends(auth.get_current_user)):
    """Headline item counts and total stock value."""
    return success_response("Dashboard stats retrieved successfully", crud.get_dashboard_stats(db))
