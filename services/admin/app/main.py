"""
    Admin Service API

    This module implements the FastAPI backend of the admin dashboard. It reads
    the shared inventory and order tables and owns the admin and rider tables.

    The service exposes:
    - Item browsing: paginated, filterable, sortable list and single lookup
    - Inventory analytics: stock levels, financials, sales performance and categories
    - Low-stock alerts
    - Rider management and rider analytics
    - Dashboard reports: orders, inventory, users, payments
    - Admin authentication (JWT in a Bearer header or httpOnly cookie)
    - Health endpoint for monitoring and orchestration

    Every response uses the envelope ``{"success", "message", "data"}``.
"""
import logging
from datetime import datetime
from typing import Optional
from fastapi import FastAPI, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from . import analytics, auth, cache, crud, models, reports, schemas
from .config import AUTH_COOKIE_NAME, ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_SECURE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, LOG_LEVEL
from .database import engine, get_db
from .responses import success_response, register_exception_handlers

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="admin-service")
register_exception_handlers(app)


def internal_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@app.get("/healthz", response_model=dict)
def health():
    """
    Health check endpoint for the admin service.

    Returns:
        dict: {"status": "healthy"} when the service is operational.
    """
    return {"status": "healthy"}


# ---------------------------------------------------------------- auth

@app.post("/auth/login")
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    """
    Sign an admin in.

    Issues a JWT, returns it in the envelope and sets it as an httpOnly cookie.

    Raises:
        HTTPException: 401 if the credentials are invalid, 403 if the account is inactive
    """
    admin = auth.authenticate_admin(db, credentials.username, credentials.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not admin.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin account is inactive")

    admin.last_login = datetime.utcnow()
    db.commit()
    db.refresh(admin)

    token = auth.token_for_admin(admin)
    logger.info(f"Admin '{admin.username}' signed in")
    result = success_response("Signed in successfully", {
        "user": schemas.Admin.model_validate(admin),
        "accessToken": token,
        "tokenType": "bearer",
    })
    result.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="strict",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return result


@app.post("/auth/logout")
def logout():
    """Clear the session cookie."""
    result = success_response("Signed out successfully")
    result.delete_cookie(AUTH_COOKIE_NAME)
    return result


@app.get("/auth/profile")
def profile(current_admin: models.Admin = Depends(auth.get_current_admin)):
    """Return the signed-in admin."""
    return success_response("User info retrieved successfully", {"user": schemas.Admin.model_validate(current_admin)})


@app.post("/auth/refresh")
def refresh_token(current_admin: models.Admin = Depends(auth.get_current_admin)):
    """Reissue the access token and reset the session cookie."""
    token = auth.token_for_admin(current_admin)
    result = success_response("Token refreshed successfully", {"accessToken": token, "tokenType": "bearer"})
    result.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="strict",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return result


# ---------------------------------------------------------------- items

@app.get("/items")
def list_items(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category: Optional[str] = None,
    is_active: Optional[int] = Query(None, alias="isActive", ge=0, le=1),
    sort_by: str = Query("name", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """
    List items with pagination, filtering and sorting.

    Args:
        page: 1-based page number
        limit: Page size
        category: Exact category filter
        is_active: 1 or 0 to filter on the active flag
        sort_by: Column to sort by; unknown columns sort by name
        sort_order: desc sorts descending; any other value sorts ascending
        search: Case-insensitive substring of the item name
        db: Database session (injected)
        current_admin: Current authenticated admin (injected)

    Returns:
        Envelope with {items, pagination}
    """
    try:
        items, pagination = crud.get_items(
            db,
            page=page,
            limit=limit,
            category=category,
            is_active=is_active,
            sort_by=sort_by,
            sort_order=crud.resolve_sort_order(sort_order),
            search=search,
        )
    except Exception:
        logger.exception("Error getting items")
        raise internal_error("Failed to retrieve items")

    page_data = schemas.ItemPage(items=[schemas.Item.model_validate(i) for i in items], pagination=pagination)
    return success_response("Items retrieved successfully", page_data)


@app.get("/items/{item_id}")
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """
    Get a single item by ID.

    Raises:
        HTTPException: 404 if the item does not exist
    """
    db_item = crud.get_item(db, item_id=item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return success_response("Item retrieved successfully", schemas.Item.model_validate(db_item))


@app.get("/inventory/analytics")
def inventory_analytics(
    refresh: bool = False,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """
    Comprehensive inventory analytics.

    Merges stock levels, financials, sales performance and category
    breakdowns. Served from cache when fresh unless ``refresh`` is set.
    A failing aggregator fails the whole response.

    Returns:
        Envelope with {stockLevels, financial, performance, categories, timestamp}
    """
    if not refresh:
        cached = cache.get_cache(cache.INVENTORY_ANALYTICS_KEY)
        if cached is not None:
            return success_response("Inventory analytics retrieved successfully", cached)

    try:
        result = analytics.get_inventory_analytics(db)
    except Exception:
        logger.exception("Error getting inventory analytics")
        raise internal_error("Failed to retrieve inventory analytics")

    cache.set_cache(cache.INVENTORY_ANALYTICS_KEY, result)
    return success_response("Inventory analytics retrieved successfully", result)


@app.get("/inventory/low-stock")
def low_stock_alerts(
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """
    Active items at or below their minimum stock level, largest deficit first.

    Returns:
        Envelope with {items, count}
    """
    try:
        items = crud.get_low_stock_items(db)
    except Exception:
        logger.exception("Error getting low stock alerts")
        raise internal_error("Failed to retrieve low stock alerts")

    return success_response("Low stock alerts retrieved successfully", {
        "items": [schemas.Item.model_validate(i) for i in items],
        "count": len(items),
    })


# ---------------------------------------------------------------- dashboard reports

@app.get("/admin/analytics/dashboard")
def dashboard_analytics(
    refresh: bool = False,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """Orders, inventory, users and payments reports in one response."""
    if not refresh:
        cached = cache.get_cache(cache.DASHBOARD_ANALYTICS_KEY)
        if cached is not None:
            return success_response("Dashboard analytics retrieved successfully", cached)

    try:
        result = reports.get_dashboard_analytics(db)
    except Exception:
        logger.exception("Error getting dashboard analytics")
        raise internal_error("Failed to retrieve dashboard analytics")

    cache.set_cache(cache.DASHBOARD_ANALYTICS_KEY, result)
    return success_response("Dashboard analytics retrieved successfully", result)


@app.get("/admin/analytics/orders")
def order_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """Order counts and delivered revenue, optionally within a date range."""
    try:
        result = reports.get_order_analytics(db, start_date, end_date)
    except Exception:
        logger.exception("Error getting order analytics")
        raise internal_error("Failed to retrieve order analytics")
    return success_response("Order analytics retrieved successfully", result)


@app.get("/admin/analytics/inventory")
def inventory_summary(
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """Headline inventory figures."""
    try:
        result = reports.get_inventory_summary(db)
    except Exception:
        logger.exception("Error getting inventory summary")
        raise internal_error("Failed to retrieve inventory analytics")
    return success_response("Inventory analytics retrieved successfully", result)


@app.get("/admin/analytics/users")
def user_analytics(
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """Admins by role, recent registrations and ordering customers."""
    try:
        result = reports.get_user_analytics(db)
    except Exception:
        logger.exception("Error getting user analytics")
        raise internal_error("Failed to retrieve user analytics")
    return success_response("User analytics retrieved successfully", result)


@app.get("/admin/analytics/payments")
def payment_analytics(
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """Completed payments by method and order totals by status."""
    try:
        result = reports.get_payment_analytics(db)
    except Exception:
        logger.exception("Error getting payment analytics")
        raise internal_error("Failed to retrieve payment analytics")
    return success_response("Payment analytics retrieved successfully", result)


# ---------------------------------------------------------------- riders

@app.get("/riders")
def list_riders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    is_active: Optional[int] = Query(None, alias="isActive", ge=0, le=1),
    rider_status: Optional[str] = Query(None, alias="status"),
    sort_by: str = Query("name", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """
    List riders with pagination, filtering and sorting.

    ``search`` matches name, email or phone; unknown ``sortBy`` values sort by name.

    Returns:
        Envelope with {riders, pagination}
    """
    try:
        riders, pagination = crud.get_riders(
            db,
            page=page,
            limit=limit,
            is_active=is_active,
            status=rider_status,
            sort_by=sort_by,
            sort_order=crud.resolve_sort_order(sort_order),
            search=search,
        )
    except Exception:
        logger.exception("Error getting riders")
        raise internal_error("Failed to retrieve riders")

    return success_response("Riders retrieved successfully", {
        "riders": [schemas.Rider.model_validate(r) for r in riders],
        "pagination": pagination,
    })


@app.get("/riders/analytics")
def rider_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    rider_id: Optional[int] = Query(None, alias="riderId"),
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """Rider overview, delivery performance and login activity."""
    try:
        result = reports.get_rider_analytics(db, start_date, end_date, rider_id)
    except Exception:
        logger.exception("Error getting rider analytics")
        raise internal_error("Failed to retrieve rider analytics")
    return success_response("Rider analytics retrieved successfully", result)


@app.post("/riders", status_code=status.HTTP_201_CREATED)
def add_rider(
    rider: schemas.RiderCreate,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.require_superadmin)
):
    """
    Register a new rider (superadmin only).

    Raises:
        HTTPException: 409 if the phone, email or vehicle number is taken
    """
    conflict = crud.find_rider_conflict(db, phone=rider.phone, email=rider.email, vehicle_number=rider.vehicle_number)
    if conflict:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{conflict} already exists")

    password_hash = auth.get_password_hash(rider.password) if rider.password else None
    db_rider = crud.create_rider(db, rider, password_hash=password_hash)
    logger.info(f"Rider {db_rider.id} added by admin '{current_admin.username}'")
    return success_response("Rider added successfully", schemas.Rider.model_validate(db_rider), status.HTTP_201_CREATED)


@app.get("/riders/{rider_id}")
def get_rider(
    rider_id: int,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.get_current_admin)
):
    """
    Get a single rider by ID.

    Raises:
        HTTPException: 404 if the rider does not exist
    """
    db_rider = crud.get_rider(db, rider_id=rider_id)
    if db_rider is None:
        raise HTTPException(status_code=404, detail="Rider not found")
    return success_response("Rider retrieved successfully", schemas.Rider.model_validate(db_rider))


@app.put("/riders/{rider_id}")
def update_rider(
    rider_id: int,
    rider: schemas.RiderUpdate,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.require_superadmin)
):
    """
    Update rider details (superadmin only).

    Raises:
        HTTPException: 404 if the rider does not exist, 409 on a duplicate unique field
    """
    if crud.get_rider(db, rider_id=rider_id) is None:
        raise HTTPException(status_code=404, detail="Rider not found")

    conflict = crud.find_rider_conflict(
        db, phone=rider.phone, email=rider.email, vehicle_number=rider.vehicle_number, exclude_id=rider_id
    )
    if conflict:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{conflict} already exists")

    db_rider = crud.update_rider(db, rider_id=rider_id, rider=rider)
    return success_response("Rider updated successfully", schemas.Rider.model_validate(db_rider))


@app.delete("/riders/{rider_id}")
def remove_rider(
    rider_id: int,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.require_superadmin)
):
    """
    Remove a rider (superadmin only). Riders are deactivated, never deleted.

    Raises:
        HTTPException: 404 if the rider does not exist
    """
    db_rider = crud.deactivate_rider(db, rider_id=rider_id)
    if db_rider is None:
        raise HTTPException(status_code=404, detail="Rider not found")
    return success_response("Rider removed successfully", schemas.Rider.model_validate(db_rider))


@app.put("/riders/{rider_id}/password")
def change_rider_password(
    rider_id: int,
    payload: schemas.RiderPasswordChange,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(auth.require_superadmin)
):
    """
    Set a new rider password (superadmin only).

    Raises:
        HTTPException: 404 if the rider does not exist
    """
    if not crud.set_rider_password(db, rider_id, auth.get_password_hash(payload.new_password)):
        raise HTTPException(status_code=404, detail="Rider not found")
    return success_response("Rider password updated successfully")
