"""
Dashboard reports for the Admin service.

Order, user, payment and inventory summaries for the dashboard overview, and
rider analytics (overview, delivery performance, login activity). Like the
inventory aggregators these are read-only queries over an explicit session.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import asc, desc, distinct, func
from sqlalchemy.orm import Session

from . import models
from .analytics import money, percentage, serialize_items

logger = logging.getLogger(__name__)

TREND_DAYS = 30
RECENT_DAYS = 30
TOP_PERFORMERS_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 20


def get_order_analytics(db: Session, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Order counts, delivered revenue and the daily delivered-revenue trend.

    Args:
        db: Database session
        start_date: Inclusive lower bound on order creation (used with end_date)
        end_date: Inclusive upper bound on order creation (used with start_date)

    Returns:
        dict with totalOrders, ordersByStatus, revenue and dailyTrend
    """
    query = db.query(models.Order)
    if start_date and end_date:
        query = query.filter(models.Order.created_at.between(start_date, end_date))

    total_orders = query.count()

    status_counts = (
        query.with_entities(models.Order.status, func.count(models.Order.id))
        .group_by(models.Order.status)
        .all()
    )

    delivered = query.filter(models.Order.status == "delivered")
    revenue = delivered.with_entities(
        func.sum(models.Order.total_amount).label("total"),
        func.avg(models.Order.total_amount).label("average"),
        func.max(models.Order.total_amount).label("highest"),
        func.min(models.Order.total_amount).label("lowest"),
    ).one()

    day = func.date(models.Order.created_at)
    cutoff = datetime.utcnow() - timedelta(days=TREND_DAYS)
    trend_rows = (
        db.query(day.label("day"), func.sum(models.Order.total_amount).label("revenue"), func.count(models.Order.id).label("orders"))
        .filter(models.Order.status == "delivered", models.Order.created_at >= cutoff)
        .group_by(day)
        .order_by(day)
        .all()
    )

    return {
        "totalOrders": total_orders,
        "ordersByStatus": {status: count for status, count in status_counts},
        "revenue": {
            "total": money(revenue.total),
            "average": money(revenue.average),
            "highest": money(revenue.highest),
            "lowest": money(revenue.lowest),
        },
        "dailyTrend": [
            {"date": str(row.day), "revenue": money(row.revenue), "orderCount": int(row.orders)}
            for row in trend_rows
        ],
    }


def get_inventory_summary(db: Session) -> Dict[str, Any]:
    """Headline inventory figures for the dashboard overview."""
    low_stock = (
        db.query(models.Item)
        .filter(models.Item.quantity <= models.Item.min_stock_level)
        .order_by(asc(models.Item.quantity - models.Item.min_stock_level), asc(models.Item.id))
        .all()
    )

    stats = (
        db.query(
            func.count(models.Item.id).label("total_items"),
            func.sum(models.Item.price * models.Item.quantity).label("total_value"),
            func.avg(models.Item.price).label("avg_price"),
        )
        .filter(models.Item.is_active == 1)
        .one()
    )

    categories = (
        db.query(
            models.Item.category,
            func.count(models.Item.id).label("item_count"),
            func.sum(models.Item.price * models.Item.quantity).label("total_value"),
        )
        .filter(models.Item.is_active == 1)
        .group_by(models.Item.category)
        .order_by(asc(models.Item.category))
        .all()
    )

    quantity_sold = func.sum(models.OrderItem.quantity)
    top_selling = (
        db.query(
            models.OrderItem.item_id,
            models.Item.name,
            quantity_sold.label("total_sold"),
            func.sum(models.OrderItem.quantity * models.OrderItem.unit_price).label("total_revenue"),
        )
        .join(models.Item, models.OrderItem.item_id == models.Item.id)
        .group_by(models.OrderItem.item_id, models.Item.name)
        .order_by(desc(quantity_sold), asc(models.OrderItem.item_id))
        .limit(10)
        .all()
    )

    return {
        "lowStockItems": serialize_items(low_stock),
        "totalItems": int(stats.total_items or 0),
        "totalInventoryValue": money(stats.total_value),
        "averageItemPrice": money(stats.avg_price),
        "categoryDistribution": [
            {"category": row.category, "itemCount": int(row.item_count), "totalValue": money(row.total_value)}
            for row in categories
        ],
        "topSellingItems": [
            {
                "itemId": row.item_id,
                "itemName": row.name,
                "totalSold": int(row.total_sold or 0),
                "totalRevenue": money(row.total_revenue),
            }
            for row in top_selling
        ],
    }


def get_user_analytics(db: Session) -> Dict[str, Any]:
    """Admins by role, recent admin registrations and customers who have ordered."""
    by_role = (
        db.query(models.Admin.role, func.count(models.Admin.id))
        .group_by(models.Admin.role)
        .all()
    )
    cutoff = datetime.utcnow() - timedelta(days=RECENT_DAYS)
    recent = db.query(func.count(models.Admin.id)).filter(models.Admin.created_at >= cutoff).scalar() or 0
    active_customers = db.query(func.count(distinct(models.Order.customer_id))).scalar() or 0

    return {
        "usersByRole": {role: count for role, count in by_role},
        "recentRegistrations": recent,
        "activeCustomers": active_customers,
    }


def get_payment_analytics(db: Session) -> Dict[str, Any]:
    """Completed payments per method and order totals per status."""
    methods = (
        db.query(
            models.Payment.method,
            func.count(models.Payment.id).label("count"),
            func.sum(models.Payment.amount).label("total"),
        )
        .filter(models.Payment.status == "completed")
        .group_by(models.Payment.method)
        .order_by(asc(models.Payment.method))
        .all()
    )
    statuses = (
        db.query(
            models.Order.status,
            func.count(models.Order.id).label("count"),
            func.sum(models.Order.total_amount).label("total_amount"),
        )
        .group_by(models.Order.status)
        .order_by(asc(models.Order.status))
        .all()
    )

    return {
        "paymentMethods": [
            {"method": row.method, "count": int(row.count), "total": money(row.total)}
            for row in methods
        ],
        "orderStatus": [
            {"status": row.status, "count": int(row.count), "totalAmount": money(row.total_amount)}
            for row in statuses
        ],
    }


def get_dashboard_analytics(db: Session) -> Dict[str, Any]:
    """All dashboard reports merged into one response."""
    return {
        "orders": get_order_analytics(db),
        "inventory": get_inventory_summary(db),
        "users": get_user_analytics(db),
        "payments": get_payment_analytics(db),
        "timestamp": datetime.utcnow().isoformat(),
    }


def get_rider_statistics(db: Session) -> Dict[str, Any]:
    total = db.query(func.count(models.Rider.id)).scalar() or 0
    active = db.query(func.count(models.Rider.id)).filter(models.Rider.is_active == 1).scalar() or 0
    inactive = db.query(func.count(models.Rider.id)).filter(models.Rider.is_active == 0).scalar() or 0
    cutoff = datetime.utcnow() - timedelta(days=RECENT_DAYS)
    recent = db.query(func.count(models.Rider.id)).filter(models.Rider.created_at >= cutoff).scalar() or 0

    return {
        "totalRiders": total,
        "activeRiders": {"count": active, "percentage": percentage(active, total)},
        "inactiveRiders": {"count": inactive, "percentage": percentage(inactive, total)},
        "recentRegistrations": recent,
    }


def get_rider_performance(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    rider_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Delivery performance from orders assigned to riders.

    Args:
        db: Database session
        start_date: Inclusive lower bound on order creation (used with end_date)
        end_date: Inclusive upper bound on order creation (used with start_date)
        rider_id: Restrict to one rider

    Returns:
        dict with order counts by outcome, averageDeliveryTime in minutes and
        topPerformers (riders with the most delivered orders)
    """
    query = db.query(models.Order).filter(models.Order.rider_id.isnot(None))
    if start_date and end_date:
        query = query.filter(models.Order.created_at.between(start_date, end_date))
    if rider_id is not None:
        query = query.filter(models.Order.rider_id == rider_id)

    counts = dict(
        query.with_entities(models.Order.status, func.count(models.Order.id))
        .group_by(models.Order.status)
        .all()
    )
    total_assigned = sum(counts.values())
    completed = counts.get("delivered", 0)
    cancelled = counts.get("cancelled", 0)

    delivery_times = (
        query.filter(models.Order.status == "delivered", models.Order.delivered_at.isnot(None))
        .with_entities(models.Order.created_at, models.Order.delivered_at)
        .all()
    )
    minutes = [
        (delivered_at - created_at).total_seconds() / 60
        for created_at, delivered_at in delivery_times
        if created_at and delivered_at
    ]
    average_delivery = round(sum(minutes) / len(minutes), 2) if minutes else 0

    deliveries = func.count(models.Order.id)
    top = (
        query.filter(models.Order.status == "delivered")
        .join(models.Rider, models.Rider.id == models.Order.rider_id)
        .with_entities(models.Rider.id, models.Rider.name, deliveries.label("deliveries"))
        .group_by(models.Rider.id, models.Rider.name)
        .order_by(desc(deliveries), asc(models.Rider.id))
        .limit(TOP_PERFORMERS_LIMIT)
        .all()
    )

    return {
        "totalAssignedOrders": total_assigned,
        "completedOrders": completed,
        "pendingOrders": total_assigned - completed - cancelled,
        "cancelledOrders": cancelled,
        "averageDeliveryTime": average_delivery,
        "topPerformers": [
            {"riderId": row.id, "name": row.name, "deliveries": int(row.deliveries)}
            for row in top
        ],
    }


def get_rider_activity(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Most recent rider logins and how many riders were seen today, this week and this month."""
    now = now or datetime.utcnow()
    riders = (
        db.query(models.Rider)
        .order_by(models.Rider.last_login.is_(None), desc(models.Rider.last_login), asc(models.Rider.id))
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )

    def seen_since(cutoff):
        return sum(1 for rider in riders if rider.last_login and rider.last_login >= cutoff)

    return {
        "recentActivity": [
            {
                "riderId": rider.id,
                "name": rider.name,
                "email": rider.email,
                "lastLogin": rider.last_login.isoformat() if rider.last_login else None,
                "isActive": rider.is_active,
                "registrationDate": rider.created_at.isoformat() if rider.created_at else None,
            }
            for rider in riders
        ],
        "activitySummary": {
            "activeToday": sum(1 for rider in riders if rider.last_login and rider.last_login.date() == now.date()),
            "activeThisWeek": seen_since(now - timedelta(days=7)),
            "activeThisMonth": seen_since(now - timedelta(days=30)),
            "totalRiders": len(riders),
        },
    }


def get_rider_analytics(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    rider_id: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "overview": get_rider_statistics(db),
        "performance": get_rider_performance(db, start_date, end_date, rider_id),
        "activity": get_rider_activity(db),
        "timestamp": datetime.utcnow().isoformat(),
    }
