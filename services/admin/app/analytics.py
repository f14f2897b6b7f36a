"""
Inventory analytics for the Admin service.

Four independent read-only aggregators over the ``items`` and ``order_items``
tables, each taking an explicit database session:

- stock levels: out-of-stock / low-stock / overstock / normal buckets
- financial: inventory value, price statistics and a price-band histogram
- performance: best sellers by quantity and revenue, slow movers
- categories: per-category counts, value and shares of the whole

``get_inventory_analytics`` runs all four and merges them into one response.
A failure in any aggregator propagates; partial analytics are never returned.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import asc, case, desc, func
from sqlalchemy.orm import Session

from . import models, schemas
from .config import PRICE_BANDS, CURRENCY_SYMBOL, OVERSTOCK_FACTOR

logger = logging.getLogger(__name__)

TOP_SELLERS_LIMIT = 10
SLOW_MOVERS_LIMIT = 10
PRICE_EXTREMES_LIMIT = 5


@dataclass(frozen=True)
class PriceBand:
    """One histogram band; ``upper`` is inclusive and None for the open-ended last band."""
    label: str
    upper: Optional[Decimal]


def build_price_bands(bounds: Sequence[Decimal] = PRICE_BANDS, symbol: str = CURRENCY_SYMBOL) -> List[PriceBand]:
    """
    Build the price histogram boundary table.

    ``bounds`` are the ascending inclusive upper limits of every band but the
    last, so three bounds give four bands, e.g. [100, 500, 2000] gives
    <=100, <=500, <=2000 and >2000.
    """
    bounds = sorted(bounds)
    if not bounds:
        raise ValueError("At least one price band boundary is required")

    bands = [PriceBand(f"Under {symbol}{bounds[0]}", bounds[0])]
    for lower, upper in zip(bounds, bounds[1:]):
        bands.append(PriceBand(f"{symbol}{lower} - {symbol}{upper}", upper))
    bands.append(PriceBand(f"Over {symbol}{bounds[-1]}", None))
    return bands


def percentage(part: float, whole: float) -> float:
    """Share of ``whole`` as a percentage rounded to 2 places; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return round(float(part) / float(whole) * 100, 2)


def money(value: Any) -> float:
    return round(float(value or 0), 2)


def stock_status(quantity: int, min_stock_level: int) -> str:
    """Label for an item's current stock position."""
    if quantity == 0:
        return "Out of Stock"
    if quantity <= min_stock_level:
        return "Low Stock"
    return "In Stock"


def serialize_items(items: List[models.Item]) -> List[Dict[str, Any]]:
    return [schemas.Item.model_validate(item).model_dump(mode="json", by_alias=True) for item in items]


def _active():
    return models.Item.is_active == 1


def get_stock_level_analytics(db: Session, overstock_factor: int = OVERSTOCK_FACTOR) -> Dict[str, Any]:
    """
    Partition active items into stock buckets.

    Buckets:
        lowStock: quantity <= minStockLevel
        outOfStock: quantity == 0
        overstock: quantity > minStockLevel * overstock_factor
        normal: total minus the three bucket counts

    An out-of-stock item also satisfies the low-stock condition, so it is
    counted in both buckets and ``normal`` is undercounted by the overlap.
    This is left as is until the product owner decides how zero-quantity
    items should be bucketed.

    Args:
        db: Database session
        overstock_factor: Multiplier on minStockLevel above which an item is overstocked

    Returns:
        dict with lowStock, outOfStock, overstock (items, count, percentage),
        normal (count, percentage) and totalItems
    """
    low_stock = (
        db.query(models.Item)
        .filter(models.Item.quantity <= models.Item.min_stock_level, _active())
        .order_by(asc(models.Item.id))
        .all()
    )
    out_of_stock = (
        db.query(models.Item)
        .filter(models.Item.quantity == 0, _active())
        .order_by(asc(models.Item.id))
        .all()
    )
    overstock = (
        db.query(models.Item)
        .filter(models.Item.quantity > models.Item.min_stock_level * overstock_factor, _active())
        .order_by(asc(models.Item.id))
        .all()
    )
    total = db.query(func.count(models.Item.id)).filter(_active()).scalar() or 0

    normal_count = total - len(low_stock) - len(out_of_stock) - len(overstock)

    def bucket(items):
        return {
            "items": serialize_items(items),
            "count": len(items),
            "percentage": percentage(len(items), total),
        }

    return {
        "lowStock": bucket(low_stock),
        "outOfStock": bucket(out_of_stock),
        "overstock": bucket(overstock),
        "normal": {
            "count": normal_count,
            "percentage": percentage(normal_count, total),
        },
        "totalItems": total,
    }


def get_price_distribution(db: Session, bands: Optional[List[PriceBand]] = None) -> List[Dict[str, Any]]:
    """
    Histogram of active items by price band.

    Every band is reported, in band order, with zero count and value when
    no item falls into it.
    """
    bands = bands or build_price_bands()

    whens = [(models.Item.price <= band.upper, index) for index, band in enumerate(bands) if band.upper is not None]
    banded = (
        db.query(
            case(*whens, else_=len(bands) - 1).label("band"),
            (models.Item.price * models.Item.quantity).label("value"),
        )
        .filter(_active())
        .subquery()
    )
    rows = (
        db.query(banded.c.band, func.count().label("count"), func.sum(banded.c.value).label("total_value"))
        .group_by(banded.c.band)
        .all()
    )
    by_band = {int(row.band): row for row in rows}

    distribution = []
    for index, band in enumerate(bands):
        row = by_band.get(index)
        distribution.append({
            "range": band.label,
            "count": int(row.count) if row else 0,
            "totalValue": money(row.total_value) if row else 0,
        })
    return distribution


def get_financial_analytics(db: Session, bands: Optional[List[PriceBand]] = None) -> Dict[str, Any]:
    """
    Value and price statistics over active items.

    Args:
        db: Database session
        bands: Price band table; defaults to the configured bands

    Returns:
        dict with totalInventoryValue, totalItems, averageItemPrice,
        highestPrice, lowestPrice, mostExpensive, leastExpensive and
        priceDistribution. An empty inventory yields zeros throughout.
    """
    stats = (
        db.query(
            func.sum(models.Item.price * models.Item.quantity).label("total_value"),
            func.count(models.Item.id).label("total_items"),
            func.avg(models.Item.price).label("avg_price"),
            func.max(models.Item.price).label("max_price"),
            func.min(models.Item.price).label("min_price"),
        )
        .filter(_active())
        .one()
    )

    most_expensive = (
        db.query(models.Item)
        .filter(_active())
        .order_by(desc(models.Item.price), asc(models.Item.id))
        .limit(PRICE_EXTREMES_LIMIT)
        .all()
    )
    least_expensive = (
        db.query(models.Item)
        .filter(_active())
        .order_by(asc(models.Item.price), asc(models.Item.id))
        .limit(PRICE_EXTREMES_LIMIT)
        .all()
    )

    return {
        "totalInventoryValue": money(stats.total_value),
        "totalItems": int(stats.total_items or 0),
        "averageItemPrice": money(stats.avg_price),
        "highestPrice": money(stats.max_price),
        "lowestPrice": money(stats.min_price),
        "mostExpensive": serialize_items(most_expensive),
        "leastExpensive": serialize_items(least_expensive),
        "priceDistribution": get_price_distribution(db, bands),
    }


def get_performance_analytics(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Sales performance from order lines joined to items.

    Rankings break ties on item id ascending so equal sellers always come
    back in the same order.

    Args:
        db: Database session
        now: Reference time for days in inventory (defaults to current UTC time)

    Returns:
        dict with topSellingByQuantity, topSellingByRevenue and slowMovingItems
    """
    now = now or datetime.utcnow()

    quantity_sold = func.sum(models.OrderItem.quantity)
    by_quantity = (
        db.query(
            models.OrderItem.item_id,
            models.Item.name,
            quantity_sold.label("total_sold"),
            models.Item.quantity,
            models.Item.min_stock_level,
        )
        .join(models.Item, models.OrderItem.item_id == models.Item.id)
        .group_by(models.OrderItem.item_id, models.Item.name, models.Item.quantity, models.Item.min_stock_level)
        .order_by(desc(quantity_sold), asc(models.OrderItem.item_id))
        .limit(TOP_SELLERS_LIMIT)
        .all()
    )

    revenue = func.sum(models.OrderItem.total_price)
    by_revenue = (
        db.query(
            models.OrderItem.item_id,
            models.Item.name,
            revenue.label("total_revenue"),
            func.sum(models.OrderItem.quantity).label("total_quantity"),
        )
        .join(models.Item, models.OrderItem.item_id == models.Item.id)
        .group_by(models.OrderItem.item_id, models.Item.name)
        .order_by(desc(revenue), asc(models.OrderItem.item_id))
        .limit(TOP_SELLERS_LIMIT)
        .all()
    )

    # Per-item sold quantity; items never ordered have no row and count as 0
    sold = (
        db.query(
            models.OrderItem.item_id.label("item_id"),
            func.sum(models.OrderItem.quantity).label("total_sold"),
        )
        .group_by(models.OrderItem.item_id)
        .subquery()
    )
    total_sold = func.coalesce(sold.c.total_sold, 0)
    slow_movers = (
        db.query(models.Item, total_sold.label("total_sold"))
        .outerjoin(sold, sold.c.item_id == models.Item.id)
        .filter(_active())
        .order_by(asc(total_sold), asc(models.Item.id))
        .limit(SLOW_MOVERS_LIMIT)
        .all()
    )

    return {
        "topSellingByQuantity": [
            {
                "itemId": row.item_id,
                "itemName": row.name,
                "totalSold": int(row.total_sold or 0),
                "currentStock": row.quantity,
                "stockStatus": stock_status(row.quantity, row.min_stock_level),
            }
            for row in by_quantity
        ],
        "topSellingByRevenue": [
            {
                "itemId": row.item_id,
                "itemName": row.name,
                "totalRevenue": money(row.total_revenue),
                "totalQuantitySold": int(row.total_quantity or 0),
            }
            for row in by_revenue
        ],
        "slowMovingItems": [
            {
                "id": item.id,
                "name": item.name,
                "currentStock": item.quantity,
                "category": item.category,
                "totalSold": int(sold_qty or 0),
                "daysInInventory": (now - item.created_at).days if item.created_at else 0,
            }
            for item, sold_qty in slow_movers
        ],
    }


def get_category_analytics(db: Session) -> Dict[str, Any]:
    """
    Group active items by category.

    Each category carries its share of the total item count and of the total
    inventory value. Categories are ordered by item count descending, then
    by name.
    """
    item_count = func.count(models.Item.id)
    rows = (
        db.query(
            models.Item.category,
            item_count.label("item_count"),
            func.sum(models.Item.price * models.Item.quantity).label("total_value"),
            func.avg(models.Item.price).label("avg_price"),
            func.count(case((models.Item.quantity <= models.Item.min_stock_level, 1))).label("low_stock_count"),
            func.count(case((models.Item.quantity == 0, 1))).label("out_of_stock_count"),
        )
        .filter(_active())
        .group_by(models.Item.category)
        .order_by(desc(item_count), asc(models.Item.category))
        .all()
    )

    total_items = sum(int(row.item_count) for row in rows)
    total_value = round(sum(float(row.total_value or 0) for row in rows), 2)

    categories = [
        {
            "category": row.category,
            "itemCount": int(row.item_count),
            "totalValue": money(row.total_value),
            "avgPrice": money(row.avg_price),
            "lowStockCount": int(row.low_stock_count or 0),
            "outOfStockCount": int(row.out_of_stock_count or 0),
            "itemPercentage": percentage(row.item_count, total_items),
            "valuePercentage": percentage(row.total_value or 0, total_value),
        }
        for row in rows
    ]

    return {
        "categories": categories,
        "totalCategories": len(categories),
        "summary": {
            "totalItems": total_items,
            "totalValue": total_value,
        },
    }


def get_inventory_analytics(db: Session) -> Dict[str, Any]:
    """
    Run every inventory aggregator and merge the results.

    The aggregators are independent read-only queries and run one after the
    other on the same session. Any exception propagates to the caller.

    Returns:
        dict with stockLevels, financial, performance, categories and timestamp
    """
    logger.info("Computing inventory analytics")
    return {
        "stockLevels": get_stock_level_analytics(db),
        "financial": get_financial_analytics(db),
        "performance": get_performance_analytics(db),
        "categories": get_category_analytics(db),
        "timestamp": datetime.utcnow().isoformat(),
    }
