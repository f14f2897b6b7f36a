"""
Tests for the inventory analytics aggregators and the merged endpoint.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from admin_service import analytics, config


def test_out_of_stock_item_lands_in_both_out_and_low_buckets(db, make_item):
    make_item(name="Empty", price="100.00", quantity=0, min_stock_level=10)

    result = analytics.get_stock_level_analytics(db)

    assert result["outOfStock"]["count"] == 1
    assert result["lowStock"]["count"] == 1
    assert result["totalItems"] == 1


def test_stock_buckets_undercount_normal_by_the_out_of_stock_overlap(db, make_item):
    make_item(name="Empty", quantity=0, min_stock_level=10)
    make_item(name="Low", quantity=5, min_stock_level=10)
    make_item(name="Overstocked", quantity=60, min_stock_level=10)
    make_item(name="Normal", quantity=20, min_stock_level=10)

    result = analytics.get_stock_level_analytics(db)

    classified = {
        item["id"]
        for bucket in ("lowStock", "outOfStock", "overstock")
        for item in result[bucket]["items"]
    }
    reconciled = len(classified) + result["normal"]["count"]

    # One item really is normal, but the overlap drives the reported count to zero
    assert result["normal"]["count"] == 0
    assert result["totalItems"] - reconciled == result["outOfStock"]["count"]


def test_stock_levels_percentages(db, make_item):
    make_item(quantity=5)
    make_item(quantity=20)
    make_item(quantity=20)
    make_item(quantity=51)

    result = analytics.get_stock_level_analytics(db)

    assert result["lowStock"]["percentage"] == 25.0
    assert result["overstock"]["percentage"] == 25.0
    assert result["normal"] == {"count": 2, "percentage": 50.0}


def test_stock_levels_ignore_inactive_items(db, make_item):
    make_item(quantity=0, is_active=0)

    result = analytics.get_stock_level_analytics(db)

    assert result["totalItems"] == 0
    assert result["outOfStock"] == {"items": [], "count": 0, "percentage": 0}
    assert result["normal"] == {"count": 0, "percentage": 0}


def test_financial_analytics_on_empty_inventory_returns_zeros(db):
    result = analytics.get_financial_analytics(db)

    assert result["totalInventoryValue"] == 0
    assert result["totalItems"] == 0
    assert result["averageItemPrice"] == 0
    assert result["highestPrice"] == 0
    assert result["lowestPrice"] == 0
    assert result["mostExpensive"] == []
    assert result["leastExpensive"] == []
    assert [band["count"] for band in result["priceDistribution"]] == [0, 0, 0, 0]


def test_financial_analytics_totals(db, make_item):
    make_item(name="Salt", price="20.00", quantity=10)
    make_item(name="Oil", price="150.00", quantity=4)
    make_item(name="Saffron", price="2500.00", quantity=1)
    make_item(name="Hidden", price="9999.00", quantity=1, is_active=0)

    result = analytics.get_financial_analytics(db)

    assert result["totalInventoryValue"] == 3300.0
    assert result["totalItems"] == 3
    assert result["averageItemPrice"] == 890.0
    assert result["highestPrice"] == 2500.0
    assert result["lowestPrice"] == 20.0
    assert [item["name"] for item in result["mostExpensive"]] == ["Saffron", "Oil", "Salt"]
    assert [item["name"] for item in result["leastExpensive"]] == ["Salt", "Oil", "Saffron"]


def test_price_distribution_uses_inclusive_upper_bounds(db, make_item):
    make_item(price="100.00", quantity=1)
    make_item(price="100.01", quantity=2)
    make_item(price="500.00", quantity=1)
    make_item(price="2500.00", quantity=1)

    distribution = analytics.get_price_distribution(db, analytics.build_price_bands([100, 500, 2000], "₹"))

    assert distribution == [
        {"range": "Under ₹100", "count": 1, "totalValue": 100.0},
        {"range": "₹100 - ₹500", "count": 2, "totalValue": 700.02},
        {"range": "₹500 - ₹2000", "count": 0, "totalValue": 0},
        {"range": "Over ₹2000", "count": 1, "totalValue": 2500.0},
    ]


def test_build_price_bands_requires_a_boundary():
    with pytest.raises(ValueError):
        analytics.build_price_bands([])


def test_price_bands_accept_decimal_bounds():
    bounds = config.parse_price_bands("99.5, 500,2000.25")

    bands = analytics.build_price_bands(bounds, "₹")

    assert bounds == [Decimal("99.5"), Decimal("500"), Decimal("2000.25")]
    assert [band.label for band in bands] == ["Under ₹99.5", "₹99.5 - ₹500", "₹500 - ₹2000.25", "Over ₹2000.25"]


def test_top_sellers_rank_by_quantity_and_revenue_independently(db, make_item, make_order_line):
    cheap = make_item(name="Cheap", price="10.00", quantity=3)
    pricey = make_item(name="Pricey", price="500.00", quantity=0)

    make_order_line(cheap, 40)
    make_order_line(pricey, 2)

    result = analytics.get_performance_analytics(db)

    by_quantity = result["topSellingByQuantity"]
    assert [row["itemName"] for row in by_quantity] == ["Cheap", "Pricey"]
    assert by_quantity[0]["totalSold"] == 40
    assert by_quantity[0]["stockStatus"] == "Low Stock"
    assert by_quantity[1]["stockStatus"] == "Out of Stock"

    by_revenue = result["topSellingByRevenue"]
    assert [row["itemName"] for row in by_revenue] == ["Pricey", "Cheap"]
    assert by_revenue[0]["totalRevenue"] == 1000.0
    assert by_revenue[0]["totalQuantitySold"] == 2


def test_top_sellers_with_equal_quantity_are_ordered_by_item_id(db, make_item, make_order_line):
    first = make_item(name="Zucchini")
    second = make_item(name="Apple")
    third = make_item(name="Mango")

    make_order_line(third, 5)
    make_order_line(first, 3)
    make_order_line(first, 2)
    make_order_line(second, 5)

    result = analytics.get_performance_analytics(db)

    assert [row["itemId"] for row in result["topSellingByQuantity"]] == [first.id, second.id, third.id]


def test_top_sellers_with_equal_revenue_are_ordered_by_item_id(db, make_item, make_order_line):
    first = make_item(name="Saffron", price="25.00")
    second = make_item(name="Bread", price="10.00")
    third = make_item(name="Eggs", price="50.00")

    make_order_line(third, 1)
    make_order_line(second, 5)
    make_order_line(first, 2)

    result = analytics.get_performance_analytics(db)

    by_revenue = result["topSellingByRevenue"]
    assert [row["itemId"] for row in by_revenue] == [first.id, second.id, third.id]
    assert {row["totalRevenue"] for row in by_revenue} == {50.0}


def test_slow_movers_with_equal_sales_are_ordered_by_item_id(db, make_item, make_order_line):
    first = make_item(name="Yam")
    second = make_item(name="Beans")
    third = make_item(name="Kale")
    sold = make_item(name="Onion")
    make_order_line(sold, 4)
    make_order_line(third, 1)
    make_order_line(first, 1)

    result = analytics.get_performance_analytics(db)

    assert [row["id"] for row in result["slowMovingItems"]] == [second.id, first.id, third.id, sold.id]


def test_slow_movers_default_unsold_items_to_zero(db, make_item, make_order_line):
    now = datetime.utcnow()
    seller = make_item(name="Seller", created_at=now - timedelta(days=3))
    make_item(name="Never sold", category="Snacks", created_at=now - timedelta(days=12))
    make_item(name="Inactive", is_active=0)
    make_order_line(seller, 7)

    result = analytics.get_performance_analytics(db, now=now)

    slow = result["slowMovingItems"]
    assert [row["name"] for row in slow] == ["Never sold", "Seller"]
    assert slow[0]["totalSold"] == 0
    assert slow[0]["daysInInventory"] == 12
    assert slow[0]["category"] == "Snacks"
    assert slow[1]["totalSold"] == 7


def test_category_analytics(db, make_item):
    make_item(category="Dairy", price="50.00", quantity=0)
    make_item(category="Dairy", price="30.00", quantity=5)
    make_item(category="Dairy", price="40.00", quantity=20)
    make_item(category="Bakery", price="25.00", quantity=4)

    result = analytics.get_category_analytics(db)

    dairy, bakery = result["categories"]
    assert dairy["category"] == "Dairy"
    assert dairy["itemCount"] == 3
    assert dairy["totalValue"] == 950.0
    assert dairy["avgPrice"] == 40.0
    assert dairy["lowStockCount"] == 2
    assert dairy["outOfStockCount"] == 1
    assert dairy["itemPercentage"] == 75.0
    assert bakery["valuePercentage"] == pytest.approx(9.52)
    assert result["totalCategories"] == 2
    assert result["summary"] == {"totalItems": 4, "totalValue": 1050.0}


def test_category_item_percentages_sum_to_one_hundred(db, make_item):
    for category, count in (("A", 1), ("B", 1), ("C", 1)):
        for _ in range(count):
            make_item(category=category)

    result = analytics.get_category_analytics(db)

    total = sum(category["itemPercentage"] for category in result["categories"])
    assert total == pytest.approx(100, abs=0.05)


def test_category_analytics_empty(db):
    result = analytics.get_category_analytics(db)

    assert result == {"categories": [], "totalCategories": 0, "summary": {"totalItems": 0, "totalValue": 0}}


def test_inventory_analytics_endpoint_merges_all_sections(client, auth_headers, make_item, make_order_line):
    item = make_item(name="Atta", price="55.00", quantity=8)
    make_order_line(item, 3)

    response = client.get("/inventory/analytics", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert set(data) == {"stockLevels", "financial", "performance", "categories", "timestamp"}
    assert data["stockLevels"]["lowStock"]["count"] == 1
    assert data["financial"]["totalInventoryValue"] == 440.0
    assert data["performance"]["topSellingByQuantity"][0]["totalSold"] == 3
    assert data["categories"]["totalCategories"] == 1


def test_inventory_analytics_fails_whole_response_when_one_aggregator_fails(client, auth_headers, monkeypatch):
    def broken(db):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    monkeypatch.setattr(analytics, "get_category_analytics", broken)

    response = client.get("/inventory/analytics", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to retrieve inventory analytics"}
