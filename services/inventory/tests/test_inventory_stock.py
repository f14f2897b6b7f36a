"""
Tests for stock views, dashboard stats and operator sign in.
"""
from inventory_service import crud


def test_stock_views(db, make_item):
    make_item(name="Plenty", quantity=50)
    make_item(name="Edge", quantity=10)
    make_item(name="Scarce", quantity=2)
    make_item(name="Empty", quantity=0)
    make_item(name="Retired", quantity=0, is_active=0)

    assert [i.name for i in crud.get_in_stock_items(db)] == ["Edge", "Plenty", "Scarce"]
    assert [i.name for i in crud.get_out_of_stock_items(db)] == ["Empty"]
    assert [i.name for i in crud.get_low_stock_items(db)] == ["Scarce", "Edge"]


def test_low_stock_endpoint(client, viewer_headers, make_item):
    make_item(name="Scarce", quantity=2)
    make_item(name="Empty", quantity=0)

    response = client.get("/stock/low-stock", headers=viewer_headers)

    assert response.status_code == 200
    assert [i["name"] for i in response.json()["data"]] == ["Scarce"]


def test_dashboard_stats(client, viewer_headers, make_item):
    make_item(price="10.50", quantity=4)
    make_item(price="100", quantity=0)
    make_item(price="3", quantity=5, min_stock_level=5)
    make_item(price="999", quantity=100, is_active=0)

    response = client.get("/dashboard/stats", headers=viewer_headers)

    assert response.json()["data"] == {
        "totalItems": 3,
        "inStockItems": 2,
        "outOfStockItems": 1,
        "lowStockItems": 2,
        "totalInventoryValue": "57.00",
    }


def test_dashboard_stats_empty(db):
    assert crud.get_dashboard_stats(db)["totalInventoryValue"] == "0.00"


def test_login(client, make_user):
    make_user(username="manager", password="secret123")

    response = client.post("/auth/login", json={"username": "manager", "password": "secret123"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["role"] == "admin"
    token_headers = {"Authorization": f"Bearer {data['accessToken']}"}
    assert client.get("/items", headers=token_headers).status_code == 200


def test_login_rejects_bad_password_and_inactive(client, make_user):
    make_user(username="manager", password="secret123")
    make_user(username="former", password="secret123", is_active=0)

    wrong = client.post("/auth/login", json={"username": "manager", "password": "nope"})
    inactive = client.post("/auth/login", json={"username": "former", "password": "secret123"})

    assert wrong.status_code == 401
    assert inactive.status_code == 403


def test_garbage_token_rejected(client):
    response = client.get("/dashboard/stats", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
