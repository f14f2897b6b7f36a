"""
Tests for rider management and rider analytics.
"""
from datetime import datetime, timedelta

import pytest

from admin_service import auth, models, reports


def rider_payload(**overrides):
    payload = {
        "name": "Suresh Patil",
        "phone": "9876543210",
        "email": "suresh@example.com",
        "password": "secret123",
        "vehicleType": "bike",
        "vehicleNumber": "MH12XY0001",
    }
    payload.update(overrides)
    return payload


def test_add_rider(client, auth_headers, db):
    response = client.post("/riders", json=rider_payload(), headers=auth_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Rider added successfully"
    assert body["data"]["vehicleNumber"] == "MH12XY0001"
    assert body["data"]["isActive"] == 1
    assert "password" not in body["data"]

    stored = db.query(models.Rider).one()
    assert auth.verify_password("secret123", stored.password)


def test_add_rider_duplicate_phone_conflicts(client, auth_headers, make_rider):
    make_rider(phone="9876543210")

    response = client.post("/riders", json=rider_payload(), headers=auth_headers)

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Phone already exists"}


def test_add_rider_validates_input(client, auth_headers):
    response = client.post("/riders", json=rider_payload(email="not-an-email"), headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_add_rider_short_password_rejected(client, auth_headers):
    response = client.post("/riders", json=rider_payload(password="123"), headers=auth_headers)

    assert response.status_code == 400


def test_viewer_cannot_add_rider(client, viewer_headers):
    response = client.post("/riders", json=rider_payload(), headers=viewer_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Superadmin privileges required"


def test_list_riders_search_and_pagination(client, auth_headers, make_rider):
    make_rider(name="Anil", phone="9000000001", vehicle_number="V1")
    make_rider(name="Bala", phone="9000000002", vehicle_number="V2", email="bala@example.com")
    make_rider(name="Chetan", phone="9111111111", vehicle_number="V3")

    response = client.get("/riders", params={"search": "90000", "limit": 1}, headers=auth_headers)

    data = response.json()["data"]
    assert [rider["name"] for rider in data["riders"]] == ["Anil"]
    assert data["pagination"]["totalItems"] == 2
    assert data["pagination"]["hasNext"] is True

    response = client.get("/riders", params={"search": "BALA@"}, headers=auth_headers)
    assert [rider["name"] for rider in response.json()["data"]["riders"]] == ["Bala"]


def test_get_rider_not_found(client, auth_headers):
    response = client.get("/riders/42", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Rider not found"


def test_update_rider(client, auth_headers, make_rider):
    rider = make_rider()

    response = client.put(f"/riders/{rider.id}", json={"status": "busy", "name": "Ravi K"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "busy"
    assert response.json()["data"]["name"] == "Ravi K"


@pytest.mark.parametrize("field", ["name", "phone", "vehicleType", "vehicleNumber", "status"])
def test_update_rider_rejects_null_for_required_fields(client, auth_headers, make_rider, db, field):
    rider = make_rider()

    response = client.put(f"/riders/{rider.id}", json={field: None}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False
    db.refresh(rider)
    assert rider.name == "Ravi Kumar"


def test_update_rider_vehicle_number_conflict(client, auth_headers, make_rider):
    make_rider(phone="9000000001", vehicle_number="TAKEN")
    rider = make_rider(phone="9000000002", vehicle_number="FREE")

    response = client.put(f"/riders/{rider.id}", json={"vehicleNumber": "TAKEN"}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["message"] == "Vehicle number already exists"


def test_update_rider_keeps_own_values(client, auth_headers, make_rider):
    rider = make_rider(phone="9000000001")

    response = client.put(f"/riders/{rider.id}", json={"phone": "9000000001"}, headers=auth_headers)

    assert response.status_code == 200


def test_remove_rider_is_soft_delete(client, auth_headers, make_rider, db):
    rider = make_rider()

    response = client.delete(f"/riders/{rider.id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["isActive"] == 0
    assert db.query(models.Rider).count() == 1


def test_change_rider_password(client, auth_headers, make_rider, db):
    rider = make_rider()

    response = client.put(f"/riders/{rider.id}/password", json={"newPassword": "newpass1"}, headers=auth_headers)

    assert response.status_code == 200
    db.refresh(rider)
    assert auth.verify_password("newpass1", rider.password)


def test_change_password_unknown_rider(client, auth_headers):
    response = client.put("/riders/7/password", json={"newPassword": "newpass1"}, headers=auth_headers)

    assert response.status_code == 404


def test_rider_statistics(db, make_rider):
    make_rider(phone="1000001", vehicle_number="A")
    make_rider(phone="1000002", vehicle_number="B")
    make_rider(phone="1000003", vehicle_number="C", is_active=0, created_at=datetime.utcnow() - timedelta(days=60))

    overview = reports.get_rider_statistics(db)

    assert overview["totalRiders"] == 3
    assert overview["activeRiders"] == {"count": 2, "percentage": 66.67}
    assert overview["inactiveRiders"] == {"count": 1, "percentage": 33.33}
    assert overview["recentRegistrations"] == 2


def test_rider_performance(db, make_rider, make_order):
    fast = make_rider(name="Fast", phone="1000001", vehicle_number="A")
    slow = make_rider(name="Slow", phone="1000002", vehicle_number="B")
    start = datetime.utcnow() - timedelta(hours=5)

    make_order(status="delivered", rider_id=fast.id, created_at=start, delivered_at=start + timedelta(minutes=20))
    make_order(status="delivered", rider_id=fast.id, created_at=start, delivered_at=start + timedelta(minutes=40))
    make_order(status="delivered", rider_id=slow.id, created_at=start, delivered_at=start + timedelta(minutes=60))
    make_order(status="cancelled", rider_id=slow.id)
    make_order(status="out_for_delivery", rider_id=slow.id)
    make_order(status="placed")

    performance = reports.get_rider_performance(db)

    assert performance["totalAssignedOrders"] == 5
    assert performance["completedOrders"] == 3
    assert performance["cancelledOrders"] == 1
    assert performance["pendingOrders"] == 1
    assert performance["averageDeliveryTime"] == 40.0
    assert performance["topPerformers"][0] == {"riderId": fast.id, "name": "Fast", "deliveries": 2}

    only_slow = reports.get_rider_performance(db, rider_id=slow.id)
    assert only_slow["totalAssignedOrders"] == 3


def test_rider_activity(db, make_rider):
    now = datetime.utcnow()
    make_rider(name="Today", phone="1000001", vehicle_number="A", last_login=now)
    make_rider(name="Week", phone="1000002", vehicle_number="B", last_login=now - timedelta(days=3))
    make_rider(name="Never", phone="1000003", vehicle_number="C")

    activity = reports.get_rider_activity(db, now=now)

    assert [row["name"] for row in activity["recentActivity"]] == ["Today", "Week", "Never"]
    assert activity["activitySummary"] == {
        "activeToday": 1,
        "activeThisWeek": 2,
        "activeThisMonth": 2,
        "totalRiders": 3,
    }


def test_rider_analytics_endpoint(client, auth_headers, make_rider):
    make_rider()

    response = client.get("/riders/analytics", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert set(data) == {"overview", "performance", "activity", "timestamp"}
    assert data["overview"]["totalRiders"] == 1
