from conftest import TENANT
from tableside.api import analytics


def test_food_crud(client, admin_headers, foods):
    created = client.post(f"/{TENANT}/admin/foods", json={
        "name": "Masala Chai", "price": 40, "category": "Drinks", "stock": 50,
    }, headers=admin_headers)
    assert created.status_code == 200
    food_id = created.json()["foodId"]

    updated = client.put(f"/{TENANT}/admin/foods/{food_id}", json={"price": 45, "isAvailable": False},
                         headers=admin_headers)
    assert updated.json()["food"]["price"] == 45
    assert updated.json()["food"]["isAvailable"] is False

    names = [f["name"] for f in client.get(f"/{TENANT}/admin/foods", headers=admin_headers).json()["foods"]]
    assert "Masala Chai" in names

    assert client.delete(f"/{TENANT}/admin/foods/{food_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/{TENANT}/admin/foods/{food_id}", headers=admin_headers).status_code == 404


def test_food_price_change_does_not_touch_placed_orders(table_client, admin_headers, foods):
    food = foods["Dal Makhani"]
    table_client.post(f"/{TENANT}/customer/checkout", json={
        "customerName": "Asha", "customerPhone": "9000000001", "items": [{"foodId": food.id, "quantity": 2}],
    })
    table_client.put(f"/{TENANT}/admin/foods/{food.id}", json={"price": 999}, headers=admin_headers)

    order = table_client.get(f"/{TENANT}/admin/orders", headers=admin_headers).json()["orders"][0]
    assert order["price"] == 180
    assert order["total"] == 360


def test_tables_have_qr_links_and_unique_numbers(client, admin_headers):
    created = client.post(f"/{TENANT}/admin/tables", json={"number": 12, "capacity": 6, "location": "Patio"},
                          headers=admin_headers)
    assert created.status_code == 200
    table = created.json()["table"]
    assert table["qrCode"].endswith(f"/{TENANT}/customer/menu?table=12")

    duplicate = client.post(f"/{TENANT}/admin/tables", json={"number": 12}, headers=admin_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "Table 12 already exists"

    listing = client.get(f"/{TENANT}/admin/tables", headers=admin_headers).json()
    assert [t["number"] for t in listing["tables"]] == [1, 2, 9, 12]
    assert listing["occupied"] == 0


def test_staff_can_toggle_occupancy(client, admin_headers, staff_headers):
    table_id = client.get(f"/{TENANT}/admin/tables", headers=admin_headers).json()["tables"][0]["id"]

    first = client.post(f"/{TENANT}/staff/tables/{table_id}/occupancy", headers=staff_headers)
    second = client.post(f"/{TENANT}/staff/tables/{table_id}/occupancy", headers=staff_headers)

    assert first.json()["table"]["isOccupied"] is True
    assert second.json()["table"]["isOccupied"] is False


def test_stats_summarize_the_restaurant(client, admin_headers, staff_headers):
    for title, price in (("Paneer Tikka", 220), ("Dal Makhani", 180)):
        client.post(f"/{TENANT}/admin/orders", json={"tableNo": "1", "title": title, "price": price},
                    headers=admin_headers)
    order_id = client.get(f"/{TENANT}/admin/orders", headers=admin_headers).json()["orders"][0]["id"]
    client.patch(f"/{TENANT}/kitchen/orders/{order_id}/status", json={"status": "cooking"}, headers=staff_headers)

    stats = client.get(f"/{TENANT}/admin/stats", headers=admin_headers).json()

    assert stats["fallback"] is False
    assert stats["totalOrders"] == 2
    assert stats["totalSales"] == 400
    assert stats["totalInventory"] == 3
    assert stats["totalStaff"] == 1
    assert stats["totalCategories"] == 3
    assert stats["statusCounts"] == {"pending": 1, "cooking": 1, "served": 0, "completed": 0}
    assert len(stats["daily"]["dates"]) == 7
    assert sum(stats["daily"]["revenue"]) == 400


def test_stats_fall_back_when_the_store_fails(client, admin_headers, monkeypatch):
    def broken(db, tenant):
        raise RuntimeError("store unreachable")

    monkeypatch.setattr(analytics, "compute_stats", broken)
    response = client.get(f"/{TENANT}/admin/stats", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == analytics.FALLBACK_STATS
    assert response.json()["fallback"] is True


def test_unknown_route_renders_error_body(client):
    response = client.get("/nowhere/at/all")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_store_failure_is_a_503(client, admin_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from tableside.services import order_store

    def unreachable(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(order_store, "list_orders", unreachable)
    response = client.get(f"/{TENANT}/admin/orders", headers=admin_headers)

    assert response.status_code == 503
    assert response.json() == {"error": "Something went wrong, please try again"}


def test_health_reports_redis_only_with_fanout(client, monkeypatch):
    from tableside.config import settings

    assert "redis" not in client.get("/health").json()

    monkeypatch.setattr(settings, "redis_fanout", True)
    assert client.get("/health").json() == {"status": "healthy", "version": "1.0.0", "redis": True}
