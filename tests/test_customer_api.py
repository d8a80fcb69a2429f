import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import TENANT
from tableside.main import app
from tableside.services.sessions import TABLE_COOKIE, issue_table_cookie


def table_cookie(client):
    return {"cookie": f"{TABLE_COOKIE}={client.cookies.get(TABLE_COOKIE)}"}


def checkout(client, foods, *lines):
    items = [{"foodId": foods[name].id, "quantity": quantity} for name, quantity in lines]
    return client.post(f"/{TENANT}/customer/checkout", json={
        "customerName": "Asha", "customerPhone": "9000000001", "items": items,
    })


def test_customer_pages_redirect_without_table_cookie(client, restaurant):
    response = client.get(f"/{TENANT}/customer/menu", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == f"/{TENANT}/table-login"


def test_cookie_for_another_restaurant_is_not_accepted(client, restaurant):
    client.cookies.set(TABLE_COOKIE, issue_table_cookie("someone-else", 1))
    response = client.get(f"/{TENANT}/customer/order-status", follow_redirects=False)
    assert response.status_code == 303


def test_table_login_sets_cookie(client, restaurant):
    response = client.post(f"/{TENANT}/table-login", json={"tableNumber": 1})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "tableNo": "1", "restaurantId": TENANT}
    assert TABLE_COOKIE in response.cookies


@pytest.mark.parametrize("number", [7, 9])
def test_table_login_rejects_unknown_or_inactive_tables(client, restaurant, number):
    response = client.post(f"/{TENANT}/table-login", json={"tableNumber": number})
    assert response.status_code == 404


def test_menu_lists_available_foods_only(table_client, foods):
    body = table_client.get(f"/{TENANT}/customer/menu").json()
    assert body["tableNo"] == "1"
    assert sorted(f["name"] for f in body["foods"]) == ["Dal Makhani", "Paneer Tikka"]


def test_checkout_creates_one_order_per_food(table_client, foods):
    response = checkout(table_client, foods, ("Paneer Tikka", 1), ("Dal Makhani", 2), ("Paneer Tikka", 1))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["totalAmount"] == 220 * 2 + 180 * 2
    assert {o["title"]: o["quantity"] for o in body["orders"]} == {"Paneer Tikka": 2, "Dal Makhani": 2}
    assert all(o["tableNo"] == "1" and o["status"] == "pending" for o in body["orders"])
    assert all(o["customerName"] == "Asha" for o in body["orders"])


def test_checkout_rejects_empty_cart_and_unavailable_food(table_client, foods):
    assert checkout(table_client, foods).status_code == 400
    assert checkout(table_client, foods, ("Gulab Jamun", 1)).status_code == 404


def test_order_status_follows_the_kitchen(table_client, foods, staff_headers):
    empty = table_client.get(f"/{TENANT}/customer/order-status").json()
    assert empty["found"] is False

    orders = checkout(table_client, foods, ("Dal Makhani", 1)).json()["orders"]
    order_id = orders[0]["id"]
    table_client.patch(f"/{TENANT}/kitchen/orders/{order_id}/status", json={"status": "cooking"},
                       headers=staff_headers)

    view = table_client.get(f"/{TENANT}/customer/order-status").json()
    assert view["found"] is True
    assert view["orderId"] == order_id
    assert view["status"] == "cooking"
    assert view["totalAmount"] == 180

    table_client.patch(f"/{TENANT}/kitchen/orders/{order_id}/status", json={"status": "served"},
                       headers=staff_headers)
    assert table_client.get(f"/{TENANT}/customer/order-status").json()["found"] is False


def test_table_socket_pushes_the_view_on_every_change(table_client, foods, staff_headers):
    with table_client.websocket_connect(f"/ws/{TENANT}/tables/1", headers=table_cookie(table_client)) as ws:
        initial = ws.receive_json()
        assert initial["event"] == "table_view"
        assert initial["data"]["found"] is False

        order_id = checkout(table_client, foods, ("Paneer Tikka", 1)).json()["orders"][0]["id"]
        placed = ws.receive_json()["data"]
        assert placed["found"] is True
        assert placed["status"] == "pending"

        table_client.patch(f"/{TENANT}/kitchen/orders/{order_id}/status", json={"status": "cooking"},
                           headers=staff_headers)
        assert ws.receive_json()["data"]["status"] == "cooking"


def test_table_socket_needs_the_matching_cookie(table_client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with table_client.websocket_connect(f"/ws/{TENANT}/tables/2", headers=table_cookie(table_client)) as ws:
            ws.receive_json()
    assert excinfo.value.code == 4401


def test_blocked_restaurant_takes_no_orders(table_client, foods, db, restaurant):
    restaurant.is_blocked = True
    db.commit()
    assert table_client.post(f"/{TENANT}/table-login", json={"tableNumber": 1}).status_code == 403
    assert checkout(table_client, foods, ("Dal Makhani", 1)).status_code == 403


def test_fresh_client_has_no_table_session(restaurant):
    with TestClient(app) as anonymous:
        response = anonymous.get(f"/{TENANT}/customer/order-status", follow_redirects=False)
    assert response.status_code == 303


def test_blocked_restaurant_closes_the_customer_path(table_client, foods, db, restaurant):
    restaurant.is_blocked = True
    db.commit()

    response = table_client.get(f"/{TENANT}/customer/order-status")
    assert response.status_code == 403
    assert table_client.get(f"/{TENANT}/customer/menu").status_code == 403

    with pytest.raises(WebSocketDisconnect) as excinfo:
        with table_client.websocket_connect(f"/ws/{TENANT}/tables/1", headers=table_cookie(table_client)) as ws:
            ws.receive_json()
    assert excinfo.value.code == 4403
