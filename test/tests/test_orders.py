"""
Project: SharePlate Canteen Backend
Description:
Bill preview and order placement through the HTTP API.
"""

import re
from datetime import timedelta

import pytest

from models import Order, db


# ---------- bill preview ----------
def test_bill_without_coupon(client):
    r = client.post("/api/bill", json={"items": [{"price": 100, "qty": 2}, {"price": 50, "qty": 1}]})
    assert r.status_code == 200
    assert r.get_json() == {"subtotal": 250, "serviceCharge": 6, "gst": 12.5, "discount": 0, "total": 268.5}


def test_bill_with_capped_percentage_coupon(client, make_coupon):
    make_coupon(code="SAVE10", value=10, max_discount=20)
    r = client.post("/api/bill", json={
        "items": [{"price": 100, "qty": 2}, {"price": 50, "qty": 1}],
        "couponCode": "save10",
    })
    body = r.get_json()
    assert body["discount"] == pytest.approx(20)
    assert body["total"] == pytest.approx(248.5)


def test_bill_empty_cart(client):
    r = client.post("/api/bill", json={"items": []})
    assert r.get_json() == {"subtotal": 0, "serviceCharge": 0, "gst": 0, "discount": 0, "total": 0}
    assert client.post("/api/bill").get_json()["total"] == 0


def test_bill_unknown_coupon(client, make_coupon):
    make_coupon(code="EXPIRED1", expires_in=timedelta(days=-1))
    r = client.post("/api/bill", json={"items": [{"price": 10, "qty": 1}], "couponCode": "EXPIRED1"})
    assert r.status_code == 404


# ---------- orders ----------
@pytest.fixture
def cart(make_menu_item):
    thali = make_menu_item(name="Thali", price=100)
    tea = make_menu_item(name="Tea", price=50, category="Beverages")
    return [{"itemId": thali, "quantity": 2}, {"itemId": tea, "quantity": 1}]


def _place(client, headers, items, **extra):
    return client.post("/api/orders", json={"items": items, "canteenId": "main", **extra}, headers=headers)


def test_order_requires_login(client, cart):
    assert _place(client, {}, cart).status_code == 401


def test_place_order(client, user_headers, cart):
    r = _place(client, user_headers, cart, notes="less spicy")
    assert r.status_code == 201
    summary = r.get_json()["order"]
    assert re.match(r"^TN\d{6}$", summary["tokenNumber"])
    assert summary["status"] == "Pending"
    assert summary["totalAmount"] == pytest.approx(268.5)

    order = client.get(f"/api/orders/{summary['id']}").get_json()["order"]
    assert order["subtotal"] == pytest.approx(250)
    assert order["serviceCharge"] == pytest.approx(6)
    assert order["gst"] == pytest.approx(12.5)
    assert order["notes"] == "less spicy"
    assert [i["name"] for i in order["items"]] == ["Thali", "Tea"]


def test_order_prices_come_from_menu(client, user_headers, cart):
    cart[0]["price"] = 1
    r = _place(client, user_headers, cart)
    assert r.get_json()["order"]["totalAmount"] == pytest.approx(268.5)


def test_order_with_coupon(client, user_headers, cart, make_coupon):
    make_coupon(code="FLAT50", discount_type="fixed", value=50)
    r = _place(client, user_headers, cart, couponCode="flat50")
    assert r.status_code == 201
    order = client.get(f"/api/orders/{r.get_json()['order']['id']}").get_json()["order"]
    assert order["couponCode"] == "FLAT50"
    assert order["discount"] == pytest.approx(50)
    assert order["totalAmount"] == pytest.approx(218.5)


def test_order_with_unusable_coupon(app, client, user_headers, cart, make_coupon):
    make_coupon(code="OFF", active=False)
    assert _place(client, user_headers, cart, couponCode="OFF").status_code == 404
    with app.app_context():
        assert db.session.query(Order).count() == 0


def test_order_validation(client, user_headers, cart, make_menu_item):
    assert _place(client, user_headers, []).status_code == 400
    r = client.post("/api/orders", json={"items": cart}, headers=user_headers)
    assert r.status_code == 400
    assert _place(client, user_headers, [{"itemId": 9999, "quantity": 1}]).status_code == 400
    assert _place(client, user_headers, [{"itemId": "abc", "quantity": 1}]).status_code == 400
    assert _place(client, user_headers, [{"itemId": cart[0]["itemId"], "quantity": 0}]).status_code == 400
    gone = make_menu_item(name="Gone", available=False)
    assert _place(client, user_headers, [{"itemId": gone, "quantity": 1}]).status_code == 400


def test_order_listing_by_role(client, make_user, cart, admin_headers):
    alice = make_user()["headers"]
    bob = make_user()["headers"]
    _place(client, alice, cart)
    _place(client, bob, cart)
    client.post("/api/orders", json={"items": cart, "canteenId": "north"}, headers=bob)

    assert len(client.get("/api/orders", headers=alice).get_json()["orders"]) == 1
    assert len(client.get("/api/orders", headers=bob).get_json()["orders"]) == 2
    assert len(client.get("/api/orders", headers=admin_headers).get_json()["orders"]) == 3
    north = client.get("/api/orders?canteenId=north", headers=admin_headers).get_json()["orders"]
    assert [o["canteenId"] for o in north] == ["north"]
    assert client.get("/api/orders").status_code == 401


def test_update_order_status(client, user_headers, admin_headers, cart):
    order_id = _place(client, user_headers, cart).get_json()["order"]["id"]

    assert client.put(f"/api/orders/{order_id}", json={"status": "Ready"}, headers=user_headers).status_code == 403
    assert client.put(f"/api/orders/{order_id}", json={"status": "Eaten"}, headers=admin_headers).status_code == 400

    r = client.put(f"/api/orders/{order_id}", json={"status": "Cooking"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["order"]["status"] == "Cooking"
    assert client.put("/api/orders/9999", json={"status": "Ready"}, headers=admin_headers).status_code == 404


def test_missing_order(client):
    r = client.get("/api/orders/12345")
    assert r.status_code == 404
    assert r.get_json() == {"error": "Order not found"}


def test_order_quantity_upper_bound(app, client, user_headers, cart):
    item_id = cart[0]["itemId"]
    for quantity in (10**20, 1001):
        r = _place(client, user_headers, [{"itemId": item_id, "quantity": quantity}])
        assert r.status_code == 400
    with app.app_context():
        assert db.session.query(Order).count() == 0
    assert _place(client, user_headers, [{"itemId": item_id, "quantity": 1000}]).status_code == 201
