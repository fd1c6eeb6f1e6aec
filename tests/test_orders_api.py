import pytest

from giftbox.models import Order

from conftest import DELIVERY, login

MYSTERY = {"order_type": "MYSTERY", "budget": 45, "interests": ["music", "art"],
           "occasion": "birthday", "recipient_age": 30, "recipient_gender": "female"}


def test_mystery_order_without_address_gets_placeholder(client):
    r = client.post("/api/orders", json=MYSTERY)
    assert r.status_code == 201
    order = r.get_json()["order"]
    assert order["total_cents"] == 4500
    assert order["tax_cents"] == 0 and order["shipping_cents"] == 0
    assert order["delivery"]["address"] == "To be provided"
    assert order["recipient"]["interests"] == "music, art"
    assert order["payment"]["status"] == "PENDING"


def test_mystery_order_below_minimum_budget(client):
    r = client.post("/api/orders", json=dict(MYSTERY, budget=20))
    assert r.status_code == 400


@pytest.mark.parametrize("budget", ["1e20", 10**30, "Infinity", "NaN"])
def test_mystery_order_rejects_out_of_range_budget(client, dbs, budget):
    r = client.post("/api/orders", json=dict(MYSTERY, budget=budget))
    assert r.status_code == 400
    assert r.get_json()["error"] == "Valid price is required"
    with dbs() as s:
        assert s.query(Order).count() == 0


def test_checkout_rejects_out_of_range_numbers(client, catalog):
    r = client.post("/api/checkout", json=dict(MYSTERY, budget="1e20", delivery=DELIVERY))
    assert r.status_code == 400
    r = client.post("/api/checkout", json={
        "order_type": "CUSTOM", "delivery": DELIVERY,
        "items": [{"product_id": catalog.lego, "quantity": 10**20}]})
    assert r.status_code == 400
    r = client.post("/api/checkout", json={"order_type": "PREMADE", "premade_box_id": 10**20,
                                           "delivery": DELIVERY})
    assert r.status_code == 400


def test_complete_fills_delivery_and_payment_phone(client, dbs):
    order_id = client.post("/api/orders", json=MYSTERY).get_json()["order"]["id"]
    r = client.patch(f"/api/orders/{order_id}/complete",
                     json={"delivery": {"address": "5 Fountain Square", "phone": "+994551112233"}})
    assert r.status_code == 200
    assert r.get_json()["order"]["delivery"]["address"] == "5 Fountain Square"
    with dbs() as s:
        assert s.get(Order, order_id).payment.details["customer_phone"] == "+994551112233"


def test_complete_requires_address(client):
    order_id = client.post("/api/orders", json=MYSTERY).get_json()["order"]["id"]
    r = client.patch(f"/api/orders/{order_id}/complete", json={"delivery": {}})
    assert r.status_code == 400


def test_guest_order_is_readable_by_id(client):
    order_id = client.post("/api/orders", json=MYSTERY).get_json()["order"]["id"]
    assert client.get(f"/api/orders/{order_id}").status_code == 200
    assert client.get("/api/orders/9999").status_code == 404


def test_owned_order_access(app, users):
    alice, bob, admin = app.test_client(), app.test_client(), app.test_client()
    login(alice, "alice@example.com")
    login(bob, "bob@example.com")
    login(admin, "admin@example.com")
    order_id = alice.post("/api/orders", json=MYSTERY).get_json()["order"]["id"]

    assert app.test_client().get(f"/api/orders/{order_id}").status_code == 401
    assert bob.get(f"/api/orders/{order_id}").status_code == 403
    assert alice.get(f"/api/orders/{order_id}").status_code == 200
    assert admin.get(f"/api/orders/{order_id}").status_code == 200

    r = bob.patch(f"/api/orders/{order_id}/complete", json={"delivery": DELIVERY})
    assert r.status_code == 403
    r = app.test_client().patch(f"/api/orders/{order_id}/complete", json={"delivery": DELIVERY})
    assert r.status_code == 401


def test_my_orders_lists_only_own(app, users, catalog):
    alice, bob = app.test_client(), app.test_client()
    login(alice, "alice@example.com")
    login(bob, "bob@example.com")
    alice.post("/api/checkout", json={"order_type": "PREMADE", "premade_box_id": catalog.box,
                                      "delivery": DELIVERY})
    r = alice.get("/api/orders")
    assert len(r.get_json()["orders"]) == 1
    assert r.headers["Cache-Control"].startswith("private")
    assert bob.get("/api/orders").get_json()["orders"] == []


def test_my_orders_requires_login(client):
    assert client.get("/api/orders").status_code == 401
