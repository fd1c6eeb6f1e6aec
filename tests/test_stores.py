from giftbox.stores import CartStore, CustomBoxStore, CART_KEY


def test_add_item_merges_quantities():
    cart = CartStore({})
    cart.add_item(1, 2, 1000, "Lego")
    cart.add_item(1, 1, 1000, "Lego")
    cart.add_item(2, 1, 250, "Candy")
    assert [(it["product_id"], it["quantity"]) for it in cart.items] == [(1, 3), (2, 1)]
    assert cart.total() == 3250
    assert cart.count() == 4


def test_update_quantity_to_zero_removes():
    cart = CartStore({})
    cart.add_item(1, 2, 1000)
    cart.update_quantity(1, 0)
    assert cart.items == []


def test_state_lives_in_backing_mapping():
    backing = {}
    CartStore(backing).add_item(7, 1, 500, "Mug")
    assert backing[CART_KEY]["items"][0]["product_id"] == 7
    assert CartStore(backing).total() == 500


def test_custom_box_clear_resets_box_type_and_postcard():
    box = CustomBoxStore({})
    box.add_item(1, 1, 1000)
    box.set_box_type({"id": 3, "name": "Medium", "price_cents": 999})
    box.set_postcard_text("Happy birthday!")
    assert box.to_dict()["total_cents"] == 1000  # box type price is not added
    box.clear_box()
    assert box.items == [] and box.box_type is None and box.postcard_text == ""


def test_cart_api_add_update_remove(client, catalog):
    r = client.post("/api/cart/items", json={"product_id": catalog.lego, "quantity": 2})
    assert r.status_code == 201
    r = client.post("/api/cart/items", json={"product_id": catalog.lego})
    assert r.get_json()["items"][0]["quantity"] == 3
    assert r.get_json()["total_cents"] == 3000

    r = client.patch(f"/api/cart/items/{catalog.lego}", json={"quantity": 1})
    assert r.get_json()["count"] == 1
    r = client.delete(f"/api/cart/items/{catalog.lego}")
    assert r.get_json()["items"] == []


def test_cart_api_rejects_inactive_product(client, catalog):
    r = client.post("/api/cart/items", json={"product_id": catalog.hidden, "quantity": 1})
    assert r.status_code == 404


def test_custom_box_api_box_type_and_postcard(client, catalog):
    r = client.put("/api/custom-box/box-type", json={"box_type_id": catalog.medium})
    assert r.get_json()["box_type"]["name"] == "Medium Gift Box"
    r = client.put("/api/custom-box/postcard", json={"postcard_text": "x" * 501})
    assert r.status_code == 400
    r = client.put("/api/custom-box/postcard", json={"postcard_text": " For you "})
    assert r.get_json()["postcard_text"] == "For you"
    r = client.put("/api/custom-box/box-type", json={"box_type_id": None})
    assert r.get_json()["box_type"] is None
