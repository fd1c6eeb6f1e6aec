import pytest

from giftbox.models import Product, Order, PreMadeBox, ContactMessage

from conftest import DELIVERY, login


@pytest.fixture
def admin(client, users):
    login(client, "admin@example.com")
    return client


def test_admin_pages_guarded(app, users):
    anon = app.test_client()
    assert anon.get("/admin/").headers["Location"].endswith("/en/login?next=/admin")
    regular = app.test_client()
    login(regular, "alice@example.com")
    r = regular.get("/admin/products")
    assert r.status_code == 302 and r.headers["Location"].endswith("/en/")


def test_dashboard_and_lists(admin, catalog):
    page = admin.get("/admin/").get_data(as_text=True)
    assert "Dashboard" in page
    for url in ("/admin/products", "/admin/boxes", "/admin/categories", "/admin/orders",
                "/admin/messages", "/admin/users?sort_by=orders&sort_order=asc"):
        assert admin.get(url).status_code == 200, url
    assert "Retired Scarf" in admin.get("/admin/products?search=scarf").get_data(as_text=True)


def test_product_form_create_and_edit(admin, dbs):
    r = admin.post("/admin/products/new", data={"name": "Tea Set", "price": "19.90",
                                                 "category": "OTHER", "stock": "3",
                                                 "is_active": "on", "images": "a.jpg\nb.jpg"})
    assert r.status_code == 302
    with dbs() as s:
        p = s.query(Product).filter_by(name="Tea Set").one()
        assert p.price_cents == 1990 and p.images == ["a.jpg", "b.jpg"] and p.is_active
        pid = p.id

    # an unchecked box means inactive
    admin.post(f"/admin/products/{pid}/edit", data={"name": "Tea Set", "price": "19.90",
                                                    "category": "OTHER", "stock": "3"})
    with dbs() as s:
        assert s.get(Product, pid).is_active is False

    r = admin.post("/admin/products/new", data={"name": "", "price": "1", "category": "OTHER"})
    assert r.status_code == 400


def test_product_delete_refused_when_referenced(admin, dbs, catalog):
    admin.post(f"/admin/products/{catalog.lego}/delete")
    admin.post(f"/admin/products/{catalog.hidden}/delete")
    with dbs() as s:
        assert s.get(Product, catalog.lego) is not None
        assert s.get(Product, catalog.hidden) is None


def test_box_form_and_deactivate(admin, dbs, catalog):
    r = admin.post("/admin/boxes/new", data={
        "name": "Choco Box", "price": "25", "is_active": "on",
        "item_product_id": [str(catalog.choc), ""], "item_quantity": ["2", "1"]})
    assert r.status_code == 302
    with dbs() as s:
        box = s.query(PreMadeBox).filter_by(name="Choco Box").one()
        assert [(it.product_id, it.quantity) for it in box.items] == [(catalog.choc, 2)]
        box_id = box.id
    admin.post(f"/admin/boxes/{box_id}/deactivate")
    with dbs() as s:
        assert s.get(PreMadeBox, box_id).is_active is False


def test_order_status_page(admin, dbs, catalog):
    r = admin.post(f"/en/checkout?box_id={catalog.box}", data=DELIVERY)
    order_id = int(r.headers["Location"].rsplit("=", 1)[1])
    assert "Kids Fun Box" in admin.get(f"/admin/orders/{order_id}").get_data(as_text=True)
    admin.post(f"/admin/orders/{order_id}", data={"status": "CONFIRMED"})
    admin.post(f"/admin/orders/{order_id}", data={"status": "NOPE"})
    with dbs() as s:
        assert s.get(Order, order_id).status == "CONFIRMED"


def test_message_page_records_handler(admin, dbs, users):
    admin.post("/api/contact", json={"name": "Guest", "email": "guest@example.com",
                                     "category": "OTHER",
                                     "message": "Do you deliver to Ganja as well? Thanks."})
    with dbs() as s:
        mid = s.query(ContactMessage).one().id
    admin.post(f"/admin/messages/{mid}", data={"status": "RESOLVED", "admin_note": "Yes we do"})
    with dbs() as s:
        m = s.get(ContactMessage, mid)
        assert m.status == "RESOLVED" and m.handled_by_id == users.admin
        assert m.admin_note == "Yes we do"
