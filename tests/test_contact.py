from giftbox.models import ContactMessage

from conftest import login

MESSAGE = {"name": "Rashad", "email": "Rashad@Example.com", "category": "ORDER",
           "subject": "Where is my box?", "order_ref": "42",
           "message": "My order has not arrived yet, could you check it please?"}


def test_contact_message_is_stored(client, dbs):
    r = client.post("/api/contact", json=MESSAGE)
    assert r.status_code == 201
    with dbs() as s:
        m = s.get(ContactMessage, r.get_json()["id"])
        assert m.email == "rashad@example.com" and m.status == "NEW" and m.user_id is None


def test_contact_validation(client):
    assert client.post("/api/contact", json=dict(MESSAGE, message="Too short")).status_code == 400
    assert client.post("/api/contact", json=dict(MESSAGE, email="rashad")).status_code == 400
    assert client.post("/api/contact", json=dict(MESSAGE, category="SPAM")).status_code == 400
    assert client.post("/api/contact", json=dict(MESSAGE, name="R")).status_code == 400


def test_signed_in_message_is_linked(client, dbs, users):
    login(client, "alice@example.com")
    mid = client.post("/api/contact", json=MESSAGE).get_json()["id"]
    with dbs() as s:
        assert s.get(ContactMessage, mid).user_id == users.alice


def test_admin_handles_message(client, users):
    mid = client.post("/api/contact", json=MESSAGE).get_json()["id"]
    login(client, "admin@example.com")
    r = client.patch(f"/api/admin/contact-messages/{mid}",
                     json={"status": "IN_PROGRESS", "admin_note": "Called the courier"})
    m = r.get_json()["message"]
    assert m["status"] == "IN_PROGRESS" and m["handled_by"]["id"] == users.admin
    assert m["admin_note"] == "Called the courier"

    r = client.patch(f"/api/admin/contact-messages/{mid}", json={"admin_note": "x" * 5001})
    assert r.status_code == 400
    r = client.patch(f"/api/admin/contact-messages/{mid}", json={"status": "DONE"})
    assert r.status_code == 400

    listed = client.get("/api/admin/contact-messages?status=IN_PROGRESS").get_json()
    assert [x["id"] for x in listed["messages"]] == [mid]
    assert client.get("/api/admin/contact-messages/999").status_code == 404


def test_contact_page_form(client):
    r = client.post("/en/contact", data=MESSAGE)
    assert r.status_code == 302
    r = client.post("/en/contact", data=dict(MESSAGE, message="short"))
    assert r.status_code == 400
