from contextlib import contextmanager
from types import SimpleNamespace

import pytest

from giftbox import create_app
from giftbox.auth import hash_password
from giftbox.db import main_session
from giftbox.models import User, Product, PreMadeBox, PreMadeBoxItem, BoxType

PASSWORD = "secret123"

DELIVERY = {
    "full_name": "Leyla Aliyeva",
    "email": "leyla@example.com",
    "phone": "+994501234567",
    "address": "12 Nizami St, Baku",
    "place_type": "home",
}


TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test",
    "DATABASE_URL": "sqlite://",
    "BCRYPT_ROUNDS": 4,
    "LOG_FILE": None,
    "SLACK_WEBHOOK_URL": None,
    "SMTP_HOST": None,
    "GOOGLE_CLIENT_ID": None,
    "GOOGLE_CLIENT_SECRET": None,
    "WHATSAPP_NUMBER": "+994500000000",
    "PUBLIC_BASE_URL": "http://localhost:3000",
}


def make_app(tmp_path, **overrides):
    return create_app(dict(TEST_CONFIG, UPLOAD_DIR=str(tmp_path / "uploads"), **overrides))


@pytest.fixture
def app(tmp_path):
    return make_app(tmp_path)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def dbs(app):
    """Open a short-lived session; commit anything you want requests to see."""
    @contextmanager
    def open_session():
        with app.app_context(), main_session() as s:
            yield s
    return open_session


def make_user(app, email, role="USER", name=None, password=PASSWORD):
    with app.app_context(), main_session() as s:
        u = User(email=email, name=name, role=role, password_hash=hash_password(password))
        s.add(u)
        s.commit()
        return u.id


def login(client, email, password=PASSWORD):
    return client.post("/en/login", data={"email": email, "password": password})


@pytest.fixture
def users(app):
    return SimpleNamespace(
        admin=make_user(app, "admin@example.com", role="ADMIN", name="Admin"),
        alice=make_user(app, "alice@example.com", name="Alice"),
        bob=make_user(app, "bob@example.com", name="Bob"),
    )


@pytest.fixture
def catalog(dbs):
    with dbs() as s:
        lego = Product(name="Lego Classic", description="Bricks", price_cents=1000,
                       category="TOYS", stock=5, images=[])
        choc = Product(name="Chocolate Box", description="Sweet", price_cents=2550,
                       category="SWEETS", stock=2, images=[])
        hidden = Product(name="Retired Scarf", price_cents=900, category="ACCESSORIES",
                         stock=10, is_active=False, images=[])
        s.add_all([lego, choc, hidden])
        s.flush()
        box = PreMadeBox(name="Kids Fun Box", price_cents=4999, images=[],
                         items=[PreMadeBoxItem(product_id=lego.id, quantity=1),
                                PreMadeBoxItem(product_id=choc.id, quantity=1)])
        old_box = PreMadeBox(name="Old Box", price_cents=1500, is_active=False, images=[])
        medium = BoxType(name="Medium Gift Box", price_cents=999, size="Medium", capacity=6)
        small = BoxType(name="Small Gift Box", price_cents=599, size="Small", capacity=3)
        s.add_all([box, old_box, medium, small])
        s.commit()
        return SimpleNamespace(lego=lego.id, choc=choc.id, hidden=hidden.id, box=box.id,
                               old_box=old_box.id, medium=medium.id, small=small.id)
