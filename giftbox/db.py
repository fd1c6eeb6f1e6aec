from flask import current_app
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from giftbox.models import Base


def make_engine(url):
    # in-memory sqlite must share one connection or every session sees an empty db
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, future=True, poolclass=StaticPool,
                             connect_args={"check_same_thread": False})
    return create_engine(url, future=True)


def init_db(app):
    engine = make_engine(app.config["DATABASE_URL"])
    Base.metadata.create_all(engine)
    app.extensions["giftbox_engine"] = engine
    return engine


def get_engine():
    return current_app.extensions["giftbox_engine"]


def main_session():
    return Session(get_engine())
