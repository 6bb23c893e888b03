"""Pytest configuration and fixtures."""

import itertools
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("INIT_MODE", "skip")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import backend.database.entities  # noqa: E402,F401
from backend.database.config.connection_engine import metadata  # noqa: E402
from backend.database.core import venues  # noqa: E402
from backend.database.daos.user_dao import UserDao  # noqa: E402
from backend.database.entities.user import User  # noqa: E402
from backend.database.helpers import transactionManagement  # noqa: E402
from backend.database.helpers.transactionManagement import transactional  # noqa: E402

REVIEW_TEXT = "Great food and friendly service, would happily come back again soon."
DESCRIPTION = "A cozy place with seasonal dishes, friendly staff and a quiet terrace."


@pytest.fixture(autouse=True)
def engine(monkeypatch):
    """Fresh in-memory database per test; every @transactional call uses it."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    monkeypatch.setattr(
        transactionManagement,
        "SessionLocal",
        sessionmaker(bind=engine, expire_on_commit=False),
    )
    try:
        yield engine
    finally:
        engine.dispose()


def venue_data(name: str, **overrides) -> dict:
    data = {
        "name": name,
        "affordability": "regular",
        "description": DESCRIPTION,
        "phone": "555-123-4567",
        "email": "contact@venue.io",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_venue():
    counter = itertools.count()

    def factory(name: str | None = None, **overrides) -> dict:
        return venues.create_venue(venue_data(name or f"Venue {next(counter)}", **overrides))

    return factory


@transactional
def _insert_user(session, name: str, email: str, role: str) -> dict:
    # skips bcrypt: these accounts never log in
    user = User(name=name, email=email, password="unused", role=role)
    UserDao().create(session, user)
    return user.to_dict()


@pytest.fixture
def make_user():
    counter = itertools.count()

    def factory(role: str = "user") -> dict:
        n = next(counter)
        return _insert_user(name=f"User {n}", email=f"user{n}@mail.io", role=role)

    return factory
