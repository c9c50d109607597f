"""pytest fixtures: an app on in-memory SQLite plus small data factories."""
from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

# Ensure the project root is available on sys.path so tests can import the carapp package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from carapp import create_app  # noqa: E402
from carapp.config import TestingConfig  # noqa: E402
from carapp.extensions import db  # noqa: E402
from carapp.models import (AuthAccount, Car, Post, Role, ServiceCenter, User,  # noqa: E402
                           utc_now)

DEFAULT_PASSWORD = "Secret123!"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(
        email: str = "user@example.com",
        *,
        name: str = "Test User",
        role: Role = Role.USER,
        password: str = DEFAULT_PASSWORD,
    ) -> int:
        with app.app_context():
            user = User(name=name, email=email, role=role)
            db.session.add(user)
            db.session.flush()
            db.session.add(
                AuthAccount(user_id=user.user_id, password_hash=generate_password_hash(password))
            )
            db.session.commit()
            return user.user_id

    return _make_user


@pytest.fixture
def make_car(app):
    def _make_car(owner_id: int, *, brand: str = "Opel", model: str = "Corsa D", year: int = 2008) -> int:
        with app.app_context():
            car = Car(owner_id=owner_id, brand=brand, model=model, year=year)
            db.session.add(car)
            db.session.commit()
            return car.car_id

    return _make_car


@pytest.fixture
def make_center(app):
    def _make_center(
        name: str = "RapidAuto Service", *, city: str = "Budapest", address: str = "Fehervari ut 12."
    ) -> int:
        with app.app_context():
            center = ServiceCenter(name=name, city=city, address=address)
            db.session.add(center)
            db.session.commit()
            return center.center_id

    return _make_center


@pytest.fixture
def make_post(app):
    def _make_post(author_id: int, *, content: str = "Which oil for a Corsa D?") -> int:
        with app.app_context():
            post = Post(author_id=author_id, content=content)
            db.session.add(post)
            db.session.commit()
            return post.post_id

    return _make_post


@pytest.fixture
def auth_headers(app):
    """Build an Authorization header for ``email``; negative ``expires_in`` yields an expired token."""

    def _auth_headers(email: str, expires_in: int | None = None) -> dict[str, str]:
        token = app.extensions["token_service"].issue(email, expires_in=expires_in)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def tomorrow_at_ten():
    """ISO timestamp for tomorrow 10:00 UTC."""
    slot = (utc_now() + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)
    return slot.isoformat()
