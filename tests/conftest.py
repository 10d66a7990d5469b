"""
Shared fixtures: an isolated app per test backed by its own SQLite file,
clients signed in with different roles, and payload factories.
"""
import itertools

import pytest

from library_api import create_app
from models import storage
from models.user import User, UserRole

_isbn_seq = itertools.count(1)


def next_isbn() -> str:
    return f"978000{next(_isbn_seq):07d}"


def category_payload(**overrides):
    payload = {
        "name": "Science fiction",
        "description": "Stories about science and the future",
        "color": "#336699",
    }
    payload.update(overrides)
    return payload


def book_payload(category_id, **overrides):
    payload = {
        "title": "Dune",
        "author": "Frank Herbert",
        "isbn": next_isbn(),
        "description": "A desert planet and the spice that rules it.",
        "category": category_id,
        "publishedDate": "1965-08-01",
        "publisher": "Chilton Books",
        "pages": 412,
        "language": "english",
        "price": 19.99,
        "stock": 5,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        DATABASE_URL=f"sqlite:///{tmp_path / 'library.db'}",
        SECRET_KEY="test-secret",
    )
    yield app
    storage.close()


@pytest.fixture
def app_ctx(app):
    """App context for calling services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def create_user(app, role=UserRole.USER.value, email="reader@example.com", **fields):
    with app.app_context():
        user = User(email=email, name="Test User", role=role, provider="google", **fields)
        user.save()
        return user.id


def sign_in(client, user_id):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    sign_in(client, create_user(app, role=UserRole.ADMIN.value, email="admin@example.com"))
    return client


@pytest.fixture
def user_client(app):
    client = app.test_client()
    sign_in(client, create_user(app))
    return client


@pytest.fixture
def make_category(admin_client):
    def _make(**overrides):
        resp = admin_client.post("/api/categories", json=category_payload(**overrides))
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]
    return _make


@pytest.fixture
def make_book(admin_client, make_category):
    def _make(category_id=None, **overrides):
        if category_id is None:
            category_id = make_category(name=f"Genre {next(_isbn_seq)}")["id"]
        resp = admin_client.post("/api/books", json=book_payload(category_id, **overrides))
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]
    return _make
