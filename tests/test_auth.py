import pytest
from authlib.integrations.base_client import OAuthError

import library_api.auth as auth_module
from models import storage
from models.user import User
from services.exceptions import AuthenticationRequired, NotFound
from services.users import promote_admin, upsert_google_user

from conftest import create_user, sign_in

PROFILE = {
    "sub": "google-123",
    "email": "Reader@Example.com",
    "name": "Ada Reader",
    "picture": "https://lh3.googleusercontent.com/a/ada.png",
}


class FakeGoogle:
    def __init__(self, userinfo=None, error=None):
        self.userinfo_claims = userinfo
        self.error = error

    def authorize_access_token(self):
        if self.error:
            raise self.error
        return {"access_token": "token", "userinfo": self.userinfo_claims}


class TestUpsert:
    def test_creates_new_user(self, app_ctx):
        user = upsert_google_user(PROFILE)
        assert user.email == "reader@example.com"
        assert user.google_id == "google-123"
        assert user.provider == "google"
        assert user.role == "user"
        assert user.last_login is not None

    def test_same_google_id_returns_same_user(self, app_ctx):
        first = upsert_google_user(PROFILE)
        second = upsert_google_user(dict(PROFILE, name="Renamed"))
        assert first.id == second.id
        assert storage.count(User) == 1

    def test_links_existing_email(self, app):
        user_id = create_user(app, email="reader@example.com")
        with app.app_context():
            linked = upsert_google_user(PROFILE)
            assert linked.id == user_id
            assert linked.google_id == "google-123"
            assert linked.email_verified is True

    def test_profile_without_email(self, app_ctx):
        with pytest.raises(AuthenticationRequired) as exc:
            upsert_google_user({"sub": "google-123"})
        assert exc.value.errors[0]["field"] == "email"

    def test_promote_admin(self, app_ctx):
        upsert_google_user(PROFILE)
        assert promote_admin(" READER@example.com ").role == "admin"
        with pytest.raises(NotFound):
            promote_admin("nobody@example.com")


class TestRoutes:
    def test_status_anonymous(self, client):
        data = client.get("/auth/status").get_json()["data"]
        assert data == {"authenticated": False, "user": None, "isAdmin": False}

    def test_status_signed_in(self, admin_client):
        data = admin_client.get("/auth/status").get_json()["data"]
        assert data["authenticated"] is True
        assert data["isAdmin"] is True
        assert data["user"]["email"] == "admin@example.com"

    def test_profile_requires_session(self, client):
        resp = client.get("/auth/profile")
        assert resp.status_code == 401
        assert resp.get_json()["loginUrl"] == "/auth/google"

    def test_inactive_user_is_anonymous(self, app, client):
        sign_in(client, create_user(app, is_active=False))
        assert client.get("/auth/profile").status_code == 401

    def test_logout_clears_session(self, user_client):
        assert user_client.get("/auth/profile").status_code == 200
        assert user_client.post("/auth/logout").get_json()["success"] is True
        assert user_client.get("/auth/profile").status_code == 401

    def test_callback_signs_user_in(self, client, monkeypatch):
        monkeypatch.setattr(auth_module, "google_client", lambda: FakeGoogle(userinfo=PROFILE))

        resp = client.get("/auth/google/callback")

        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/auth/profile")
        profile = client.get("/auth/profile").get_json()["data"]
        assert profile["email"] == "reader@example.com"

    def test_callback_failure_redirects(self, client, monkeypatch):
        fake = FakeGoogle(error=OAuthError(error="access_denied", description="denied"))
        monkeypatch.setattr(auth_module, "google_client", lambda: fake)

        resp = client.get("/auth/google/callback")

        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/auth/login/failure")
        assert client.get("/auth/login/failure").status_code == 401

    def test_login_unconfigured(self, client, monkeypatch):
        monkeypatch.setattr(auth_module, "google_client", lambda: None)
        assert client.get("/auth/google").status_code == 503
