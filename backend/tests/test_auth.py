# Overview: Pytest coverage for login, logout and session validation.

from datetime import timedelta

from backoffice.models import SessionToken, User
from backoffice.services import session_service
from backoffice.services.auth_service import (
    PasswordValidationError,
    hash_password,
    verify_password,
)

import pytest


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("Password123!", rounds=4)
        assert verify_password("Password123!", hashed)
        assert not verify_password("password123!", hashed)

    @pytest.mark.parametrize("weak", ["short1!", "password123!", "PASSWORD123!", "Password!!!", "Password123"])
    def test_weak_passwords_rejected(self, weak):
        with pytest.raises(PasswordValidationError):
            hash_password(weak, rounds=4)

    def test_malformed_hash_never_matches(self):
        assert not verify_password("Password123!", "not-a-bcrypt-hash")


class TestLogin:

    def test_login_with_email(self, client, retailer):
        resp = client.post("/api/auth/login", json={"email": "SHOP@test.rw", "password": "Password123!"})

        assert resp.status_code == 200
        assert resp.json["success"] is True
        assert resp.json["role"] == "retailer"
        assert resp.json["token"]
        assert "password_hash" not in resp.json["user"]

    def test_login_with_phone(self, client, retailer):
        resp = client.post("/api/auth/login", json={"phone": "+250788111111", "password": "Password123!"})
        assert resp.status_code == 200

    def test_wrong_password(self, client, retailer):
        resp = client.post("/api/auth/login", json={"email": "shop@test.rw", "password": "Wrong123!"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "shop@test.rw"})
        assert resp.status_code == 400

    def test_inactive_user_cannot_login(self, client, db_session, retailer):
        user = db_session.query(User).filter_by(email="shop@test.rw").one()
        user.is_active = False
        db_session.commit()

        resp = client.post("/api/auth/login", json={"email": "shop@test.rw", "password": "Password123!"})
        assert resp.status_code == 401


class TestSession:

    def test_me_returns_current_user(self, client, retailer_headers):
        resp = client.get("/api/auth/me", headers=retailer_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["email"] == "shop@test.rw"

    def test_logout_revokes_token(self, client, retailer_headers):
        resp = client.post("/api/auth/logout", headers=retailer_headers)
        assert resp.status_code == 200

        resp = client.get("/api/auth/me", headers=retailer_headers)
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_token_stored_hashed(self, db_session, retailer):
        session, token = session_service.create_session(retailer.user_id)

        assert session.token_hash != token
        assert session.token_hash == session_service.hash_token(token)

    def test_expired_session_rejected(self, db_session, retailer):
        session, token = session_service.create_session(retailer.user_id)
        session.expires_at = session.expires_at - timedelta(days=30)
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_idle_session_revoked(self, app, db_session, retailer):
        session, token = session_service.create_session(retailer.user_id)
        idle_hours = app.config["SESSION_IDLE_TIMEOUT_HOURS"]
        session.last_used_at = session.last_used_at - timedelta(hours=idle_hours + 1)
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).revoked_reason == "Idle timeout"

    def test_deactivated_user_session_revoked(self, db_session, retailer):
        session, token = session_service.create_session(retailer.user_id)
        retailer.user.is_active = False
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).is_revoked
