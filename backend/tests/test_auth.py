"""
Registration, login and password-policy tests.
"""

import pytest

from stockroom.services import auth_service
from stockroom.services.auth_service import PasswordValidationError
from stockroom.validation import ConflictError, ValidationError


class TestPasswordPolicy:

    @pytest.mark.parametrize("password", ["short1", "allletters", "12345678", ""])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_strong_password_accepted(self):
        auth_service.validate_password_strength("Password123")

    def test_hash_is_bcrypt_and_verifies(self, app):
        hashed = auth_service.hash_password("Password123")
        assert hashed.startswith("$2")
        assert auth_service.verify_password("Password123", hashed)
        assert not auth_service.verify_password("Password124", hashed)

    def test_malformed_hash_does_not_raise(self):
        assert auth_service.verify_password("Password123", "not-a-hash") is False


class TestCreateUser:

    def test_email_normalized(self, db_session):
        user = auth_service.create_user(email="  Mixed@Case.TEST ", password="Password123", full_name="M")
        assert user.email == "mixed@case.test"

    def test_duplicate_email_conflicts(self, db_session, user):
        with pytest.raises(ConflictError):
            auth_service.create_user(email="CLERK@stockroom.test", password="Password123", full_name="Dup")

    def test_invalid_role_rejected(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_user(email="x@y.test", password="Password123", full_name="X", role="root")

    def test_invalid_email_rejected(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_user(email="nope", password="Password123", full_name="X")


class TestAuthRoutes:

    def test_register_returns_user_and_token(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "email": "new@stockroom.test",
            "password": "Password123",
            "fullName": "New Person",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["email"] == "new@stockroom.test"
        assert body["user"]["role"] == "user"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["full_name"] == "New Person"

    def test_register_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "a@b.test"})
        assert resp.status_code == 400

    def test_register_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "email": "weak@stockroom.test", "password": "abc", "full_name": "Weak",
        })
        assert resp.status_code == 400
        assert "8 characters" in resp.get_json()["error"]

    def test_register_duplicate(self, client, user):
        resp = client.post("/api/auth/register", json={
            "email": "clerk@stockroom.test", "password": "Password123", "full_name": "Again",
        })
        assert resp.status_code == 409

    def test_login_success_sets_last_login(self, client, user):
        resp = client.post("/api/auth/login", json={
            "email": "clerk@stockroom.test", "password": "Password123",
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["token"]
        assert body["expires_at"].endswith("Z")
        assert body["user"]["last_login_at"] is not None

    def test_login_wrong_password(self, client, user):
        resp = client.post("/api/auth/login", json={
            "email": "clerk@stockroom.test", "password": "Wrong12345",
        })
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"

    def test_login_unknown_user(self, client, db_session):
        resp = client.post("/api/auth/login", json={
            "email": "ghost@stockroom.test", "password": "Password123",
        })
        assert resp.status_code == 401

    def test_password_hash_never_returned(self, client, auth_headers):
        body = client.get("/api/auth/me", headers=auth_headers).get_json()
        assert "password_hash" not in body["user"]
