from __future__ import annotations

import pytest

from roomchat.core.auth.models import SessionCredential
from roomchat.core.users.models import User

pytestmark = pytest.mark.integration


def _register(client, **overrides):
    payload = {"email": "new@example.com", "username": "newbie", "password": "secret123"}
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


class TestRegister:
    def test_register_normalizes_and_hides_hash(self, client):
        resp = _register(client, email="  New@Example.COM ", username="NewBie")

        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["email"] == "new@example.com"
        assert user["username"] == "newbie"
        assert "password_hash" not in user
        assert User.query.filter_by(email="new@example.com").count() == 1

    def test_duplicate_registration_conflicts(self, client):
        _register(client)

        resp = _register(client, username="other")

        assert resp.status_code == 409
        assert resp.get_json()["error"] == "conflict"

    def test_weak_password_is_rejected(self, client):
        resp = _register(client, password="short")

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "validation_error"
        assert body["details"]


class TestLoginLogout:
    def test_login_returns_usable_token(self, client, make_user):
        user = make_user(email="login@example.com")

        resp = client.post("/auth/login", json={"email": "login@example.com", "password": "secret123"})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["id"] == user.id
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200

    def test_bad_login_responses_are_identical(self, client, make_user):
        make_user(email="known@example.com")

        wrong_password = client.post("/auth/login", json={"email": "known@example.com", "password": "nope12345"})
        unknown_email = client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

        assert wrong_password.status_code == unknown_email.status_code == 400
        assert wrong_password.get_json() == unknown_email.get_json()
        assert wrong_password.get_json()["error"] == "invalid_credentials"

    def test_logout_then_reuse_is_rejected(self, client, make_user, login):
        user = make_user()
        result = login(user)
        headers = {"Authorization": f"Bearer {result.token}"}

        assert client.post("/auth/logout", headers=headers).status_code == 200

        resp = client.get("/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "session is invalid"
        assert SessionCredential.query.filter_by(session_id=result.session_id).one().is_live is False

    def test_logout_leaves_other_sessions_alive(self, client, make_user, login):
        user = make_user()
        phone = login(user)
        laptop = login(user)

        client.post("/auth/logout", headers={"Authorization": f"Bearer {phone.token}"})

        resp = client.get("/auth/me", headers={"Authorization": f"Bearer {laptop.token}"})
        assert resp.status_code == 200


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True}
